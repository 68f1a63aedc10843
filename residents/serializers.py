from rest_framework import serializers
from core.constants import UserRole
from core.dto import ResidentDTO
from residences.access import other_residence_ids
from residences.models import ProfileResidence


class ResidentSerializer(serializers.ModelSerializer):
    """A member of the residence: profile fields plus the apartment of this membership"""
    id = serializers.IntegerField(source='profile.id', read_only=True)
    membership_id = serializers.IntegerField(source='id', read_only=True)
    full_name = serializers.CharField(source='profile.full_name', read_only=True)
    email = serializers.EmailField(source='profile.email', read_only=True)
    phone_number = serializers.CharField(source='profile.phone_number', read_only=True)
    role = serializers.CharField(source='profile.role', read_only=True)
    is_shared = serializers.SerializerMethodField()

    class Meta:
        model = ProfileResidence
        fields = [
            'id', 'membership_id', 'full_name', 'email', 'phone_number', 'role',
            'apartment_number', 'verified', 'is_shared', 'created_at',
        ]
        read_only_fields = fields

    def get_is_shared(self, obj):
        """Profile also belongs to another residence, so its identity fields are locked"""
        return bool(other_residence_ids(obj.profile_id, obj.residence_id))


class ResidentWriteSerializer(serializers.Serializer):
    """Input only; the directory service applies the identity rules"""
    full_name = serializers.CharField(max_length=255, required=False, allow_blank=True)
    email = serializers.CharField(max_length=254, required=False)
    phone_number = serializers.CharField(max_length=30, required=False, allow_blank=True)
    apartment_number = serializers.CharField(max_length=20, required=False, allow_blank=True)
    role = serializers.ChoiceField(choices=UserRole.CHOICES, required=False)

    def to_dto(self) -> ResidentDTO:
        return ResidentDTO(**self.validated_data)


class CheckEmailSerializer(serializers.Serializer):
    email = serializers.CharField(max_length=254)


class CheckApartmentSerializer(serializers.Serializer):
    apartment_number = serializers.CharField(max_length=20)
    exclude = serializers.IntegerField(required=False)
