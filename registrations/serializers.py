from rest_framework import serializers
from core.dto import RegistrationDTO
from .models import RegistrationRequest


class RegistrationRequestSerializer(serializers.ModelSerializer):
    reviewed_by_name = serializers.CharField(source='reviewed_by.display_name', read_only=True, default=None)

    class Meta:
        model = RegistrationRequest
        fields = [
            'id', 'residence', 'full_name', 'email', 'phone_number', 'apartment_number', 'message',
            'status', 'rejection_reason', 'reviewed_by', 'reviewed_by_name', 'reviewed_at',
            'profile', 'created_at', 'updated_at',
        ]
        read_only_fields = fields


class RegistrationSubmitSerializer(serializers.Serializer):
    residence_id = serializers.IntegerField(min_value=1)
    full_name = serializers.CharField(max_length=255)
    email = serializers.EmailField()
    phone_number = serializers.CharField(max_length=20, required=False, allow_blank=True, default='')
    apartment_number = serializers.CharField(max_length=20)
    message = serializers.CharField(required=False, allow_blank=True, default='')

    def to_dto(self) -> RegistrationDTO:
        return RegistrationDTO(**self.validated_data)


class RegistrationRejectSerializer(serializers.Serializer):
    reason = serializers.CharField()
