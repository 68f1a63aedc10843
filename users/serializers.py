from rest_framework import serializers
from residences.models import ProfileResidence
from .models import User


class MembershipSerializer(serializers.ModelSerializer):
    residence_name = serializers.CharField(source='residence.name', read_only=True)

    class Meta:
        model = ProfileResidence
        fields = ['residence', 'residence_name', 'apartment_number', 'verified']
        read_only_fields = fields


class ProfileSerializer(serializers.ModelSerializer):
    """Signed-in profile with every residence it belongs to"""
    memberships = MembershipSerializer(many=True, read_only=True)
    residence_name = serializers.CharField(source='residence.name', read_only=True, default=None)

    class Meta:
        model = User
        fields = [
            'id', 'full_name', 'email', 'phone_number', 'role', 'verified',
            'residence', 'residence_name', 'memberships',
        ]
        read_only_fields = ['id', 'email', 'role', 'verified', 'residence', 'residence_name', 'memberships']
