from rest_framework import serializers
from .models import Residence


class ResidenceSerializer(serializers.ModelSerializer):
    """Serializer for Residence"""
    syndic_name = serializers.CharField(source='syndic.display_name', read_only=True, default=None)

    class Meta:
        model = Residence
        fields = ['id', 'name', 'address', 'city', 'bank_rib', 'syndic', 'syndic_name', 'created_at', 'updated_at']
        read_only_fields = ['id', 'syndic', 'syndic_name', 'created_at', 'updated_at']
