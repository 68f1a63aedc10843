"""
Audit trail serializers (read-only)
"""
from rest_framework import serializers

from audit.models import AuditLog


class AuditLogSerializer(serializers.ModelSerializer):
    """System jobs have no user and show as 'System'"""

    user_display = serializers.CharField(read_only=True)
    action_display = serializers.CharField(source='get_action_display', read_only=True)
    resource_label = serializers.CharField(source='get_resource_type_display', read_only=True)
    residence_name = serializers.CharField(source='residence.name', read_only=True, default=None)

    class Meta:
        model = AuditLog
        fields = [
            'id', 'residence', 'residence_name',
            'user', 'user_display',
            'action', 'action_display',
            'resource_type', 'resource_label', 'resource_id',
            'description', 'metadata', 'ip_address', 'timestamp',
        ]
        read_only_fields = fields
