from rest_framework import serializers
from core.constants import IncidentStatus
from core.dto import IncidentDTO
from .models import Incident


class IncidentSerializer(serializers.ModelSerializer):
    reporter_name = serializers.CharField(source='user.display_name', read_only=True)
    assigned_to_name = serializers.CharField(source='assigned_to.display_name', read_only=True, default=None)
    status_display = serializers.CharField(source='get_status_display', read_only=True)

    class Meta:
        model = Incident
        fields = [
            'id', 'title', 'description', 'photo_url', 'status', 'status_display',
            'user', 'reporter_name', 'assigned_to', 'assigned_to_name',
            'resolved_at', 'created_at', 'updated_at',
        ]
        read_only_fields = fields


class IncidentWriteSerializer(serializers.Serializer):
    """Fields accepted on report and edit; the photo travels as a multipart file"""
    title = serializers.CharField(max_length=255, required=False)
    description = serializers.CharField(required=False)
    status = serializers.ChoiceField(choices=IncidentStatus.CHOICES, required=False)
    assigned_to_id = serializers.IntegerField(min_value=1, required=False, allow_null=True)
    photo = serializers.FileField(required=False, write_only=True)

    def to_dto(self) -> IncidentDTO:
        data = dict(self.validated_data)
        data.pop('photo', None)
        clear = 'assigned_to_id' in data and data['assigned_to_id'] is None
        if clear:
            data.pop('assigned_to_id')
        return IncidentDTO(clear_assignment=clear, **data)


class AssignableUserSerializer(serializers.Serializer):
    id = serializers.IntegerField(source='profile.id')
    full_name = serializers.CharField(source='profile.display_name')
    role = serializers.CharField(source='profile.role')
