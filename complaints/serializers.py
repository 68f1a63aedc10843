from rest_framework import serializers
from core.constants import ComplaintPrivacy, ComplaintReason, ComplaintStatus
from core.dto import ComplaintDTO
from .models import Complaint, ComplaintEvidence
from .visibility import complainant_label, reveals_complainant, can_view_evidence


class ComplaintEvidenceSerializer(serializers.ModelSerializer):
    class Meta:
        model = ComplaintEvidence
        fields = ['id', 'file_url', 'file_name', 'file_type', 'file_size', 'mime_type', 'created_at']
        read_only_fields = fields


class ComplaintSerializer(serializers.ModelSerializer):
    """
    Complaint as seen by the viewer in context['ctx'].

    The complainant is labelled by the visibility policy and evidence is only
    serialized for syndics.
    """
    complainant = serializers.SerializerMethodField()
    complainant_id = serializers.SerializerMethodField()
    complained_about_name = serializers.CharField(source='complained_about.display_name', read_only=True)
    evidence = serializers.SerializerMethodField()

    class Meta:
        model = Complaint
        fields = [
            'id', 'title', 'description', 'reason', 'privacy', 'status', 'resolution_notes',
            'complainant', 'complainant_id', 'complained_about', 'complained_about_name',
            'evidence', 'reviewed_at', 'resolved_at', 'created_at', 'updated_at',
        ]
        read_only_fields = fields

    def _viewer(self):
        ctx = self.context['ctx']
        return ctx.user_id, ctx.role

    def get_complainant(self, obj):
        return complainant_label(obj, *self._viewer())

    def get_complainant_id(self, obj):
        if reveals_complainant(obj, *self._viewer()):
            return obj.complainant_id
        return None

    def get_evidence(self, obj):
        _, role = self._viewer()
        if not can_view_evidence(role):
            return None
        return ComplaintEvidenceSerializer(obj.evidence.all(), many=True).data


class ComplaintCreateSerializer(serializers.Serializer):
    complained_about_id = serializers.IntegerField(min_value=1)
    reason = serializers.ChoiceField(choices=ComplaintReason.CHOICES)
    privacy = serializers.ChoiceField(choices=ComplaintPrivacy.CHOICES, default=ComplaintPrivacy.PRIVATE)
    title = serializers.CharField(max_length=255)
    description = serializers.CharField()

    def to_dto(self) -> ComplaintDTO:
        return ComplaintDTO(**self.validated_data)


class ComplaintStatusSerializer(serializers.Serializer):
    status = serializers.ChoiceField(choices=ComplaintStatus.CHOICES)
    resolution_notes = serializers.CharField(required=False, allow_blank=True)


class ComplainableResidentSerializer(serializers.Serializer):
    id = serializers.IntegerField(source='profile.id')
    full_name = serializers.CharField(source='profile.display_name')
    apartment_number = serializers.CharField()
