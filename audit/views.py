"""
Audit Log API Views

Read-only access to the audit trail of the caller's residence.
"""

from rest_framework import viewsets
from rest_framework.decorators import action
from rest_framework.response import Response

from audit.models import AuditLog
from audit.serializers import AuditLogSerializer
from core.context import AuthContext
from core.permissions import require_capability
from core.exceptions import ValidationError


class AuditLogViewSet(viewsets.ReadOnlyModelViewSet):
    """
    Syndic-only audit trail.

    Filters: ?action=, ?resource_type=
    """

    serializer_class = AuditLogSerializer

    def get_queryset(self):
        ctx = AuthContext.from_request(self.request)
        require_capability(ctx, 'can_view_audit_log')
        queryset = AuditLog.objects.for_residence(ctx.require_residence()).select_related('user', 'residence')

        action_filter = self.request.query_params.get('action')
        if action_filter:
            queryset = queryset.for_action(action_filter)
        resource_type = self.request.query_params.get('resource_type')
        if resource_type:
            queryset = queryset.filter(resource_type=resource_type)
        return queryset

    @action(detail=False, methods=['get'])
    def resource_trail(self, request):
        """
        Audit trail of one resource.

        Example: GET /api/audit/resource_trail/?resource_type=Fee&resource_id=12
        """
        resource_type = request.query_params.get('resource_type')
        resource_id = request.query_params.get('resource_id')
        if not resource_type or not resource_id:
            raise ValidationError(
                "Both resource_type and resource_id are required",
                code="REQUIRED",
            )

        queryset = self.get_queryset().for_resource(resource_type, resource_id)
        serializer = self.get_serializer(queryset, many=True)
        return Response({
            'resource_type': resource_type,
            'resource_id': resource_id,
            'audit_trail': serializer.data,
            'count': len(serializer.data),
        })
