from rest_framework import viewsets, status
from rest_framework.decorators import action
from rest_framework.parsers import JSONParser, MultiPartParser, FormParser
from rest_framework.response import Response

from api.mixins import AuthContextMixin
from api.permissions import HasResidence, IsSyndic
from core.exceptions import ValidationError
from .serializers import IncidentSerializer, IncidentWriteSerializer, AssignableUserSerializer
from .services import IncidentService


class IncidentViewSet(AuthContextMixin, viewsets.ModelViewSet):
    """
    Residence incidents.

    Every member reports incidents; syndics assign them and move their
    status. Filter: ?status=
    """
    permission_classes = [HasResidence]
    serializer_class = IncidentSerializer
    parser_classes = [JSONParser, MultiPartParser, FormParser]
    lookup_value_regex = r'\d+'
    http_method_names = ['get', 'post', 'patch', 'delete', 'head', 'options']
    service = IncidentService()

    def get_permissions(self):
        if self.action in ('destroy', 'assignable_users'):
            return [IsSyndic()]
        return super().get_permissions()

    def get_queryset(self):
        return self.service.list_for_viewer(self.ctx, status=self.request.query_params.get('status'))

    def get_object(self):
        return self.service.get_for_viewer(self.ctx, self.kwargs['pk'])

    def create(self, request, *args, **kwargs):
        serializer = IncidentWriteSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        dto = serializer.to_dto()
        if dto.status or dto.assigned_to_id:
            raise ValidationError("Status and assignment are set after reporting", code="INVALID_FIELDS")
        incident = self.service.create_incident(self.ctx, dto, photo=request.FILES.get('photo'))
        return Response(IncidentSerializer(incident).data, status=status.HTTP_201_CREATED)

    def partial_update(self, request, *args, **kwargs):
        serializer = IncidentWriteSerializer(data=request.data, partial=True)
        serializer.is_valid(raise_exception=True)
        incident = self.service.update_incident(
            self.ctx,
            int(kwargs['pk']),
            serializer.to_dto(),
            photo=request.FILES.get('photo'),
        )
        return Response(IncidentSerializer(incident).data)

    def destroy(self, request, *args, **kwargs):
        self.service.delete_incident(self.ctx, int(kwargs['pk']))
        return Response(status=status.HTTP_204_NO_CONTENT)

    @action(detail=False, methods=['get'], url_path='assignable-users')
    def assignable_users(self, request):
        members = self.service.assignable_users(self.ctx)
        return Response(AssignableUserSerializer(members, many=True).data)
