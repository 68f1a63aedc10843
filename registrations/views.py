from rest_framework import viewsets, status, mixins
from rest_framework.decorators import action
from rest_framework.permissions import AllowAny
from rest_framework.response import Response

from api.mixins import AuthContextMixin
from api.permissions import IsSyndic
from .serializers import (
    RegistrationRequestSerializer,
    RegistrationSubmitSerializer,
    RegistrationRejectSerializer,
)
from .services import RegistrationService


class RegistrationRequestViewSet(AuthContextMixin,
                                 mixins.ListModelMixin,
                                 mixins.RetrieveModelMixin,
                                 viewsets.GenericViewSet):
    """
    Requests to join a residence.

    POST is open to anyone; listing and review are syndic-only.
    Filter: ?status=pending|approved|rejected
    """
    permission_classes = [IsSyndic]
    serializer_class = RegistrationRequestSerializer
    lookup_value_regex = r'\d+'
    service = RegistrationService()

    def get_permissions(self):
        if self.action == 'create':
            return [AllowAny()]
        return super().get_permissions()

    def get_queryset(self):
        return self.service.list_requests(self.ctx, status=self.request.query_params.get('status'))

    def get_object(self):
        return self.service.get_request(self.ctx, self.kwargs['pk'])

    def create(self, request, *args, **kwargs):
        serializer = RegistrationSubmitSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        registration = self.service.submit(serializer.to_dto())
        return Response({
            'success': True,
            'message': "Your request was sent to the syndic",
            'request': {'id': registration.id, 'status': registration.status},
        }, status=status.HTTP_201_CREATED)

    @action(detail=True, methods=['post'])
    def approve(self, request, pk=None):
        registration = self.service.approve(self.ctx, pk)
        return Response(self.get_serializer(registration).data)

    @action(detail=True, methods=['post'])
    def reject(self, request, pk=None):
        serializer = RegistrationRejectSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        registration = self.service.reject(self.ctx, pk, serializer.validated_data['reason'])
        return Response(self.get_serializer(registration).data)
