from rest_framework import viewsets
from rest_framework.decorators import action
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from api.mixins import AuthContextMixin
from api.permissions import IsSyndic
from users.serializers import ProfileSerializer
from .serializers import ResidenceSerializer
from .services import ResidenceService


class ResidenceViewSet(AuthContextMixin, viewsets.ReadOnlyModelViewSet):
    """
    Residences of the signed-in user.

    GET/PATCH current/ reads or edits the residence the user acts in (PATCH:
    syndic only); POST {id}/switch/ changes it.
    """
    serializer_class = ResidenceSerializer
    permission_classes = [IsAuthenticated]
    lookup_value_regex = r'\d+'
    service = ResidenceService()

    def get_permissions(self):
        if self.action == 'current' and self.request.method == 'PATCH':
            return [IsSyndic()]
        return super().get_permissions()

    def get_queryset(self):
        return self.service.for_user(self.ctx)

    @action(detail=False, methods=['get', 'patch'])
    def current(self, request):
        """Get or edit the current user's residence"""
        if request.method == 'PATCH':
            serializer = self.get_serializer(data=request.data, partial=True)
            serializer.is_valid(raise_exception=True)
            residence = self.service.update_current(self.ctx, serializer.validated_data)
        else:
            residence = self.service.current(self.ctx)
        return Response(self.get_serializer(residence).data)

    @action(detail=True, methods=['post'])
    def switch(self, request, pk=None):
        user = self.service.switch(self.ctx, int(pk))
        return Response({'success': True, 'profile': ProfileSerializer(user).data})
