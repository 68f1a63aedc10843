from rest_framework import viewsets, status
from rest_framework.decorators import action
from rest_framework.response import Response

from api.mixins import AuthContextMixin
from api.permissions import IsSyndic
from .serializers import (
    ResidentSerializer,
    ResidentWriteSerializer,
    CheckEmailSerializer,
    CheckApartmentSerializer,
)
from .services import ResidentDirectoryService


class ResidentViewSet(AuthContextMixin, viewsets.ModelViewSet):
    """
    Residents and guards of the syndic's residence, addressed by profile id.

    Filters: ?role=resident|guard, ?search=
    """
    permission_classes = [IsSyndic]
    serializer_class = ResidentSerializer
    lookup_value_regex = r'\d+'
    service = ResidentDirectoryService()

    def get_queryset(self):
        return self.service.list_members(
            self.ctx,
            role=self.request.query_params.get('role'),
            search=self.request.query_params.get('search'),
        )

    def get_object(self):
        return self.service.get_member(self.ctx, self.kwargs['pk'])

    def create(self, request, *args, **kwargs):
        serializer = ResidentWriteSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        result = self.service.create_resident(self.ctx, serializer.to_dto())
        data = {
            'success': True,
            'resident': ResidentSerializer(result.membership).data,
            'inherited_fields': result.inherited_fields,
        }
        if result.joined_existing:
            data['message'] = "Existing profile added to your residence; identity fields were kept"
        return Response(data, status=status.HTTP_201_CREATED)

    def update(self, request, *args, **kwargs):
        kwargs.pop('partial', None)
        serializer = ResidentWriteSerializer(data=request.data, partial=True)
        serializer.is_valid(raise_exception=True)
        membership = self.service.update_resident(self.ctx, int(kwargs['pk']), serializer.to_dto())
        return Response(ResidentSerializer(membership).data)

    def destroy(self, request, *args, **kwargs):
        outcome = self.service.delete_resident(self.ctx, int(kwargs['pk']))
        return Response({'success': True, 'outcome': outcome})

    @action(detail=False, methods=['post'], url_path='check-email')
    def check_email(self, request):
        """Which fields are locked for an email already known in any residence"""
        serializer = CheckEmailSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        match = self.service.lookup_identity(self.ctx, serializer.validated_data['email'])
        return Response(match.as_dict())

    @action(detail=False, methods=['post'], url_path='check-apartment')
    def check_apartment(self, request):
        serializer = CheckApartmentSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        return Response(self.service.check_apartment(
            self.ctx,
            serializer.validated_data['apartment_number'],
            serializer.validated_data.get('exclude'),
        ))
