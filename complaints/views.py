from rest_framework import viewsets, status, mixins
from rest_framework.decorators import action
from rest_framework.parsers import JSONParser, MultiPartParser, FormParser
from rest_framework.response import Response

from api.mixins import AuthContextMixin
from api.permissions import HasResidence, IsSyndic
from .serializers import (
    ComplaintSerializer,
    ComplaintCreateSerializer,
    ComplaintStatusSerializer,
    ComplainableResidentSerializer,
)
from .services import ComplaintService


def _upload_warning(result):
    if not result.failed:
        return None
    return f"Complaint created but {len(result.failed)} of {result.total} evidence uploads failed"


class ComplaintViewSet(AuthContextMixin,
                       mixins.ListModelMixin,
                       mixins.RetrieveModelMixin,
                       viewsets.GenericViewSet):
    """
    Complaints between residents.

    Residents file complaints (multipart with 'evidence' files, or JSON);
    syndics review them. Filter: ?status=
    """
    permission_classes = [HasResidence]
    serializer_class = ComplaintSerializer
    parser_classes = [JSONParser, MultiPartParser, FormParser]
    lookup_value_regex = r'\d+'
    service = ComplaintService()

    def get_permissions(self):
        if self.action == 'update_status':
            return [IsSyndic()]
        return super().get_permissions()

    def get_serializer_context(self):
        context = super().get_serializer_context()
        context['ctx'] = self.ctx
        return context

    def get_queryset(self):
        return self.service.list_for_viewer(self.ctx, status=self.request.query_params.get('status'))

    def get_object(self):
        return self.service.get_for_viewer(self.ctx, self.kwargs['pk'])

    def create(self, request, *args, **kwargs):
        serializer = ComplaintCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        complaint, uploads = self.service.create_complaint(
            self.ctx,
            serializer.to_dto(),
            files=request.FILES.getlist('evidence'),
        )
        data = {
            'success': True,
            'complaint': self.get_serializer(complaint).data,
            'uploaded': len(uploads.uploaded),
            'failed': uploads.failed,
        }
        warning = _upload_warning(uploads)
        if warning:
            data['warning'] = warning
        return Response(data, status=status.HTTP_201_CREATED)

    @action(detail=True, methods=['post'], url_path='status')
    def update_status(self, request, pk=None):
        serializer = ComplaintStatusSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        complaint = self.service.update_status(
            self.ctx,
            pk,
            serializer.validated_data['status'],
            serializer.validated_data.get('resolution_notes'),
        )
        return Response(self.get_serializer(complaint).data)

    @action(detail=True, methods=['post'])
    def evidence(self, request, pk=None):
        uploads = self.service.add_evidence(self.ctx, pk, request.FILES.getlist('evidence'))
        data = {'success': not uploads.failed, 'uploaded': len(uploads.uploaded), 'failed': uploads.failed}
        if uploads.failed:
            data['warning'] = f"{len(uploads.failed)} of {uploads.total} evidence uploads failed"
        return Response(data)

    @action(detail=False, methods=['get'])
    def residents(self, request):
        """Residents the caller can file a complaint about"""
        members = self.service.complainable_residents(self.ctx)
        return Response(ComplainableResidentSerializer(members, many=True).data)
