from rest_framework import viewsets, status, mixins
from rest_framework.decorators import action
from rest_framework.response import Response

from api.mixins import AuthContextMixin
from api.permissions import HasResidence, IsSyndic
from core.constants import FeeStatus
from .serializers import (
    FeeRuleSerializer,
    FeeRuleWriteSerializer,
    GenerateFeesSerializer,
    FeeSerializer,
    FeeWriteSerializer,
    BulkFeeSerializer,
)
from .services import FeeRuleService, PeriodGenerator, FeeService


class FeeRuleViewSet(AuthContextMixin, viewsets.ModelViewSet):
    """
    Recurring fee rules of the syndic's residence.

    POST /{id}/generate/ materialises the current billing period.
    """
    permission_classes = [IsSyndic]
    lookup_value_regex = r'\d+'
    serializer_class = FeeRuleSerializer
    service = FeeRuleService()

    def get_queryset(self):
        return self.service.list_rules(self.ctx).select_related('residence')

    def get_object(self):
        return self.service.get_rule(self.ctx, self.kwargs['pk'])

    def create(self, request, *args, **kwargs):
        serializer = FeeRuleWriteSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        rule = self.service.create_rule(self.ctx, serializer.to_dto())
        return Response(FeeRuleSerializer(rule).data, status=status.HTTP_201_CREATED)

    def update(self, request, *args, **kwargs):
        partial = kwargs.pop('partial', False)
        serializer = FeeRuleWriteSerializer(data=request.data, partial=partial)
        serializer.is_valid(raise_exception=True)
        rule = self.service.update_rule(self.ctx, kwargs['pk'], serializer.validated_data)
        return Response(FeeRuleSerializer(rule).data)

    def destroy(self, request, *args, **kwargs):
        outcome = self.service.delete_rule(self.ctx, kwargs['pk'])
        if outcome == 'deactivated':
            return Response({
                'success': True,
                'outcome': outcome,
                'message': "Fee rule has generated fees and was deactivated instead of deleted",
            })
        return Response(status=status.HTTP_204_NO_CONTENT)

    @action(detail=True, methods=['post'])
    def generate(self, request, pk=None):
        """Generate fees of the current period for every resident lacking one"""
        serializer = GenerateFeesSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        result = PeriodGenerator().generate(self.ctx, int(pk), anchor=serializer.validated_data.get('anchor'))
        message = (
            f"Generated {result.created} fee(s)" if result.created
            else "All residents already have a fee for this period"
        )
        return Response({'success': True, 'message': message, **result.as_dict()})

    @action(detail=True, methods=['get'])
    def fees(self, request, pk=None):
        rule = self.get_object()
        queryset = rule.fees.select_related('user', 'rule').order_by('-period_start', 'user__full_name')
        return self.paginated(queryset, FeeSerializer)


class FeeViewSet(AuthContextMixin, viewsets.ModelViewSet):
    """
    Fee ledger.

    Syndics manage ad hoc fees and see the whole residence; residents see their own fees.
    Filters: ?status=unpaid|paid|overdue, ?resident=<id>
    """
    permission_classes = [HasResidence]
    lookup_value_regex = r'\d+'
    serializer_class = FeeSerializer
    service = FeeService()

    def get_queryset(self):
        resident = self.request.query_params.get('resident')
        return self.service.list_fees(
            self.ctx,
            status=self.request.query_params.get('status'),
            user_id=int(resident) if resident and resident.isdigit() else None,
        )

    def get_object(self):
        return self.service.get_fee(self.ctx, self.kwargs['pk'])

    def create(self, request, *args, **kwargs):
        serializer = FeeWriteSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        fee = self.service.create_fee(self.ctx, serializer.to_dto())
        return Response(FeeSerializer(fee).data, status=status.HTTP_201_CREATED)

    def update(self, request, *args, **kwargs):
        kwargs.pop('partial', None)
        serializer = FeeWriteSerializer(data=request.data, partial=True)
        serializer.is_valid(raise_exception=True)
        fee = self.service.update_fee(self.ctx, kwargs['pk'], serializer.to_dto())
        return Response(FeeSerializer(fee).data)

    def destroy(self, request, *args, **kwargs):
        self.service.delete_fee(self.ctx, kwargs['pk'])
        return Response(status=status.HTTP_204_NO_CONTENT)

    @action(detail=False, methods=['post'])
    def bulk(self, request):
        """One exceptional fee for each selected apartment"""
        serializer = BulkFeeSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        result = self.service.create_bulk_fees(self.ctx, **serializer.validated_data)
        return Response({
            'success': True,
            'message': f"Created {len(result.fees)} fee(s)",
            'fees': FeeSerializer(result.fees, many=True).data,
            **result.as_dict(),
        }, status=status.HTTP_201_CREATED)

    @action(detail=False, methods=['get'])
    def unpaid(self, request):
        """Outstanding fees of one resident (?resident=<id>), for the settlement form"""
        resident = request.query_params.get('resident', '')
        if not resident.isdigit():
            return Response(
                {'success': False, 'error': 'resident query parameter is required', 'code': 'REQUIRED'},
                status=status.HTTP_400_BAD_REQUEST,
            )
        fees = self.service.unpaid_for_resident(self.ctx, int(resident))
        data = FeeSerializer(fees, many=True).data
        total = sum(fee.amount for fee in fees)
        return Response({
            'fees': data,
            'count': len(fees),
            'total': str(total),
            'overdue_count': sum(1 for fee in fees if fee.effective_status == FeeStatus.OVERDUE),
        })


class ContributionViewSet(AuthContextMixin, mixins.DestroyModelMixin, viewsets.GenericViewSet):
    """DELETE /api/contributions/{id}/ - fee deletion, refused while payments reference the fee"""
    permission_classes = [IsSyndic]
    lookup_value_regex = r'\d+'

    def destroy(self, request, *args, **kwargs):
        FeeService().delete_fee(self.ctx, kwargs['pk'])
        return Response(status=status.HTTP_204_NO_CONTENT)
