from django.http import HttpResponse
from rest_framework import viewsets, status
from rest_framework.decorators import action
from rest_framework.response import Response

from api.mixins import AuthContextMixin
from api.permissions import HasResidence, IsSyndic
from core.constants import PaymentStatus
from .receipts import build_cash_receipt
from .serializers import (
    PaymentSerializer,
    SettleFeesSerializer,
    CustomPaymentSerializer,
    DeclareTransferSerializer,
)
from .services import PaymentRecorder, BalanceAggregator


class PaymentViewSet(AuthContextMixin, viewsets.ReadOnlyModelViewSet):
    """
    Payment ledger.

    Syndics record and correct payments; residents list their own and declare transfers.
    Filters: ?method=, ?status=, ?resident=
    """
    permission_classes = [HasResidence]
    serializer_class = PaymentSerializer
    lookup_value_regex = r'\d+'
    recorder = PaymentRecorder()

    def get_permissions(self):
        if self.action in ('settle', 'custom', 'verify', 'reject', 'balances'):
            return [IsSyndic()]
        return super().get_permissions()

    def get_queryset(self):
        resident = self.request.query_params.get('resident')
        return self.recorder.list_payments(
            self.ctx,
            method=self.request.query_params.get('method'),
            status=self.request.query_params.get('status'),
            user_id=int(resident) if resident and resident.isdigit() else None,
        )

    def get_object(self):
        return self.recorder.get_payment(self.ctx, self.kwargs['pk'])

    @action(detail=False, methods=['post'])
    def settle(self, request):
        """Mark the selected fees paid and record one payment per fee"""
        serializer = SettleFeesSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        payments = self.recorder.settle_fees(
            self.ctx,
            serializer.validated_data['fee_ids'],
            serializer.validated_data['method'],
        )
        return Response({
            'success': True,
            'message': f"{len(payments)} fee(s) marked as paid",
            'payments': PaymentSerializer(payments, many=True).data,
        }, status=status.HTTP_201_CREATED)

    @action(detail=False, methods=['post'])
    def custom(self, request):
        serializer = CustomPaymentSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        payment = self.recorder.record_custom_payment(self.ctx, **serializer.validated_data)
        return Response(PaymentSerializer(payment).data, status=status.HTTP_201_CREATED)

    @action(detail=False, methods=['post'])
    def declare(self, request):
        """Resident declares a bank transfer for one of their fees"""
        serializer = DeclareTransferSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        payment = self.recorder.declare_transfer(self.ctx, **serializer.validated_data)
        return Response(PaymentSerializer(payment).data, status=status.HTTP_201_CREATED)

    @action(detail=True, methods=['post'])
    def verify(self, request, pk=None):
        payment = self.recorder.set_status(self.ctx, pk, PaymentStatus.COMPLETED)
        return Response(PaymentSerializer(payment).data)

    @action(detail=True, methods=['post'])
    def reject(self, request, pk=None):
        payment = self.recorder.set_status(self.ctx, pk, PaymentStatus.REJECTED)
        return Response(PaymentSerializer(payment).data)

    @action(detail=False, methods=['get'])
    def balances(self, request):
        """Cash on hand and bank balance from completed payments"""
        return Response(BalanceAggregator().balances_for(self.ctx).as_dict())

    @action(detail=True, methods=['get'])
    def receipt(self, request, pk=None):
        """Download the PDF receipt of a completed cash payment"""
        payment = self.get_object()
        pdf = build_cash_receipt(payment)
        response = HttpResponse(pdf, content_type='application/pdf')
        response['Content-Disposition'] = f'attachment; filename="receipt-{payment.receipt_number}.pdf"'
        return response
