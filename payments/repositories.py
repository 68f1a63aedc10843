"""
Payment repository - Data access layer for the payment ledger.
"""
from decimal import Decimal
from django.db.models import QuerySet, Sum, Q, Value, DecimalField
from django.db.models.functions import Coalesce
from core.constants import PaymentMethod, PaymentStatus
from core.repositories import BaseRepository
from .models import Payment


def _bucket_sum(methods):
    return Coalesce(
        Sum('amount', filter=Q(method__in=methods)),
        Value(Decimal('0.00')),
        output_field=DecimalField(max_digits=12, decimal_places=2),
    )


class PaymentRepository(BaseRepository[Payment]):
    """Repository for Payment model"""

    def __init__(self):
        super().__init__(Payment)

    def get_by_residence(self, residence_id: int) -> QuerySet[Payment]:
        return self.get_all(residence_id=residence_id).select_related('user', 'fee', 'verified_by')

    def bucket_totals(self, residence_id: int) -> dict:
        """Completed payment totals per balance bucket, in a single aggregate query"""
        return self.get_all(
            residence_id=residence_id,
            status=PaymentStatus.COMPLETED,
        ).aggregate(
            cash=_bucket_sum(PaymentMethod.CASH_BUCKET),
            bank=_bucket_sum(PaymentMethod.BANK_BUCKET),
            online=_bucket_sum(PaymentMethod.ONLINE_BUCKET),
        )
