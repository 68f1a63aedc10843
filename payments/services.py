"""
Payment services - settlement, custom payments, status corrections and balances.
"""
from dataclasses import dataclass, asdict
from decimal import Decimal
from typing import List

from django.db import transaction
from django.utils import timezone

from audit.helpers import log_action
from audit.models import AuditLog
from core.constants import FeeStatus, NotificationType, PaymentMethod, PaymentStatus
from core.context import AuthContext
from core.exceptions import BusinessLogicError, ConflictError, NotFoundError, ValidationError
from core.permissions import has_capability
from core.services import BaseService
from core.validators import AmountValidator, PaymentMethodValidator
from fees.models import Fee
from fees.repositories import FeeRepository
from notifications.helpers import notify
from residences import access
from .models import Payment
from .repositories import PaymentRepository


@dataclass
class Balances:
    cash_on_hand: Decimal
    bank_balance: Decimal
    online_total: Decimal

    @property
    def total(self) -> Decimal:
        return self.cash_on_hand + self.bank_balance + self.online_total

    def as_dict(self):
        data = {key: str(value) for key, value in asdict(self).items()}
        data['total'] = str(self.total)
        return data


class BalanceAggregator(BaseService):
    """
    Sums completed payments into balance buckets.

    cash: cash. bank: check, transfer, bank_transfer. Online card payments are
    reported on their own and belong to neither bucket.
    """

    def __init__(self):
        super().__init__()
        self.payment_repo = PaymentRepository()

    def balances(self, residence_id: int) -> Balances:
        totals = self.payment_repo.bucket_totals(residence_id)
        return Balances(
            cash_on_hand=totals['cash'],
            bank_balance=totals['bank'],
            online_total=totals['online'],
        )

    def balances_for(self, ctx: AuthContext) -> Balances:
        residence_id = self.require(ctx, 'can_view_balances')
        return self.balances(residence_id)


class PaymentRecorder(BaseService):
    """Records payments made outside the platform and corrects their status"""

    def __init__(self):
        super().__init__()
        self.payment_repo = PaymentRepository()
        self.fee_repo = FeeRepository()

    def list_payments(self, ctx: AuthContext, method: str = None, status: str = None, user_id: int = None):
        """Syndics see the residence ledger; others see their own payments"""
        residence_id = ctx.require_residence()
        queryset = self.payment_repo.get_by_residence(residence_id)
        if not has_capability(ctx, 'can_record_payments'):
            queryset = queryset.filter(user_id=ctx.user_id)
        elif user_id:
            queryset = queryset.filter(user_id=user_id)
        if method:
            queryset = queryset.filter(method=method)
        if status:
            queryset = queryset.filter(status=status)
        return queryset

    def get_payment(self, ctx: AuthContext, payment_id: int) -> Payment:
        payment = self.list_payments(ctx).filter(id=payment_id).first()
        if payment is None:
            raise NotFoundError("Payment", payment_id)
        return payment

    @transaction.atomic
    def settle_fees(self, ctx: AuthContext, fee_ids: List[int], method: str) -> List[Payment]:
        """
        Mark outstanding fees as paid and record one completed payment per fee.

        All or nothing: when any fee is already paid the whole settlement is
        rolled back and nothing changes.
        """
        residence_id = self.require(ctx, 'can_record_payments')
        PaymentMethodValidator.validate(method, PaymentMethod.MANUAL)
        ids = sorted({int(fee_id) for fee_id in fee_ids or []})
        if not ids:
            raise ValidationError("Select at least one fee", code="REQUIRED", details={"field": "fee_ids"})

        fees = list(
            Fee.objects.select_for_update()
            .filter(id__in=ids, residence_id=residence_id)
            .order_by('id')
        )
        missing = set(ids) - {fee.id for fee in fees}
        if missing:
            raise NotFoundError("Fee", sorted(missing)[0], details={"missing": sorted(missing)})

        paid_at = timezone.now()
        updated = self.fee_repo.mark_paid(ids, paid_at)
        if updated != len(ids):
            already_paid = len(ids) - updated
            raise ConflictError(
                f"{already_paid} fee(s) already paid",
                code="ALREADY_PAID",
                details={"already_paid": [fee.id for fee in fees if fee.status == FeeStatus.PAID]},
            )

        payments = self.payment_repo.bulk_create([
            Payment(
                user_id=fee.user_id,
                residence_id=residence_id,
                fee=fee,
                amount=fee.amount,
                method=method,
                status=PaymentStatus.COMPLETED,
                paid_at=paid_at,
                verified_by_id=ctx.user_id,
            )
            for fee in fees
        ])

        total = sum((fee.amount for fee in fees), Decimal('0'))
        self.log_info("Fees settled", fee_ids=ids, method=method, total=str(total))
        log_action(
            ctx, AuditLog.ACTION_SETTLE_FEES, AuditLog.RESOURCE_FEE, None,
            f"Settled {len(ids)} fee(s) by {method} for {total}",
            metadata={'fee_ids': ids, 'method': method, 'total': str(total)},
        )
        for fee in fees:
            notify(
                fee.user_id,
                "Payment recorded",
                f"Your payment for {fee.title} ({fee.amount}) was recorded.",
                residence_id=residence_id,
                type=NotificationType.SUCCESS,
                action_data={'fee_id': fee.id},
            )
        return payments

    def record_custom_payment(self, ctx: AuthContext, resident_id: int, amount, method: str, note: str = '') -> Payment:
        """Standalone completed payment not linked to any fee"""
        residence_id = self.require(ctx, 'can_record_payments')
        PaymentMethodValidator.validate(method, PaymentMethod.CUSTOM)
        value = AmountValidator.validate_positive(amount)
        if not resident_id or not access.is_member(resident_id, residence_id):
            raise ValidationError(
                "Resident is not a member of your residence",
                code="NOT_A_MEMBER",
                details={"field": "resident_id"},
            )

        payment = self.payment_repo.create(
            user_id=resident_id,
            residence_id=residence_id,
            amount=value,
            method=method,
            status=PaymentStatus.COMPLETED,
            paid_at=timezone.now(),
            verified_by_id=ctx.user_id,
            note=note or '',
        )
        self.log_info("Custom payment recorded", payment_id=payment.id, resident_id=resident_id)
        log_action(
            ctx, AuditLog.ACTION_RECORD_PAYMENT, AuditLog.RESOURCE_PAYMENT, payment.id,
            f"Recorded {method} payment of {value}",
            metadata={'resident_id': resident_id},
        )
        return payment

    @transaction.atomic
    def declare_transfer(self, ctx: AuthContext, fee_id: int, note: str = '') -> Payment:
        """
        Resident declares a bank transfer for one of their fees.

        The payment stays pending until the syndic verifies it.
        """
        residence_id = ctx.require_residence()
        fee = self.fee_repo.get_for_update(fee_id, residence_id=residence_id, user_id=ctx.user_id)
        if fee is None:
            raise NotFoundError("Fee", fee_id)
        if fee.status == FeeStatus.PAID:
            raise ConflictError("This fee is already paid", code="ALREADY_PAID")
        if fee.payments.filter(status=PaymentStatus.PENDING).exists():
            raise ConflictError("A transfer for this fee is already awaiting verification", code="PENDING_EXISTS")

        payment = self.payment_repo.create(
            user_id=ctx.user_id,
            residence_id=residence_id,
            fee=fee,
            amount=fee.amount,
            method=PaymentMethod.BANK_TRANSFER,
            status=PaymentStatus.PENDING,
            note=note or '',
        )
        self.log_info("Transfer declared", payment_id=payment.id, fee_id=fee.id)
        residence = access.get_residence(residence_id)
        if residence and residence.syndic_id:
            notify(
                residence.syndic_id,
                "Transfer to verify",
                f"A bank transfer of {fee.amount} was declared for {fee.title}.",
                residence_id=residence_id,
                action_data={'payment_id': payment.id},
            )
        return payment

    @transaction.atomic
    def set_status(self, ctx: AuthContext, payment_id: int, new_status: str) -> Payment:
        """
        Correct a payment's status.

        pending -> completed | rejected, completed -> rejected. Completing a
        payment linked to a fee settles that fee; rejecting one reopens it.
        """
        residence_id = self.require(ctx, 'can_record_payments')
        payment = self.payment_repo.get_for_update(payment_id, residence_id=residence_id)
        if payment is None:
            raise NotFoundError("Payment", payment_id)

        allowed = PaymentStatus.TRANSITIONS.get(payment.status, [])
        if new_status not in allowed:
            raise BusinessLogicError(
                f"Cannot change a {payment.status} payment to {new_status}",
                code="INVALID_TRANSITION",
                details={"from": payment.status, "to": new_status},
            )

        previous = payment.status
        now = timezone.now()
        changes = {'status': new_status, 'verified_by_id': ctx.user_id}

        if payment.fee_id and new_status == PaymentStatus.COMPLETED:
            if self.fee_repo.mark_paid([payment.fee_id], now) != 1:
                raise ConflictError("1 fee(s) already paid", code="ALREADY_PAID")
            changes['paid_at'] = now
        elif new_status == PaymentStatus.COMPLETED:
            changes['paid_at'] = now

        if payment.fee_id and previous == PaymentStatus.COMPLETED and new_status == PaymentStatus.REJECTED:
            Fee.objects.filter(id=payment.fee_id, status=FeeStatus.PAID).update(
                status=FeeStatus.UNPAID,
                paid_at=None,
            )

        payment = self.payment_repo.update(payment, **changes)
        self.log_info("Payment status changed", payment_id=payment.id, previous=previous, status=new_status)
        log_action(
            ctx, AuditLog.ACTION_PAYMENT_STATUS, AuditLog.RESOURCE_PAYMENT, payment.id,
            f"Payment {previous} -> {new_status}",
            metadata={'fee_id': payment.fee_id},
        )
        notify(
            payment.user_id,
            "Payment verified" if new_status == PaymentStatus.COMPLETED else "Payment rejected",
            f"Your payment of {payment.amount} is now {new_status}.",
            residence_id=residence_id,
            type=NotificationType.SUCCESS if new_status == PaymentStatus.COMPLETED else NotificationType.WARNING,
            action_data={'payment_id': payment.id},
        )
        return payment
