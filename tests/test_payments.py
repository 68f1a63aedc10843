from decimal import Decimal

from django.test import TestCase

from core.constants import FeeStatus, PaymentMethod, PaymentStatus
from core.exceptions import BusinessLogicError, ConflictError, NotFoundError, PermissionDeniedError, ValidationError
from fees.models import Fee
from payments.models import Payment
from payments.receipts import build_cash_receipt
from payments.services import BalanceAggregator, PaymentRecorder
from .factories import make_residence, make_member, make_fee, ctx_for


class SettlementTests(TestCase):

    def setUp(self):
        self.residence, self.syndic = make_residence()
        self.alice = make_member(self.residence, "alice@example.com", apartment="1")
        self.ctx = ctx_for(self.syndic)
        self.recorder = PaymentRecorder()

    def test_settle_marks_fees_paid_and_records_payments(self):
        first = make_fee(self.residence, self.alice, amount="100")
        second = make_fee(self.residence, self.alice, amount="150")

        payments = self.recorder.settle_fees(self.ctx, [first.id, second.id], PaymentMethod.CASH)

        self.assertEqual(len(payments), 2)
        self.assertEqual(
            set(Fee.objects.filter(id__in=[first.id, second.id]).values_list('status', flat=True)),
            {FeeStatus.PAID},
        )
        payment = Payment.objects.get(fee=first)
        self.assertEqual(payment.status, PaymentStatus.COMPLETED)
        self.assertEqual(payment.amount, Decimal("100"))
        self.assertEqual(payment.verified_by_id, self.syndic.id)

    def test_no_double_settlement(self):
        fee = make_fee(self.residence, self.alice)
        self.recorder.settle_fees(self.ctx, [fee.id], PaymentMethod.CASH)

        with self.assertRaises(ConflictError) as caught:
            self.recorder.settle_fees(self.ctx, [fee.id], PaymentMethod.CHECK)

        self.assertEqual(caught.exception.message, "1 fee(s) already paid")
        self.assertEqual(Payment.objects.filter(fee=fee).count(), 1)

    def test_partial_conflict_rolls_back_everything(self):
        paid = make_fee(self.residence, self.alice, status=FeeStatus.PAID)
        open_fee = make_fee(self.residence, self.alice)

        with self.assertRaises(ConflictError):
            self.recorder.settle_fees(self.ctx, [paid.id, open_fee.id], PaymentMethod.CASH)

        open_fee.refresh_from_db()
        self.assertEqual(open_fee.status, FeeStatus.UNPAID)
        self.assertFalse(Payment.objects.exists())

    def test_online_method_not_accepted_for_settlement(self):
        fee = make_fee(self.residence, self.alice)
        with self.assertRaises(ValidationError):
            self.recorder.settle_fees(self.ctx, [fee.id], PaymentMethod.ONLINE_CARD)

    def test_fees_of_other_residence_not_found(self):
        other, other_syndic = make_residence("Other Court")
        fee = make_fee(self.residence, self.alice)
        with self.assertRaises(NotFoundError):
            self.recorder.settle_fees(ctx_for(other_syndic), [fee.id], PaymentMethod.CASH)

    def test_residents_cannot_settle(self):
        fee = make_fee(self.residence, self.alice)
        with self.assertRaises(PermissionDeniedError):
            self.recorder.settle_fees(ctx_for(self.alice), [fee.id], PaymentMethod.CASH)


class BalanceTests(TestCase):

    def setUp(self):
        self.residence, self.syndic = make_residence()
        self.alice = make_member(self.residence, "alice@example.com", apartment="1")
        self.ctx = ctx_for(self.syndic)
        self.recorder = PaymentRecorder()

    def test_balance_buckets(self):
        self.recorder.record_custom_payment(self.ctx, self.alice.id, "100", PaymentMethod.CASH)
        self.recorder.record_custom_payment(self.ctx, self.alice.id, "200", PaymentMethod.CHECK)
        self.recorder.record_custom_payment(self.ctx, self.alice.id, "300", PaymentMethod.BANK_TRANSFER)
        Payment.objects.create(
            user=self.alice, residence=self.residence, amount=Decimal("400"),
            method=PaymentMethod.ONLINE_CARD, status=PaymentStatus.COMPLETED,
        )
        Payment.objects.create(
            user=self.alice, residence=self.residence, amount=Decimal("999"),
            method=PaymentMethod.CASH, status=PaymentStatus.PENDING,
        )

        balances = BalanceAggregator().balances_for(self.ctx)

        self.assertEqual(balances.cash_on_hand, Decimal("100"))
        self.assertEqual(balances.bank_balance, Decimal("500"))
        self.assertEqual(balances.online_total, Decimal("400"))
        self.assertEqual(Decimal(balances.as_dict()['total']), Decimal("1000"))

    def test_empty_residence_balances_are_zero(self):
        balances = BalanceAggregator().balances(self.residence.id)
        self.assertEqual(balances.total, Decimal("0"))

    def test_custom_payment_requires_member(self):
        _, outsider = make_residence("Elsewhere")
        with self.assertRaises(ValidationError):
            self.recorder.record_custom_payment(self.ctx, outsider.id, "50", PaymentMethod.CASH)

    def test_custom_payment_rejects_non_positive_amount(self):
        with self.assertRaises(ValidationError):
            self.recorder.record_custom_payment(self.ctx, self.alice.id, "0", PaymentMethod.CASH)


class TransferVerificationTests(TestCase):

    def setUp(self):
        self.residence, self.syndic = make_residence()
        self.alice = make_member(self.residence, "alice@example.com", apartment="1")
        self.syndic_ctx = ctx_for(self.syndic)
        self.alice_ctx = ctx_for(self.alice)
        self.recorder = PaymentRecorder()
        self.fee = make_fee(self.residence, self.alice, amount="250")

    def test_declared_transfer_is_pending(self):
        payment = self.recorder.declare_transfer(self.alice_ctx, self.fee.id, note="Ref 42")
        self.assertEqual(payment.status, PaymentStatus.PENDING)
        self.assertEqual(payment.method, PaymentMethod.BANK_TRANSFER)
        self.fee.refresh_from_db()
        self.assertEqual(self.fee.status, FeeStatus.UNPAID)

    def test_second_declaration_refused(self):
        self.recorder.declare_transfer(self.alice_ctx, self.fee.id)
        with self.assertRaises(ConflictError):
            self.recorder.declare_transfer(self.alice_ctx, self.fee.id)

    def test_verify_settles_the_fee(self):
        payment = self.recorder.declare_transfer(self.alice_ctx, self.fee.id)

        payment = self.recorder.set_status(self.syndic_ctx, payment.id, PaymentStatus.COMPLETED)

        self.assertEqual(payment.status, PaymentStatus.COMPLETED)
        self.assertIsNotNone(payment.paid_at)
        self.fee.refresh_from_db()
        self.assertEqual(self.fee.status, FeeStatus.PAID)
        self.assertEqual(BalanceAggregator().balances(self.residence.id).bank_balance, Decimal("250"))

    def test_verify_refused_when_fee_paid_meanwhile(self):
        payment = self.recorder.declare_transfer(self.alice_ctx, self.fee.id)
        self.recorder.settle_fees(self.syndic_ctx, [self.fee.id], PaymentMethod.CASH)

        with self.assertRaises(ConflictError):
            self.recorder.set_status(self.syndic_ctx, payment.id, PaymentStatus.COMPLETED)
        payment.refresh_from_db()
        self.assertEqual(payment.status, PaymentStatus.PENDING)

    def test_rejecting_completed_payment_reopens_fee(self):
        payment = self.recorder.declare_transfer(self.alice_ctx, self.fee.id)
        self.recorder.set_status(self.syndic_ctx, payment.id, PaymentStatus.COMPLETED)

        self.recorder.set_status(self.syndic_ctx, payment.id, PaymentStatus.REJECTED)

        self.fee.refresh_from_db()
        self.assertEqual(self.fee.status, FeeStatus.UNPAID)
        self.assertIsNone(self.fee.paid_at)

    def test_rejected_is_final(self):
        payment = self.recorder.declare_transfer(self.alice_ctx, self.fee.id)
        self.recorder.set_status(self.syndic_ctx, payment.id, PaymentStatus.REJECTED)
        with self.assertRaises(BusinessLogicError) as caught:
            self.recorder.set_status(self.syndic_ctx, payment.id, PaymentStatus.COMPLETED)
        self.assertEqual(caught.exception.code, "INVALID_TRANSITION")


class ReceiptTests(TestCase):

    def setUp(self):
        self.residence, self.syndic = make_residence()
        self.alice = make_member(self.residence, "alice@example.com", apartment="1")
        self.ctx = ctx_for(self.syndic)

    def test_cash_receipt_is_a_pdf(self):
        fee = make_fee(self.residence, self.alice)
        payment = PaymentRecorder().settle_fees(self.ctx, [fee.id], PaymentMethod.CASH)[0]
        payment = Payment.objects.select_related('fee', 'user', 'residence', 'verified_by').get(id=payment.id)

        pdf = build_cash_receipt(payment)

        self.assertTrue(pdf.startswith(b'%PDF'))

    def test_no_receipt_for_check_payments(self):
        payment = PaymentRecorder().record_custom_payment(self.ctx, self.alice.id, "80", PaymentMethod.CHECK)
        with self.assertRaises(BusinessLogicError) as caught:
            build_cash_receipt(payment)
        self.assertEqual(caught.exception.code, "RECEIPT_UNAVAILABLE")
