from datetime import date, timedelta
from decimal import Decimal
from unittest import mock

from django.test import TestCase, override_settings
from django.utils import timezone

from core.constants import FeeStatus, PaymentMethod, UserRole
from core.dto import FeeDTO, FeeRuleDTO
from core.exceptions import ConflictError, NotFoundError, PermissionDeniedError, ValidationError
from fees.models import Fee, FeeReminder, FeeRule
from fees.services import (
    FeeReminderService,
    FeeRuleService,
    FeeService,
    reminder_type_for,
    should_send_reminder,
)
from payments.services import PaymentRecorder
from .factories import make_residence, make_member, make_rule, make_fee, ctx_for


class FeeRuleServiceTests(TestCase):

    def setUp(self):
        self.residence, self.syndic = make_residence()
        self.ctx = ctx_for(self.syndic)
        self.service = FeeRuleService()

    def test_create_rule_defaults_next_due_to_start(self):
        rule = self.service.create_rule(self.ctx, FeeRuleDTO(
            title="Monthly charges", amount=Decimal("300"), start_date=date(2024, 5, 1),
        ))
        self.assertEqual(rule.next_due_date, date(2024, 5, 1))
        self.assertEqual(rule.coverage_end_date, date(2024, 5, 31))
        self.assertEqual(rule.residence_id, self.residence.id)

    def test_next_due_before_start_rejected(self):
        with self.assertRaises(ValidationError) as caught:
            self.service.create_rule(self.ctx, FeeRuleDTO(
                title="Charges", amount=Decimal("300"),
                start_date=date(2024, 5, 1), next_due_date=date(2024, 4, 1),
            ))
        self.assertEqual(caught.exception.code, "INVALID_NEXT_DUE_DATE")

    def test_update_recomputes_coverage_end(self):
        rule = make_rule(self.residence, self.syndic)
        rule = self.service.update_rule(self.ctx, rule.id, {'coverage_period_value': 3})
        self.assertEqual(rule.coverage_end_date, date(2024, 3, 31))

    def test_update_cannot_move_start_past_next_due(self):
        rule = make_rule(self.residence, self.syndic)
        with self.assertRaises(ValidationError) as caught:
            self.service.update_rule(self.ctx, rule.id, {'start_date': date(2024, 2, 1)})
        self.assertEqual(caught.exception.code, "INVALID_NEXT_DUE_DATE")
        rule.refresh_from_db()
        self.assertEqual(rule.start_date, date(2024, 1, 1))

    def test_delete_rule_without_fees(self):
        rule = make_rule(self.residence, self.syndic)
        self.assertEqual(self.service.delete_rule(self.ctx, rule.id), 'deleted')
        self.assertFalse(FeeRule.objects.filter(id=rule.id).exists())

    def test_delete_rule_with_fees_deactivates(self):
        rule = make_rule(self.residence, self.syndic)
        resident = make_member(self.residence, "alice@example.com", apartment="1")
        make_fee(self.residence, resident, rule=rule)

        self.assertEqual(self.service.delete_rule(self.ctx, rule.id), 'deactivated')
        rule.refresh_from_db()
        self.assertFalse(rule.is_active)


class BulkFeeTests(TestCase):

    def setUp(self):
        self.residence, self.syndic = make_residence()
        self.alice = make_member(self.residence, "alice@example.com", apartment="1")
        self.bob = make_member(self.residence, "bob@example.com", apartment="2")
        self.carl = make_member(self.residence, "carl@example.com", apartment="3")
        make_member(self.residence, "guard@example.com", role=UserRole.GUARD)
        self.ctx = ctx_for(self.syndic)
        self.service = FeeService()

    def test_total_is_shared_between_apartments(self):
        result = self.service.create_bulk_fees(
            self.ctx, ["1", "2", "3"], "Roof repair", Decimal("100.00"), date(2024, 6, 30),
        )

        amounts = sorted(fee.amount for fee in result.fees)
        self.assertEqual(amounts, [Decimal("33.33"), Decimal("33.33"), Decimal("33.34")])
        self.assertEqual(result.total, Decimal("100.00"))
        self.assertTrue(all(fee.rule_id is None for fee in result.fees))

    def test_per_apartment_amount(self):
        result = self.service.create_bulk_fees(
            self.ctx, ["1", "2"], "Painting", Decimal("250"), date(2024, 6, 30), per_apartment=True,
        )
        self.assertEqual({fee.user_id for fee in result.fees}, {self.alice.id, self.bob.id})
        self.assertEqual(result.total, Decimal("500"))

    def test_unknown_apartments_are_reported(self):
        result = self.service.create_bulk_fees(
            self.ctx, ["1", "99", "0"], "Painting", Decimal("80"), date(2024, 6, 30),
        )
        self.assertEqual([fee.user_id for fee in result.fees], [self.alice.id])
        self.assertEqual(result.missing_apartments, ["99", "0"])

    def test_no_matching_resident(self):
        with self.assertRaises(NotFoundError) as caught:
            self.service.create_bulk_fees(self.ctx, ["42"], "Painting", Decimal("80"), date(2024, 6, 30))
        self.assertEqual(caught.exception.code, "NO_RESIDENTS")
        self.assertFalse(Fee.objects.exists())

    def test_residents_cannot_bill(self):
        with self.assertRaises(PermissionDeniedError):
            self.service.create_bulk_fees(
                ctx_for(self.alice), ["2"], "Painting", Decimal("80"), date(2024, 6, 30),
            )


class FeeLedgerTests(TestCase):

    def setUp(self):
        self.residence, self.syndic = make_residence()
        self.alice = make_member(self.residence, "alice@example.com", apartment="1")
        self.bob = make_member(self.residence, "bob@example.com", apartment="2")
        self.ctx = ctx_for(self.syndic)
        self.service = FeeService()

    def test_residents_only_see_their_fees(self):
        make_fee(self.residence, self.alice)
        make_fee(self.residence, self.bob)

        own = self.service.list_fees(ctx_for(self.alice))
        self.assertEqual([fee.user_id for fee in own], [self.alice.id])
        self.assertEqual(self.service.list_fees(self.ctx).count(), 2)

    def test_overdue_filter_uses_due_date(self):
        today = timezone.localdate()
        late = make_fee(self.residence, self.alice, due=today - timedelta(days=1))
        make_fee(self.residence, self.alice, due=today + timedelta(days=5))

        overdue = self.service.list_fees(self.ctx, status=FeeStatus.OVERDUE)
        self.assertEqual([fee.id for fee in overdue], [late.id])
        self.assertEqual(late.effective_status, FeeStatus.OVERDUE)

    def test_unpaid_for_resident(self):
        first = make_fee(self.residence, self.alice, due=date(2024, 1, 31))
        second = make_fee(self.residence, self.alice, due=date(2024, 2, 29))
        make_fee(self.residence, self.alice, due=date(2024, 3, 31), status=FeeStatus.PAID)

        fees = self.service.unpaid_for_resident(self.ctx, self.alice.id)
        self.assertEqual([fee.id for fee in fees], [first.id, second.id])

    def test_create_fee_for_non_member_rejected(self):
        _, outsider = make_residence("Elsewhere")
        with self.assertRaises(ValidationError) as caught:
            self.service.create_fee(self.ctx, FeeDTO(
                user_id=outsider.id, title="Key copy", amount=Decimal("50"), due_date=date(2024, 1, 10),
            ))
        self.assertEqual(caught.exception.code, "NOT_A_MEMBER")

    def test_delete_fee_without_payments(self):
        fee = make_fee(self.residence, self.alice)
        self.service.delete_fee(self.ctx, fee.id)
        self.assertFalse(Fee.objects.filter(id=fee.id).exists())

    def test_delete_fee_with_payment_refused(self):
        fee = make_fee(self.residence, self.alice)
        PaymentRecorder().settle_fees(self.ctx, [fee.id], PaymentMethod.CASH)

        with self.assertRaises(ConflictError) as caught:
            self.service.delete_fee(self.ctx, fee.id)
        self.assertEqual(caught.exception.code, "HAS_PAYMENTS")
        self.assertEqual(caught.exception.status_code, 400)
        self.assertTrue(Fee.objects.filter(id=fee.id).exists())

    def test_paid_fee_cannot_be_edited(self):
        fee = make_fee(self.residence, self.alice, status=FeeStatus.PAID)
        with self.assertRaises(ConflictError):
            self.service.update_fee(self.ctx, fee.id, FeeDTO(title="Renamed"))

    def test_fee_of_other_residence_not_found(self):
        other, other_syndic = make_residence("Other Court")
        fee = make_fee(self.residence, self.alice)
        with self.assertRaises(NotFoundError):
            self.service.get_fee(ctx_for(other_syndic), fee.id)


class ReminderScheduleTests(TestCase):

    def test_schedule(self):
        self.assertTrue(should_send_reminder(3, 3))
        self.assertFalse(should_send_reminder(2, 3))
        self.assertTrue(should_send_reminder(0, 3))
        self.assertFalse(should_send_reminder(-1, 3))
        self.assertTrue(should_send_reminder(-3, 3))
        self.assertTrue(should_send_reminder(-6, 3))
        self.assertTrue(should_send_reminder(-4, 3, every=2))

    def test_reminder_types(self):
        self.assertEqual(reminder_type_for(5), FeeReminder.TYPE_BEFORE_DUE)
        self.assertEqual(reminder_type_for(0), FeeReminder.TYPE_ON_DUE)
        self.assertEqual(reminder_type_for(-3), FeeReminder.TYPE_OVERDUE)


@override_settings(OVERDUE_REMINDER_EVERY_DAYS=3)
class FeeReminderServiceTests(TestCase):

    def setUp(self):
        self.residence, self.syndic = make_residence()
        self.alice = make_member(self.residence, "alice@example.com", apartment="1")
        self.rule = make_rule(self.residence, self.syndic, reminder_enabled=True, reminder_days_before=3)
        self.today = timezone.localdate()
        self.fee = make_fee(self.residence, self.alice, due=self.today + timedelta(days=3), rule=self.rule)

    @mock.patch('fees.services.send_payment_reminder_email', return_value=True)
    def test_sends_once_per_day(self, send):
        service = FeeReminderService()

        first = service.send_due_reminders(today=self.today)
        second = service.send_due_reminders(today=self.today)

        self.assertEqual(first['sent'], 1)
        self.assertEqual(second, {'sent': 0, 'failed': 0, 'skipped': 1})
        send.assert_called_once_with(self.fee, 3, "1")
        reminder = FeeReminder.objects.get()
        self.assertEqual(reminder.reminder_type, FeeReminder.TYPE_BEFORE_DUE)
        self.rule.refresh_from_db()
        self.assertIsNotNone(self.rule.last_reminder_sent_at)

    @mock.patch('fees.services.send_payment_reminder_email', return_value=True)
    def test_off_schedule_days_are_silent(self, send):
        summary = FeeReminderService().send_due_reminders(today=self.today + timedelta(days=1))
        self.assertEqual(summary, {'sent': 0, 'failed': 0, 'skipped': 0})
        send.assert_not_called()

    @mock.patch('fees.services.send_payment_reminder_email', return_value=False)
    def test_failed_mail_is_counted_not_recorded(self, send):
        summary = FeeReminderService().send_due_reminders(today=self.today)
        self.assertEqual(summary['failed'], 1)
        self.assertFalse(FeeReminder.objects.exists())

    @mock.patch('fees.services.send_payment_reminder_email', return_value=True)
    def test_paid_fees_are_not_reminded(self, send):
        Fee.objects.filter(id=self.fee.id).update(status=FeeStatus.PAID)
        FeeReminderService().send_due_reminders(today=self.today)
        send.assert_not_called()
