from datetime import date

from django.test import TestCase

from core.constants import CoveragePeriodType, UserRole
from core.exceptions import BusinessLogicError, PermissionDeniedError
from fees.models import Fee
from fees.services import PeriodGenerator, fee_title_for_period
from fees.periods import period_starting
from audit.models import AuditLog
from .factories import make_residence, make_member, make_rule, ctx_for


class PeriodGenerationTests(TestCase):

    def setUp(self):
        self.residence, self.syndic = make_residence()
        self.alice = make_member(self.residence, "alice@example.com", apartment="1")
        self.bob = make_member(self.residence, "bob@example.com", apartment="2")
        self.guard = make_member(self.residence, "guard@example.com", role=UserRole.GUARD)
        self.rule = make_rule(self.residence, self.syndic)
        self.ctx = ctx_for(self.syndic)
        self.generator = PeriodGenerator()

    def test_generates_one_fee_per_resident(self):
        result = self.generator.generate(self.ctx, self.rule.id, anchor=date(2024, 1, 10))

        self.assertEqual(result.created, 2)
        fees = Fee.objects.filter(rule=self.rule)
        self.assertEqual(set(fees.values_list('user_id', flat=True)), {self.alice.id, self.bob.id})
        fee = fees.first()
        self.assertEqual(fee.period_start, date(2024, 1, 1))
        self.assertEqual(fee.period_end, date(2024, 1, 31))
        self.assertEqual(fee.title, "Monthly charges")

    def test_generation_is_idempotent(self):
        self.generator.generate(self.ctx, self.rule.id, anchor=date(2024, 1, 10))
        second = self.generator.generate(self.ctx, self.rule.id, anchor=date(2024, 1, 20))

        self.assertEqual(second.created, 0)
        self.assertEqual(second.skipped, 2)
        self.assertEqual(Fee.objects.filter(rule=self.rule).count(), 2)

    def test_new_resident_is_billed_on_rerun(self):
        self.generator.generate(self.ctx, self.rule.id, anchor=date(2024, 1, 10))
        carol = make_member(self.residence, "carol@example.com", apartment="3")

        result = self.generator.generate(self.ctx, self.rule.id, anchor=date(2024, 1, 10))

        self.assertEqual(result.created, 1)
        self.assertTrue(Fee.objects.filter(rule=self.rule, user=carol).exists())

    def test_next_period_after_boundary(self):
        self.generator.generate(self.ctx, self.rule.id, anchor=date(2024, 1, 10))
        result = self.generator.generate(self.ctx, self.rule.id, anchor=date(2024, 2, 3))

        self.assertEqual(result.created, 2)
        self.assertEqual(result.period.start, date(2024, 2, 1))
        self.rule.refresh_from_db()
        self.assertEqual(self.rule.next_due_date, date(2024, 2, 1))
        self.assertEqual(self.rule.coverage_end_date, date(2024, 2, 29))

    def test_multi_month_title_shows_covered_range(self):
        rule = make_rule(self.residence, self.syndic, title="Quarterly", value=3)
        period = period_starting(date(2024, 1, 1), 3, CoveragePeriodType.MONTH)
        self.assertEqual(fee_title_for_period(rule, period), "Quarterly (Covers 01/01/2024 - 31/03/2024)")

    def test_inactive_rule_rejected(self):
        self.rule.is_active = False
        self.rule.save()
        with self.assertRaises(BusinessLogicError) as caught:
            self.generator.generate(self.ctx, self.rule.id, anchor=date(2024, 1, 10))
        self.assertEqual(caught.exception.code, "RULE_INACTIVE")

    def test_residence_without_residents_rejected(self):
        residence, syndic = make_residence("Empty Court")
        rule = make_rule(residence, syndic)
        with self.assertRaises(BusinessLogicError) as caught:
            self.generator.generate(ctx_for(syndic), rule.id, anchor=date(2024, 1, 10))
        self.assertEqual(caught.exception.code, "NO_RESIDENTS")

    def test_other_residence_rule_forbidden(self):
        other, other_syndic = make_residence("Other Court")
        with self.assertRaises(PermissionDeniedError):
            self.generator.generate(ctx_for(other_syndic), self.rule.id, anchor=date(2024, 1, 10))

    def test_residents_cannot_generate(self):
        with self.assertRaises(PermissionDeniedError):
            self.generator.generate(ctx_for(self.alice), self.rule.id, anchor=date(2024, 1, 10))

    def test_generation_is_audited(self):
        self.generator.generate(self.ctx, self.rule.id, anchor=date(2024, 1, 10))
        entry = AuditLog.objects.for_resource(AuditLog.RESOURCE_FEE_RULE, self.rule.id).get()
        self.assertEqual(entry.action, AuditLog.ACTION_GENERATE_FEES)
        self.assertEqual(entry.user_id, self.syndic.id)

    def test_system_generation_without_user(self):
        result = self.generator.generate_for_system(self.rule.id, anchor=date(2024, 1, 10))
        self.assertEqual(result.created, 2)
        entry = AuditLog.objects.for_residence(self.residence.id).get()
        self.assertIsNone(entry.user_id)
