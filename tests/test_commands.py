from io import StringIO

from django.core import mail
from django.core.management import call_command
from django.test import TestCase, override_settings
from django.utils import timezone

from fees.models import Fee, FeeReminder
from .factories import make_residence, make_member, make_rule, make_fee


class GenerateRecurringFeesCommandTests(TestCase):

    def setUp(self):
        self.residence, self.syndic = make_residence()
        make_member(self.residence, "alice@example.com", apartment="1")
        make_member(self.residence, "bob@example.com", apartment="2")
        self.rule = make_rule(self.residence, self.syndic, start=timezone.localdate().replace(day=1))

    def test_dry_run_creates_nothing(self):
        out = StringIO()
        call_command('generate_recurring_fees', '--dry-run', stdout=out)
        self.assertIn("Would create: 2", out.getvalue())
        self.assertFalse(Fee.objects.exists())

    def test_run_is_repeatable(self):
        call_command('generate_recurring_fees', stdout=StringIO())
        out = StringIO()
        call_command('generate_recurring_fees', stdout=out)
        self.assertEqual(Fee.objects.filter(rule=self.rule).count(), 2)
        self.assertIn("Created: 0", out.getvalue())


@override_settings(EMAIL_BACKEND='django.core.mail.backends.locmem.EmailBackend')
class SendFeeRemindersCommandTests(TestCase):

    def test_due_today_reminder_is_mailed(self):
        residence, syndic = make_residence()
        alice = make_member(residence, "alice@example.com", apartment="1")
        rule = make_rule(residence, syndic, reminder_enabled=True, reminder_days_before=3)
        make_fee(residence, alice, due=timezone.localdate(), rule=rule)

        out = StringIO()
        call_command('send_fee_reminders', stdout=out)

        self.assertIn("Sent 1 payment reminder(s)", out.getvalue())
        self.assertEqual(len(mail.outbox), 1)
        self.assertEqual(mail.outbox[0].to, ["alice@example.com"])
        self.assertEqual(FeeReminder.objects.get().reminder_type, FeeReminder.TYPE_ON_DUE)
