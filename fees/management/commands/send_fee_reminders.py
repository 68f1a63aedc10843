"""
Management command to email payment reminders for unpaid recurring fees.

Reminders go out `reminder_days_before` days ahead, on the due date and every
third day while overdue, at most once per fee per day.

Usage:
    python manage.py send_fee_reminders
"""

from django.core.management.base import BaseCommand

from fees.services import FeeReminderService


class Command(BaseCommand):
    help = 'Send payment reminder emails for rules with reminders enabled'

    def handle(self, *args, **options):
        summary = FeeReminderService().send_due_reminders()
        self.stdout.write(
            self.style.SUCCESS(
                f"Sent {summary['sent']} payment reminder(s) "
                f"({summary['failed']} failed, {summary['skipped']} already sent today)"
            )
        )
