"""
Management command to generate the current period's fees for every active fee rule.
Safe to run repeatedly: residents already billed for the period are skipped.

Usage:
    python manage.py generate_recurring_fees
    python manage.py generate_recurring_fees --rule 12 --dry-run

Can be added to crontab to run automatically:
    0 1 * * * cd /path/to/project && python manage.py generate_recurring_fees
"""

from django.core.management.base import BaseCommand, CommandError
from django.utils import timezone

from core.constants import UserRole
from core.exceptions import BaseApplicationException
from fees.models import FeeRule
from fees.services import PeriodGenerator, fee_title_for_period
from residences import access


class Command(BaseCommand):
    help = 'Generate fees of the current billing period for all active fee rules'

    def add_arguments(self, parser):
        parser.add_argument('--rule', type=int, help='Only generate for this rule id')
        parser.add_argument(
            '--dry-run',
            action='store_true',
            help='Show what would be created without actually creating records',
        )

    def handle(self, *args, **options):
        dry_run = options['dry_run']
        today = timezone.localdate()
        generator = PeriodGenerator()

        rules = FeeRule.objects.filter(is_active=True).select_related('residence')
        if options['rule']:
            rules = rules.filter(id=options['rule'])
            if not rules.exists():
                raise CommandError(f"No active fee rule with id {options['rule']}")

        self.stdout.write(f"\n{'=' * 60}")
        self.stdout.write(f"  RECURRING FEE GENERATION - {today.isoformat()}")
        self.stdout.write(f"{'=' * 60}\n")
        if dry_run:
            self.stdout.write(self.style.WARNING("DRY RUN MODE - No records will be created\n"))

        created_total = 0
        skipped_total = 0
        failed = 0

        for rule in rules:
            label = f"{rule.residence.name} / {rule.title}"
            if dry_run:
                period = generator.preview(rule, today)
                billed = set(rule.fees.filter(period_start=period.start).values_list('user_id', flat=True))
                pending = [
                    user_id for user_id in access.get_member_ids(rule.residence_id, roles=[UserRole.RESIDENT])
                    if user_id not in billed
                ]
                created_total += len(pending)
                skipped_total += len(billed)
                self.stdout.write(f"  ~ {label}: would create {len(pending)} x '{fee_title_for_period(rule, period)}'")
                continue

            try:
                result = generator.generate_for_system(rule.id, anchor=today)
            except BaseApplicationException as e:
                failed += 1
                self.stdout.write(self.style.WARNING(f"  ! {label}: {e.message}"))
                continue

            created_total += result.created
            skipped_total += result.skipped
            self.stdout.write(
                self.style.SUCCESS(
                    f"  + {label}: {result.created} created, {result.skipped} already billed "
                    f"({result.period.label()})"
                )
            )

        self.stdout.write(f"\n{'=' * 60}")
        self.stdout.write("  SUMMARY")
        self.stdout.write(f"{'=' * 60}")
        self.stdout.write(f"  Already billed: {skipped_total}")
        self.stdout.write(f"  Rules skipped: {failed}")
        if dry_run:
            self.stdout.write(self.style.WARNING(f"  Would create: {created_total}"))
        else:
            self.stdout.write(self.style.SUCCESS(f"  Created: {created_total}"))
        self.stdout.write(f"{'=' * 60}\n")
