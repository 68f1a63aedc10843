"""
Fee services - recurring rules, period generation, the ad hoc fee ledger and reminders.
"""
from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal, ROUND_DOWN
from typing import Optional, List

from django.conf import settings
from django.db import transaction, IntegrityError
from django.utils import timezone

from audit.helpers import log_action
from audit.models import AuditLog
from common.mailer import send_payment_reminder_email
from core.constants import CoveragePeriodType, FeeStatus, NotificationType, UserRole
from core.context import AuthContext
from core.dto import FeeRuleDTO, FeeDTO
from core.exceptions import BusinessLogicError, ConflictError, NotFoundError, ValidationError
from core.permissions import has_capability
from core.services import BaseService
from core.validators import AmountValidator, FeeRuleValidator
from notifications.helpers import notify
from residences import access
from .models import FeeRule, Fee, FeeReminder
from .periods import BillingPeriod, coverage_end, current_period, describe_coverage
from .repositories import FeeRuleRepository, FeeRepository, FeeReminderRepository


@dataclass
class GenerationResult:
    """Outcome of generating one rule's current period"""
    rule_id: int
    period: BillingPeriod
    created: int = 0
    skipped: int = 0

    def as_dict(self):
        return {
            'rule_id': self.rule_id,
            'period_start': self.period.start.isoformat(),
            'period_end': self.period.end.isoformat(),
            'created': self.created,
            'skipped': self.skipped,
        }


@dataclass
class BulkFeeResult:
    """Fees created for a list of apartments, and the apartments nobody lives in"""
    fees: List[Fee] = field(default_factory=list)
    missing_apartments: List[str] = field(default_factory=list)

    @property
    def total(self) -> Decimal:
        return sum((fee.amount for fee in self.fees), Decimal('0'))

    def as_dict(self):
        return {
            'count': len(self.fees),
            'total_amount': str(self.total),
            'missing_apartments': self.missing_apartments,
        }


def split_amount(total: Decimal, parts: int) -> List[Decimal]:
    """
    Split a total into equal cent amounts.

    The cents that do not divide evenly go to the first share, so the shares
    always add up to the total.
    """
    share = (total / parts).quantize(Decimal('0.01'), rounding=ROUND_DOWN)
    remainder = total - share * parts
    return [share + remainder] + [share] * (parts - 1)


def fee_title_for_period(rule: FeeRule, period: BillingPeriod) -> str:
    """Rule title, with the covered range appended unless the rule bills single months"""
    single_month = (
        rule.coverage_period_type == CoveragePeriodType.MONTH and rule.coverage_period_value == 1
    )
    if single_month:
        return rule.title
    return f"{rule.title} (Covers {period.label()})"


class FeeRuleService(BaseService):
    """Create, edit and retire recurring fee rules"""

    def __init__(self):
        super().__init__()
        self.rule_repo = FeeRuleRepository()

    def get_rule(self, ctx: AuthContext, rule_id: int) -> FeeRule:
        self.require(ctx, 'can_manage_fees')
        rule = self.rule_repo.get_by_id_or_raise(rule_id)
        self.ensure_same_residence(ctx, rule.residence_id, "You can only manage fee rules of your residence")
        return rule

    def list_rules(self, ctx: AuthContext):
        residence_id = self.require(ctx, 'can_manage_fees')
        return self.rule_repo.get_by_residence(residence_id)

    def create_rule(self, ctx: AuthContext, data: FeeRuleDTO) -> FeeRule:
        """
        Create a recurring fee rule for the caller's residence.

        The first billed period starts at next_due_date, which defaults to start_date.
        """
        residence_id = self.require(ctx, 'can_manage_fees')
        FeeRuleValidator.validate(
            data.title, data.amount, data.coverage_period_value,
            data.coverage_period_type, data.start_date,
        )
        next_due = data.next_due_date or data.start_date
        if next_due < data.start_date:
            raise ValidationError(
                "Next due date cannot be before the start date",
                code="INVALID_NEXT_DUE_DATE",
                details={"field": "next_due_date"},
            )

        rule = self.rule_repo.create(
            residence_id=residence_id,
            title=data.title.strip(),
            amount=AmountValidator.validate_positive(data.amount),
            coverage_period_value=int(data.coverage_period_value),
            coverage_period_type=data.coverage_period_type,
            start_date=data.start_date,
            next_due_date=next_due,
            coverage_end_date=coverage_end(next_due, int(data.coverage_period_value), data.coverage_period_type),
            is_active=data.is_active,
            reminder_enabled=data.reminder_enabled,
            reminder_days_before=data.reminder_days_before,
            created_by_id=ctx.user_id,
        )
        self.log_info(f"Fee rule created: {rule.title}", rule_id=rule.id, residence_id=residence_id)
        log_action(
            ctx, AuditLog.ACTION_CREATE, AuditLog.RESOURCE_FEE_RULE, rule.id,
            f"Created fee rule {rule.title} ({describe_coverage(rule.coverage_period_value, rule.coverage_period_type)})",
        )
        return rule

    @transaction.atomic
    def update_rule(self, ctx: AuthContext, rule_id: int, changes: dict) -> FeeRule:
        """
        Apply a partial update to a rule of the caller's residence.

        Already generated fees keep their amount and title.
        """
        self.require(ctx, 'can_manage_fees')
        rule = self.rule_repo.get_for_update(rule_id)
        if rule is None:
            raise NotFoundError("Fee Rule", rule_id)
        self.ensure_same_residence(ctx, rule.residence_id, "You can only manage fee rules of your residence")

        editable = {
            'title', 'amount', 'coverage_period_value', 'coverage_period_type', 'start_date',
            'next_due_date', 'is_active', 'reminder_enabled', 'reminder_days_before',
        }
        values = {key: value for key, value in changes.items() if key in editable}
        if values.get('next_due_date', rule.next_due_date) is None:
            values.pop('next_due_date')
        merged = {field: values.get(field, getattr(rule, field)) for field in editable}
        FeeRuleValidator.validate(
            merged['title'], merged['amount'], merged['coverage_period_value'],
            merged['coverage_period_type'], merged['start_date'],
        )
        if merged['next_due_date'] < merged['start_date']:
            raise ValidationError(
                "Next due date cannot be before the start date",
                code="INVALID_NEXT_DUE_DATE",
                details={"field": "next_due_date"},
            )
        if 'amount' in values:
            values['amount'] = AmountValidator.validate_positive(values['amount'])
        if 'title' in values:
            values['title'] = values['title'].strip()

        values['coverage_end_date'] = coverage_end(
            merged['next_due_date'], int(merged['coverage_period_value']), merged['coverage_period_type']
        )
        rule = self.rule_repo.update(rule, **values)
        self.log_info("Fee rule updated", rule_id=rule.id, fields=sorted(values))
        return rule

    @transaction.atomic
    def delete_rule(self, ctx: AuthContext, rule_id: int) -> str:
        """
        Delete a rule, or deactivate it when fees were already generated from it.

        Returns 'deleted' or 'deactivated'.
        """
        rule = self.get_rule(ctx, rule_id)
        if rule.fees.exists():
            self.rule_repo.update(rule, is_active=False)
            self.log_info("Fee rule deactivated (has fees)", rule_id=rule.id)
            log_action(
                ctx, AuditLog.ACTION_DEACTIVATE, AuditLog.RESOURCE_FEE_RULE, rule.id,
                f"Deactivated fee rule {rule.title}",
            )
            return 'deactivated'

        title = rule.title
        self.rule_repo.delete(rule)
        self.log_info("Fee rule deleted", rule_id=rule_id)
        log_action(
            ctx, AuditLog.ACTION_DELETE, AuditLog.RESOURCE_FEE_RULE, rule_id,
            f"Deleted fee rule {title}",
        )
        return 'deleted'


class PeriodGenerator(BaseService):
    """
    Materialises the current billing period of a rule into Fee rows.

    Generation is idempotent: running it twice for the same anchor creates
    nothing the second time. The rule row is locked for the duration so two
    concurrent runs serialise, and the (rule, user, period_start) unique
    constraint backs this up at the database level.
    """

    def __init__(self):
        super().__init__()
        self.rule_repo = FeeRuleRepository()
        self.fee_repo = FeeRepository()

    def generate(self, ctx: AuthContext, rule_id: int, anchor: Optional[date] = None) -> GenerationResult:
        """Generate on behalf of a syndic of the rule's residence"""
        self.require(ctx, 'can_manage_fees')
        with transaction.atomic():
            rule = self.rule_repo.get_for_update(rule_id)
            if rule is None:
                raise NotFoundError("Fee Rule", rule_id)
            self.ensure_same_residence(ctx, rule.residence_id, "You can only generate fees for your residence")
            result = self._generate_locked(rule, anchor)
        if result.created:
            log_action(
                ctx, AuditLog.ACTION_GENERATE_FEES, AuditLog.RESOURCE_FEE_RULE, rule.id,
                f"Generated {result.created} fee(s) for {rule.title}",
                metadata=result.as_dict(),
            )
        return result

    def generate_for_system(self, rule_id: int, anchor: Optional[date] = None) -> GenerationResult:
        """Generate from a scheduled job or management command (no user)"""
        with transaction.atomic():
            rule = self.rule_repo.get_for_update(rule_id)
            if rule is None:
                raise NotFoundError("Fee Rule", rule_id)
            result = self._generate_locked(rule, anchor)
        if result.created:
            log_action(
                None, AuditLog.ACTION_GENERATE_FEES, AuditLog.RESOURCE_FEE_RULE, rule.id,
                f"Generated {result.created} fee(s) for {rule.title}",
                residence_id=rule.residence_id,
                metadata=result.as_dict(),
            )
        return result

    def preview(self, rule: FeeRule, anchor: Optional[date] = None) -> BillingPeriod:
        """Current period of a rule without writing anything"""
        return current_period(
            rule.next_due_date, rule.coverage_period_value, rule.coverage_period_type,
            anchor or timezone.localdate(),
        )

    def _generate_locked(self, rule: FeeRule, anchor: Optional[date]) -> GenerationResult:
        if not rule.is_active:
            raise BusinessLogicError("Fee rule is inactive", code="RULE_INACTIVE")

        period = self.preview(rule, anchor)
        resident_ids = access.get_member_ids(rule.residence_id, roles=[UserRole.RESIDENT])
        if not resident_ids:
            raise BusinessLogicError("No residents found in this residence", code="NO_RESIDENTS")

        already_billed = set(self.fee_repo.user_ids_billed_for_period(rule.id, period.start))
        title = fee_title_for_period(rule, period)
        new_fees = [
            Fee(
                rule=rule,
                user_id=user_id,
                residence_id=rule.residence_id,
                title=title,
                amount=rule.amount,
                due_date=period.end,
                period_start=period.start,
                period_end=period.end,
                status=FeeStatus.UNPAID,
            )
            for user_id in resident_ids
            if user_id not in already_billed
        ]

        try:
            self.fee_repo.bulk_create(new_fees)
        except IntegrityError:
            raise ConflictError(
                "Fees for this period were generated concurrently, please retry",
                code="CONCURRENT_GENERATION",
            )

        # Anchor the rule on the generated period so later runs roll forward from it
        self.rule_repo.update(
            rule,
            next_due_date=period.start,
            coverage_end_date=period.end,
        )
        result = GenerationResult(
            rule_id=rule.id,
            period=period,
            created=len(new_fees),
            skipped=len(already_billed),
        )
        self.log_info("Fees generated", **result.as_dict())
        return result


class FeeService(BaseService):
    """Ad hoc fees and ledger queries"""

    def __init__(self):
        super().__init__()
        self.fee_repo = FeeRepository()

    def list_fees(self, ctx: AuthContext, status: str = None, user_id: int = None):
        """
        Fees visible to the caller.

        Syndics see the whole residence ledger; everyone else sees their own fees.
        The 'overdue' filter is derived from due_date.
        """
        residence_id = ctx.require_residence()
        queryset = self.fee_repo.get_by_residence(residence_id)
        if not has_capability(ctx, 'can_manage_fees'):
            queryset = queryset.filter(user_id=ctx.user_id)
        elif user_id:
            queryset = queryset.filter(user_id=user_id)

        if status == FeeStatus.OVERDUE:
            queryset = queryset.overdue()
        elif status == FeeStatus.UNPAID:
            queryset = queryset.outstanding()
        elif status == FeeStatus.PAID:
            queryset = queryset.filter(status=FeeStatus.PAID)
        return queryset

    def get_fee(self, ctx: AuthContext, fee_id: int) -> Fee:
        residence_id = ctx.require_residence()
        fee = self.fee_repo.get_by_id(fee_id, residence_id=residence_id)
        if fee is None:
            raise NotFoundError("Fee", fee_id)
        if not has_capability(ctx, 'can_manage_fees') and fee.user_id != ctx.user_id:
            raise NotFoundError("Fee", fee_id)
        return fee

    def unpaid_for_resident(self, ctx: AuthContext, resident_id: int) -> List[Fee]:
        """Outstanding fees of one resident, oldest due date first"""
        residence_id = self.require(ctx, 'can_record_payments')
        if not access.is_member(resident_id, residence_id):
            raise NotFoundError("Resident", resident_id)
        return list(self.fee_repo.outstanding_for_user(residence_id, resident_id))

    def create_fee(self, ctx: AuthContext, data: FeeDTO) -> Fee:
        residence_id = self.require(ctx, 'can_manage_fees')
        if not data.title or not data.title.strip():
            raise ValidationError("Title is required", code="REQUIRED", details={"field": "title"})
        if data.due_date is None:
            raise ValidationError("Due date is required", code="REQUIRED", details={"field": "due_date"})
        amount = AmountValidator.validate_positive(data.amount)
        if not data.user_id or not access.is_member(data.user_id, residence_id):
            raise ValidationError(
                "Resident is not a member of your residence",
                code="NOT_A_MEMBER",
                details={"field": "user_id"},
            )

        fee = self.fee_repo.create(
            user_id=data.user_id,
            residence_id=residence_id,
            title=data.title.strip(),
            amount=amount,
            due_date=data.due_date,
            status=FeeStatus.UNPAID,
        )
        self.log_info("Ad hoc fee created", fee_id=fee.id, user_id=data.user_id)
        log_action(
            ctx, AuditLog.ACTION_CREATE, AuditLog.RESOURCE_FEE, fee.id,
            f"Created fee {fee.title} ({fee.amount})",
        )
        return fee

    @transaction.atomic
    def create_bulk_fees(self, ctx: AuthContext, apartment_numbers, title, amount, due_date,
                         per_apartment: bool = False) -> BulkFeeResult:
        """
        Exceptional fee billed to the residents of several apartments.

        By default `amount` is the total, shared equally between the matched
        apartments; with per_apartment every apartment owes `amount`.
        Apartments without a resident are reported, not billed.
        """
        residence_id = self.require(ctx, 'can_manage_fees')
        if not title or not title.strip():
            raise ValidationError("Title is required", code="REQUIRED", details={"field": "title"})
        if due_date is None:
            raise ValidationError("Due date is required", code="REQUIRED", details={"field": "due_date"})
        value = AmountValidator.validate_positive(amount)
        apartments = list(dict.fromkeys(
            str(number).strip() for number in apartment_numbers or [] if str(number).strip()
        ))
        if not apartments:
            raise ValidationError(
                "Select at least one apartment",
                code="REQUIRED",
                details={"field": "apartment_numbers"},
            )

        memberships = list(
            access.get_members(residence_id, roles=[UserRole.RESIDENT])
            .filter(apartment_number__in=apartments, verified=True)
        )
        if not memberships:
            raise NotFoundError(
                message="No verified residents found for the selected apartments",
                code="NO_RESIDENTS",
                details={"apartment_numbers": apartments},
            )

        shares = [value] * len(memberships) if per_apartment else split_amount(value, len(memberships))
        if shares[-1] <= 0:
            raise ValidationError(
                "Amount is too small to share between the selected apartments",
                code="INVALID_AMOUNT",
                details={"field": "amount"},
            )

        billed = {membership.apartment_number for membership in memberships}
        result = BulkFeeResult(missing_apartments=[number for number in apartments if number not in billed])
        for membership, share in zip(memberships, shares):
            result.fees.append(self.fee_repo.create(
                user_id=membership.profile_id,
                residence_id=residence_id,
                title=title.strip(),
                amount=share,
                due_date=due_date,
                status=FeeStatus.UNPAID,
            ))

        self.log_info("Bulk fees created", title=title, **result.as_dict())
        log_action(
            ctx, AuditLog.ACTION_CREATE, AuditLog.RESOURCE_FEE, None,
            f"Created {len(result.fees)} fee(s) {title.strip()} for {result.total}",
            metadata={'fee_ids': [fee.id for fee in result.fees], **result.as_dict()},
        )
        for fee in result.fees:
            notify(
                fee.user_id,
                "New fee",
                f"{fee.title}: {fee.amount} due on {fee.due_date:%d/%m/%Y}.",
                residence_id=residence_id,
                type=NotificationType.INFO,
                action_data={'fee_id': fee.id},
            )
        return result

    @transaction.atomic
    def update_fee(self, ctx: AuthContext, fee_id: int, data: FeeDTO) -> Fee:
        residence_id = self.require(ctx, 'can_manage_fees')
        fee = self.fee_repo.get_for_update(fee_id, residence_id=residence_id)
        if fee is None:
            raise NotFoundError("Fee", fee_id)
        if fee.status == FeeStatus.PAID:
            raise ConflictError("Paid fees cannot be edited", code="FEE_PAID")

        changes = {}
        if data.title:
            changes['title'] = data.title.strip()
        if data.amount is not None and data.amount != '':
            changes['amount'] = AmountValidator.validate_positive(data.amount)
        if data.due_date:
            changes['due_date'] = data.due_date
        return self.fee_repo.update(fee, **changes)

    @transaction.atomic
    def delete_fee(self, ctx: AuthContext, fee_id: int):
        """
        Delete a fee unless a payment references it.

        Payments keep the ledger consistent, so a referenced fee stays.
        """
        residence_id = self.require(ctx, 'can_manage_fees')
        fee = self.fee_repo.get_for_update(fee_id, residence_id=residence_id)
        if fee is None:
            raise NotFoundError("Fee", fee_id)

        payment_count = fee.payments.count()
        if payment_count:
            raise ConflictError(
                f"Cannot delete this fee: {payment_count} payment(s) reference it",
                code="HAS_PAYMENTS",
                details={"payments": payment_count},
            )

        title = fee.title
        self.fee_repo.delete(fee)
        self.log_info("Fee deleted", fee_id=fee_id)
        log_action(ctx, AuditLog.ACTION_DELETE, AuditLog.RESOURCE_FEE, fee_id, f"Deleted fee {title}")


def reminder_type_for(days_until_due: int) -> str:
    """Reminder kind recorded for a day offset"""
    if days_until_due > 0:
        return FeeReminder.TYPE_BEFORE_DUE
    if days_until_due == 0:
        return FeeReminder.TYPE_ON_DUE
    return FeeReminder.TYPE_OVERDUE


def should_send_reminder(days_until_due: int, days_before: int, every: int = 3) -> bool:
    """
    Reminder schedule: `days_before` days ahead, on the due date,
    then every `every` days while overdue.
    """
    if days_until_due == days_before or days_until_due == 0:
        return True
    return days_until_due < 0 and days_until_due % every == 0


class FeeReminderService(BaseService):
    """Sends payment reminder emails for rules that have reminders enabled"""

    def __init__(self):
        super().__init__()
        self.rule_repo = FeeRuleRepository()
        self.fee_repo = FeeRepository()
        self.reminder_repo = FeeReminderRepository()

    def send_due_reminders(self, today: Optional[date] = None) -> dict:
        today = today or timezone.localdate()
        every = getattr(settings, 'OVERDUE_REMINDER_EVERY_DAYS', 3)
        summary = {'sent': 0, 'failed': 0, 'skipped': 0}

        for rule in self.rule_repo.get_with_reminders():
            fees = (
                rule.fees.filter(status__in=FeeStatus.OUTSTANDING)
                .select_related('user', 'residence')
            )
            sent_for_rule = False
            for fee in fees:
                days_until_due = (fee.due_date - today).days
                if not should_send_reminder(days_until_due, rule.reminder_days_before, every):
                    continue
                if self.reminder_repo.sent_on(fee.id, today):
                    summary['skipped'] += 1
                    continue

                membership = access.get_membership(fee.user_id, fee.residence_id)
                apartment = membership.apartment_number if membership else 'N/A'
                if send_payment_reminder_email(fee, days_until_due, apartment):
                    self.reminder_repo.create(
                        fee=fee,
                        user_id=fee.user_id,
                        reminder_type=reminder_type_for(days_until_due),
                        days_before=days_until_due,
                    )
                    summary['sent'] += 1
                    sent_for_rule = True
                else:
                    summary['failed'] += 1

            if sent_for_rule:
                self.rule_repo.update(rule, last_reminder_sent_at=timezone.now())

        self.log_info("Fee reminders processed", today=today.isoformat(), **summary)
        return summary
