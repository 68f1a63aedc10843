"""
Expense ledger of a residence.

Syndics draft expenses, approve them, then record how they were paid.
Only drafts can be edited or deleted; a cancelled or paid expense is final.
"""
from decimal import Decimal

from django.db import transaction
from django.db.models import Count, Sum
from django.utils import timezone
from django.utils.dateparse import parse_date

from audit.helpers import log_action
from audit.models import AuditLog
from core.constants import ExpenseCategory, ExpenseStatus, PaymentMethod
from core.context import AuthContext
from core.dto import ExpenseDTO
from core.exceptions import ConflictError, NotFoundError, ValidationError
from core.services import BaseService
from core.validators import AmountValidator, PaymentMethodValidator
from .models import Expense

TEXT_FIELDS = ['description', 'vendor_name', 'invoice_number', 'notes']


def _choice_values(choices):
    return [value for value, _ in choices]


def _date_filter(value, field):
    if not value or not isinstance(value, str):
        return value
    try:
        parsed = parse_date(value)
    except ValueError:
        parsed = None
    if parsed is None:
        raise ValidationError(f"{field} must be a date (YYYY-MM-DD)", code="INVALID_DATE", details={"field": field})
    return parsed


class ExpenseService(BaseService):
    """Syndic-only bookkeeping of residence spending"""

    def list_expenses(self, ctx: AuthContext, status: str = None, category: str = None,
                      date_from=None, date_to=None):
        residence_id = self.require(ctx, 'can_manage_expenses')
        queryset = Expense.objects.filter(residence_id=residence_id).select_related('approved_by', 'created_by')
        if status:
            queryset = queryset.filter(status=status)
        if category:
            queryset = queryset.filter(category=category)
        date_from = _date_filter(date_from, 'from')
        date_to = _date_filter(date_to, 'to')
        if date_from:
            queryset = queryset.filter(expense_date__gte=date_from)
        if date_to:
            queryset = queryset.filter(expense_date__lte=date_to)
        return queryset

    def get_expense(self, ctx: AuthContext, expense_id: int) -> Expense:
        return self._get(self.require(ctx, 'can_manage_expenses'), expense_id)

    def _get(self, residence_id, expense_id, for_update=False) -> Expense:
        queryset = Expense.objects.all()
        if for_update:
            queryset = queryset.select_for_update()
        expense = queryset.filter(pk=expense_id, residence_id=residence_id).first()
        if expense is None:
            raise NotFoundError("Expense", expense_id)
        return expense

    def _validate_category(self, category):
        if category not in _choice_values(ExpenseCategory.CHOICES):
            raise ValidationError("Invalid expense category", code="INVALID_CATEGORY", details={"field": "category"})

    def _ensure_status(self, expense, allowed, action):
        if expense.status not in allowed:
            raise ConflictError(
                f"A {expense.status} expense cannot be {action}",
                code="INVALID_EXPENSE_STATUS",
                details={"status": expense.status},
            )

    @transaction.atomic
    def create_expense(self, ctx: AuthContext, data: ExpenseDTO) -> Expense:
        residence_id = self.require(ctx, 'can_manage_expenses')
        if not data.title or not data.title.strip():
            raise ValidationError("Title is required", code="REQUIRED", details={"field": "title"})
        amount = AmountValidator.validate_positive(data.amount)
        if data.expense_date is None:
            raise ValidationError("Expense date is required", code="REQUIRED", details={"field": "expense_date"})
        category = data.category or ExpenseCategory.OTHER
        self._validate_category(category)

        expense = Expense.objects.create(
            residence_id=residence_id,
            title=data.title.strip(),
            amount=amount,
            expense_date=data.expense_date,
            category=category,
            created_by_id=ctx.user_id,
            **{name: (getattr(data, name) or '').strip() for name in TEXT_FIELDS},
        )
        self.log_info("Expense drafted", expense_id=expense.id, residence_id=residence_id, amount=str(amount))
        log_action(
            ctx, AuditLog.ACTION_CREATE, AuditLog.RESOURCE_EXPENSE, expense.id,
            f"Drafted expense '{expense.title}' ({amount})",
        )
        return expense

    @transaction.atomic
    def update_expense(self, ctx: AuthContext, expense_id: int, data: ExpenseDTO) -> Expense:
        """Edit a draft; fields left as None keep their value"""
        residence_id = self.require(ctx, 'can_manage_expenses')
        expense = self._get(residence_id, expense_id, for_update=True)
        self._ensure_status(expense, ExpenseStatus.EDITABLE, 'edited')

        if data.title is not None:
            if not data.title.strip():
                raise ValidationError("Title is required", code="REQUIRED", details={"field": "title"})
            expense.title = data.title.strip()
        if data.amount is not None:
            expense.amount = AmountValidator.validate_positive(data.amount)
        if data.expense_date is not None:
            expense.expense_date = data.expense_date
        if data.category is not None:
            self._validate_category(data.category)
            expense.category = data.category
        for name in TEXT_FIELDS:
            value = getattr(data, name)
            if value is not None:
                setattr(expense, name, value.strip())
        expense.save()

        log_action(
            ctx, AuditLog.ACTION_UPDATE, AuditLog.RESOURCE_EXPENSE, expense.id,
            f"Updated expense '{expense.title}'",
        )
        return expense

    @transaction.atomic
    def delete_expense(self, ctx: AuthContext, expense_id: int):
        residence_id = self.require(ctx, 'can_manage_expenses')
        expense = self._get(residence_id, expense_id, for_update=True)
        self._ensure_status(expense, ExpenseStatus.EDITABLE, 'deleted')
        title = expense.title
        expense.delete()
        self.log_info("Expense deleted", expense_id=expense_id, residence_id=residence_id)
        log_action(ctx, AuditLog.ACTION_DELETE, AuditLog.RESOURCE_EXPENSE, expense_id, f"Deleted expense '{title}'")

    @transaction.atomic
    def approve(self, ctx: AuthContext, expense_id: int) -> Expense:
        residence_id = self.require(ctx, 'can_manage_expenses')
        expense = self._get(residence_id, expense_id, for_update=True)
        self._ensure_status(expense, [ExpenseStatus.DRAFT], 'approved')
        expense.status = ExpenseStatus.APPROVED
        expense.approved_by_id = ctx.user_id
        expense.approved_at = timezone.now()
        expense.save(update_fields=['status', 'approved_by', 'approved_at', 'updated_at'])
        log_action(
            ctx, AuditLog.ACTION_APPROVE, AuditLog.RESOURCE_EXPENSE, expense.id,
            f"Approved expense '{expense.title}' ({expense.amount})",
        )
        return expense

    @transaction.atomic
    def pay(self, ctx: AuthContext, expense_id: int, method: str, reference: str = '', paid_at=None) -> Expense:
        """Record the payment of an approved expense"""
        residence_id = self.require(ctx, 'can_manage_expenses')
        PaymentMethodValidator.validate(method, PaymentMethod.CUSTOM)
        expense = self._get(residence_id, expense_id, for_update=True)
        self._ensure_status(expense, [ExpenseStatus.APPROVED], 'paid')
        expense.status = ExpenseStatus.PAID
        expense.payment_method = method
        expense.payment_reference = (reference or '').strip()
        expense.paid_at = paid_at or timezone.now()
        expense.save(update_fields=['status', 'payment_method', 'payment_reference', 'paid_at', 'updated_at'])
        self.log_info("Expense paid", expense_id=expense.id, method=method)
        log_action(
            ctx, AuditLog.ACTION_STATUS_CHANGE, AuditLog.RESOURCE_EXPENSE, expense.id,
            f"Paid expense '{expense.title}' by {method}",
            metadata={'method': method, 'amount': str(expense.amount)},
        )
        return expense

    @transaction.atomic
    def cancel(self, ctx: AuthContext, expense_id: int, reason: str) -> Expense:
        residence_id = self.require(ctx, 'can_manage_expenses')
        reason = (reason or '').strip()
        if not reason:
            raise ValidationError("A cancellation reason is required", code="REQUIRED", details={"field": "reason"})
        expense = self._get(residence_id, expense_id, for_update=True)
        self._ensure_status(expense, [ExpenseStatus.DRAFT, ExpenseStatus.APPROVED], 'cancelled')
        expense.status = ExpenseStatus.CANCELLED
        expense.cancellation_reason = reason
        expense.save(update_fields=['status', 'cancellation_reason', 'updated_at'])
        log_action(
            ctx, AuditLog.ACTION_STATUS_CHANGE, AuditLog.RESOURCE_EXPENSE, expense.id,
            f"Cancelled expense '{expense.title}'",
            metadata={'reason': reason},
        )
        return expense

    def summary(self, ctx: AuthContext) -> dict:
        """Count and total per status, plus the paid total per category"""
        residence_id = self.require(ctx, 'can_manage_expenses')
        expenses = Expense.objects.filter(residence_id=residence_id)
        by_status = {
            status: {'count': 0, 'total': '0.00'} for status in _choice_values(ExpenseStatus.CHOICES)
        }
        for row in expenses.values('status').annotate(count=Count('id'), total=Sum('amount')):
            by_status[row['status']] = {'count': row['count'], 'total': str(row['total'] or Decimal('0.00'))}
        paid_by_category = {
            row['category']: str(row['total'])
            for row in expenses.filter(status=ExpenseStatus.PAID).values('category').annotate(total=Sum('amount'))
        }
        return {'by_status': by_status, 'paid_by_category': paid_by_category}
