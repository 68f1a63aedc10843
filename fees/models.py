from django.db import models
from django.conf import settings
from django.core.validators import MinValueValidator
from django.utils import timezone
from core.constants import CoveragePeriodType, FeeStatus
from residences.models import Residence


class FeeRule(models.Model):
    """Recurring fee definition of a residence (amount + cadence)"""
    residence = models.ForeignKey(Residence, on_delete=models.CASCADE, related_name='fee_rules')
    title = models.CharField(max_length=255)
    amount = models.DecimalField(max_digits=10, decimal_places=2, validators=[MinValueValidator(0.01)])
    coverage_period_value = models.PositiveIntegerField(default=1, validators=[MinValueValidator(1)])
    coverage_period_type = models.CharField(
        max_length=10,
        choices=CoveragePeriodType.CHOICES,
        default=CoveragePeriodType.MONTH,
    )
    start_date = models.DateField()
    next_due_date = models.DateField(help_text="Start of the next period to bill")
    coverage_end_date = models.DateField(null=True, blank=True)
    is_active = models.BooleanField(default=True)
    reminder_enabled = models.BooleanField(default=False)
    reminder_days_before = models.PositiveIntegerField(default=3)
    last_reminder_sent_at = models.DateTimeField(null=True, blank=True)
    created_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='created_fee_rules',
    )
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ['-created_at']
        verbose_name = "Fee Rule"
        verbose_name_plural = "Fee Rules"
        indexes = [
            models.Index(fields=['residence', 'is_active']),
        ]

    def __str__(self):
        return f"{self.title} ({self.residence.name})"


class FeeQuerySet(models.QuerySet):
    """Queries over the fee ledger"""

    def outstanding(self):
        return self.filter(status__in=FeeStatus.OUTSTANDING)

    def overdue(self, today=None):
        """Unpaid fees whose due date has passed"""
        today = today or timezone.localdate()
        return self.outstanding().filter(due_date__lt=today)


class Fee(models.Model):
    """
    One billable charge for one resident.

    Generated from a FeeRule for one period, or added ad hoc (rule is null).
    Overdue is derived from due_date at read time, not stored by a transition.
    """
    rule = models.ForeignKey(FeeRule, on_delete=models.PROTECT, null=True, blank=True, related_name='fees')
    user = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name='fees')
    residence = models.ForeignKey(Residence, on_delete=models.CASCADE, related_name='fees')
    title = models.CharField(max_length=255)
    amount = models.DecimalField(max_digits=10, decimal_places=2, validators=[MinValueValidator(0.01)])
    due_date = models.DateField()
    period_start = models.DateField(null=True, blank=True)
    period_end = models.DateField(null=True, blank=True)
    status = models.CharField(max_length=10, choices=FeeStatus.CHOICES, default=FeeStatus.UNPAID)
    paid_at = models.DateTimeField(null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    objects = FeeQuerySet.as_manager()

    class Meta:
        ordering = ['-due_date']
        verbose_name = "Fee"
        verbose_name_plural = "Fees"
        constraints = [
            models.UniqueConstraint(
                fields=['rule', 'user', 'period_start'],
                condition=models.Q(rule__isnull=False),
                name='unique_fee_per_rule_user_period',
            ),
        ]
        indexes = [
            models.Index(fields=['residence', 'status']),
            models.Index(fields=['user', 'status']),
            models.Index(fields=['rule', 'period_start']),
        ]

    def __str__(self):
        return f"{self.title} - {self.user} ({self.get_status_display()})"

    @property
    def effective_status(self):
        """Stored status, with unpaid fees past their due date reported as overdue"""
        if self.status == FeeStatus.UNPAID and self.due_date < timezone.localdate():
            return FeeStatus.OVERDUE
        return self.status

    @property
    def is_outstanding(self):
        return self.status in FeeStatus.OUTSTANDING


class FeeReminder(models.Model):
    """Log of payment reminder emails, one per fee per day at most"""
    TYPE_BEFORE_DUE = 'before_due'
    TYPE_ON_DUE = 'on_due'
    TYPE_OVERDUE = 'overdue'

    TYPE_CHOICES = [
        (TYPE_BEFORE_DUE, 'Before due date'),
        (TYPE_ON_DUE, 'On due date'),
        (TYPE_OVERDUE, 'Overdue'),
    ]

    fee = models.ForeignKey(Fee, on_delete=models.CASCADE, related_name='reminders')
    user = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name='fee_reminders')
    reminder_type = models.CharField(max_length=20, choices=TYPE_CHOICES)
    days_before = models.IntegerField()
    sent_at = models.DateTimeField(default=timezone.now)

    class Meta:
        ordering = ['-sent_at']
        indexes = [
            models.Index(fields=['fee', 'sent_at']),
        ]

    def __str__(self):
        return f"Reminder {self.reminder_type} for fee #{self.fee_id}"
