from django.db import models
from django.conf import settings
from django.core.validators import MinValueValidator
from core.constants import ExpenseCategory, ExpenseStatus, PaymentMethod
from residences.models import Residence


class Expense(models.Model):
    """
    Money the residence spends: repairs, cleaning, utilities.

    Lifecycle draft -> approved -> paid, or cancelled before payment.
    Expenses are a separate ledger; they never enter the payment balances.
    """
    residence = models.ForeignKey(Residence, on_delete=models.CASCADE, related_name='expenses')
    title = models.CharField(max_length=255)
    description = models.TextField(blank=True)
    category = models.CharField(max_length=20, choices=ExpenseCategory.CHOICES, default=ExpenseCategory.OTHER)
    amount = models.DecimalField(max_digits=10, decimal_places=2, validators=[MinValueValidator(0.01)])
    expense_date = models.DateField()
    vendor_name = models.CharField(max_length=255, blank=True)
    invoice_number = models.CharField(max_length=100, blank=True)
    status = models.CharField(max_length=10, choices=ExpenseStatus.CHOICES, default=ExpenseStatus.DRAFT)
    payment_method = models.CharField(max_length=20, choices=PaymentMethod.CHOICES, blank=True)
    payment_reference = models.CharField(max_length=100, blank=True)
    paid_at = models.DateTimeField(null=True, blank=True)
    approved_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='expenses_approved',
    )
    approved_at = models.DateTimeField(null=True, blank=True)
    cancellation_reason = models.TextField(blank=True)
    notes = models.TextField(blank=True)
    created_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='expenses_created',
    )
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ['-expense_date', '-created_at']
        verbose_name = "Expense"
        verbose_name_plural = "Expenses"
        indexes = [
            models.Index(fields=['residence', 'status']),
            models.Index(fields=['residence', 'expense_date']),
        ]

    def __str__(self):
        return f"{self.title} - {self.amount} ({self.get_status_display()})"
