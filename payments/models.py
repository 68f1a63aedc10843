from django.db import models
from django.conf import settings
from django.core.validators import MinValueValidator
from core.constants import PaymentMethod, PaymentStatus
from residences.models import Residence


class Payment(models.Model):
    """
    Money received from a resident.

    A payment settling a fee links to it through `fee`; custom payments have none.
    Completed payments only change through a status correction.
    """
    user = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name='payments')
    residence = models.ForeignKey(Residence, on_delete=models.CASCADE, related_name='payments')
    fee = models.ForeignKey(
        'fees.Fee',
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name='payments',
        help_text="Fee settled by this payment",
    )
    amount = models.DecimalField(max_digits=10, decimal_places=2, validators=[MinValueValidator(0.01)])
    method = models.CharField(max_length=20, choices=PaymentMethod.CHOICES)
    status = models.CharField(max_length=20, choices=PaymentStatus.CHOICES, default=PaymentStatus.PENDING)
    paid_at = models.DateTimeField(null=True, blank=True)
    verified_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='verified_payments',
    )
    note = models.TextField(blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ['-created_at']
        verbose_name = "Payment"
        verbose_name_plural = "Payments"
        indexes = [
            models.Index(fields=['residence', 'status', 'method']),
            models.Index(fields=['user', 'status']),
        ]

    def __str__(self):
        return f"{self.user} - {self.amount} ({self.get_method_display()}, {self.get_status_display()})"

    @property
    def receipt_available(self):
        """Printable receipts exist for completed cash payments"""
        return self.status == PaymentStatus.COMPLETED and self.method == PaymentMethod.CASH

    @property
    def receipt_number(self):
        return f"RC-{self.id:06d}"
