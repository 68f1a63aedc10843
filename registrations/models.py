from django.db import models
from django.conf import settings
from core.constants import RegistrationStatus
from residences.models import Residence


class RegistrationRequest(models.Model):
    """Request from a prospective resident to join a residence, reviewed by its syndic"""
    residence = models.ForeignKey(Residence, on_delete=models.CASCADE, related_name='registration_requests')
    full_name = models.CharField(max_length=255)
    email = models.EmailField()
    phone_number = models.CharField(max_length=20, blank=True)
    apartment_number = models.CharField(max_length=20)
    message = models.TextField(blank=True)
    status = models.CharField(
        max_length=10,
        choices=RegistrationStatus.CHOICES,
        default=RegistrationStatus.PENDING,
        db_index=True,
    )
    rejection_reason = models.TextField(blank=True)
    reviewed_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='registrations_reviewed',
    )
    reviewed_at = models.DateTimeField(null=True, blank=True)
    profile = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='registration_requests',
        help_text="Profile the request was approved into",
    )
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ['-created_at']
        verbose_name = "Registration Request"
        verbose_name_plural = "Registration Requests"
        indexes = [
            models.Index(fields=['residence', 'status']),
            models.Index(fields=['email']),
        ]

    def __str__(self):
        return f"{self.full_name} - {self.apartment_number} ({self.get_status_display()})"
