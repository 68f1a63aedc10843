from django.db import models
from django.conf import settings
from core.constants import GUARD_APARTMENT


class Residence(models.Model):
    """Residential community administered by one syndic"""
    name = models.CharField(max_length=255)
    address = models.TextField(blank=True)
    city = models.CharField(max_length=100, blank=True)
    bank_rib = models.CharField(max_length=64, blank=True, help_text="Bank account shown on payment reminders")
    syndic = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='managed_residences',
    )
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ['name']
        verbose_name = "Residence"
        verbose_name_plural = "Residences"

    def __str__(self):
        return self.name


class ProfileResidence(models.Model):
    """
    Membership of a profile in a residence.

    One person may belong to several residences through distinct rows, each with
    its own apartment number. Apartment "0" is reserved for guards.
    """
    profile = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name='memberships',
    )
    residence = models.ForeignKey(Residence, on_delete=models.CASCADE, related_name='memberships')
    apartment_number = models.CharField(max_length=20)
    verified = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ['residence', 'apartment_number']
        verbose_name = "Residence Membership"
        verbose_name_plural = "Residence Memberships"
        constraints = [
            models.UniqueConstraint(fields=['profile', 'residence'], name='unique_profile_residence'),
        ]
        indexes = [
            models.Index(fields=['residence', 'apartment_number']),
        ]

    def __str__(self):
        return f"{self.profile} → {self.residence.name} #{self.apartment_number}"

    @property
    def is_guard_post(self):
        return self.apartment_number == GUARD_APARTMENT
