from django.db import models
from django.conf import settings
from django.utils import timezone
from core.constants import IncidentStatus
from residences.models import Residence


class Incident(models.Model):
    """Problem in the residence reported by a member (leak, broken light, ...)"""
    residence = models.ForeignKey(Residence, on_delete=models.CASCADE, related_name='incidents')
    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name='incidents_reported',
        help_text="Reporter",
    )
    title = models.CharField(max_length=255)
    description = models.TextField()
    photo_url = models.CharField(max_length=500, blank=True)
    status = models.CharField(max_length=20, choices=IncidentStatus.CHOICES, default=IncidentStatus.OPEN)
    assigned_to = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='incidents_assigned',
    )
    resolved_at = models.DateTimeField(null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ['-created_at']
        verbose_name = "Incident"
        verbose_name_plural = "Incidents"
        indexes = [
            models.Index(fields=['residence', 'status']),
            models.Index(fields=['user', 'status']),
            models.Index(fields=['assigned_to', 'status']),
        ]

    def __str__(self):
        return f"{self.title} ({self.get_status_display()})"

    def save(self, *args, **kwargs):
        """Stamp resolved_at when the incident is resolved or closed"""
        if self.status in (IncidentStatus.RESOLVED, IncidentStatus.CLOSED):
            if not self.resolved_at:
                self.resolved_at = timezone.now()
        else:
            self.resolved_at = None
        super().save(*args, **kwargs)
