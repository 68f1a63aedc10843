from django.db import models
from django.conf import settings
from core.constants import NotificationType


class Notification(models.Model):
    """In-app notification shown to one user of a residence"""
    user = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name='notifications')
    residence = models.ForeignKey(
        'residences.Residence',
        on_delete=models.CASCADE,
        null=True,
        blank=True,
        related_name='notifications',
    )
    type = models.CharField(max_length=10, choices=NotificationType.CHOICES, default=NotificationType.INFO)
    title = models.CharField(max_length=255)
    message = models.TextField(blank=True)
    action_data = models.JSONField(default=dict, blank=True, help_text="Target of the notification, e.g. {'complaint_id': 4}")
    is_read = models.BooleanField(default=False)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ['-created_at']
        indexes = [
            models.Index(fields=['user', 'is_read']),
        ]

    def __str__(self):
        return f"{self.title} -> {self.user}"
