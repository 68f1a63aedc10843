from django.db import models
from django.conf import settings
from core.constants import ComplaintPrivacy, ComplaintReason, ComplaintStatus, FileKind
from residences.models import Residence


class Complaint(models.Model):
    """Complaint filed by a resident about another resident of the same residence"""
    residence = models.ForeignKey(Residence, on_delete=models.CASCADE, related_name='complaints')
    complainant = models.ForeignKey(
        settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name='complaints_filed'
    )
    complained_about = models.ForeignKey(
        settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name='complaints_received'
    )
    reason = models.CharField(max_length=20, choices=ComplaintReason.CHOICES)
    privacy = models.CharField(
        max_length=10,
        choices=ComplaintPrivacy.CHOICES,
        default=ComplaintPrivacy.PRIVATE,
        help_text="Anonymous hides the complainant from the resident complained about",
    )
    title = models.CharField(max_length=255)
    description = models.TextField()
    status = models.CharField(max_length=10, choices=ComplaintStatus.CHOICES, default=ComplaintStatus.SUBMITTED)
    resolution_notes = models.TextField(blank=True)
    reviewed_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='complaints_reviewed',
    )
    reviewed_at = models.DateTimeField(null=True, blank=True)
    resolved_at = models.DateTimeField(null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ['-created_at']
        verbose_name = "Complaint"
        verbose_name_plural = "Complaints"
        indexes = [
            models.Index(fields=['residence', 'status']),
            models.Index(fields=['complainant']),
            models.Index(fields=['complained_about']),
        ]

    def __str__(self):
        return f"{self.title} ({self.get_status_display()})"


class ComplaintEvidence(models.Model):
    """File attached to a complaint; only syndics can see these"""
    FILE_TYPE_CHOICES = [(kind, kind.title()) for kind in FileKind.ALL]

    complaint = models.ForeignKey(Complaint, on_delete=models.CASCADE, related_name='evidence')
    file_url = models.CharField(max_length=500)
    file_name = models.CharField(max_length=255)
    file_type = models.CharField(max_length=10, choices=FILE_TYPE_CHOICES)
    file_size = models.PositiveBigIntegerField()
    mime_type = models.CharField(max_length=100)
    uploaded_by = models.ForeignKey(
        settings.AUTH_USER_MODEL, on_delete=models.SET_NULL, null=True, related_name='+'
    )
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ['created_at']
        verbose_name = "Complaint Evidence"
        verbose_name_plural = "Complaint Evidence"

    def __str__(self):
        return f"{self.file_name} (complaint #{self.complaint_id})"
