"""
Audit Log Model

IMMUTABLE: Audit logs cannot be edited or deleted after creation.
Records fee generation, settlements, status corrections and deletions per residence.
"""

from django.db import models
from django.conf import settings
from django.core.exceptions import PermissionDenied


class AuditLogQuerySet(models.QuerySet):
    """Custom queryset for audit logs with filtering helpers"""

    def for_residence(self, residence_id):
        return self.filter(residence_id=residence_id)

    def for_resource(self, resource_type, resource_id):
        return self.filter(resource_type=resource_type, resource_id=resource_id)

    def for_action(self, action):
        return self.filter(action=action)


class AuditLog(models.Model):
    """
    Immutable audit log of domain actions.

    Rows are written by audit.helpers.log_action and never updated.
    The user is null for system jobs (scheduler, management commands).
    """

    ACTION_CREATE = 'CREATE'
    ACTION_UPDATE = 'UPDATE'
    ACTION_DELETE = 'DELETE'
    ACTION_DEACTIVATE = 'DEACTIVATE'
    ACTION_GENERATE_FEES = 'GENERATE_FEES'
    ACTION_SETTLE_FEES = 'SETTLE_FEES'
    ACTION_RECORD_PAYMENT = 'RECORD_PAYMENT'
    ACTION_PAYMENT_STATUS = 'PAYMENT_STATUS'
    ACTION_STATUS_CHANGE = 'STATUS_CHANGE'
    ACTION_APPROVE = 'APPROVE'
    ACTION_REJECT = 'REJECT'

    ACTION_CHOICES = [
        (ACTION_CREATE, 'Create'),
        (ACTION_UPDATE, 'Update'),
        (ACTION_DELETE, 'Delete'),
        (ACTION_DEACTIVATE, 'Deactivate'),
        (ACTION_GENERATE_FEES, 'Generate Fees'),
        (ACTION_SETTLE_FEES, 'Settle Fees'),
        (ACTION_RECORD_PAYMENT, 'Record Payment'),
        (ACTION_PAYMENT_STATUS, 'Payment Status'),
        (ACTION_STATUS_CHANGE, 'Status Change'),
        (ACTION_APPROVE, 'Approve'),
        (ACTION_REJECT, 'Reject'),
    ]

    RESOURCE_FEE_RULE = 'FeeRule'
    RESOURCE_FEE = 'Fee'
    RESOURCE_PAYMENT = 'Payment'
    RESOURCE_RESIDENT = 'Resident'
    RESOURCE_COMPLAINT = 'Complaint'
    RESOURCE_INCIDENT = 'Incident'
    RESOURCE_REGISTRATION = 'RegistrationRequest'
    RESOURCE_EXPENSE = 'Expense'

    RESOURCE_TYPE_CHOICES = [
        (RESOURCE_FEE_RULE, 'Fee Rule'),
        (RESOURCE_FEE, 'Fee'),
        (RESOURCE_PAYMENT, 'Payment'),
        (RESOURCE_RESIDENT, 'Resident'),
        (RESOURCE_COMPLAINT, 'Complaint'),
        (RESOURCE_INCIDENT, 'Incident'),
        (RESOURCE_REGISTRATION, 'Registration Request'),
        (RESOURCE_EXPENSE, 'Expense'),
    ]

    residence = models.ForeignKey(
        'residences.Residence',
        on_delete=models.CASCADE,
        related_name='audit_logs',
    )
    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='audit_logs',
        help_text="User who performed the action, null for system jobs",
    )
    action = models.CharField(max_length=20, choices=ACTION_CHOICES, db_index=True)
    resource_type = models.CharField(max_length=50, choices=RESOURCE_TYPE_CHOICES, db_index=True)
    resource_id = models.IntegerField(null=True, blank=True, db_index=True)
    description = models.TextField()
    ip_address = models.GenericIPAddressField(null=True, blank=True)
    metadata = models.JSONField(default=dict, blank=True)
    timestamp = models.DateTimeField(auto_now_add=True, db_index=True)

    objects = AuditLogQuerySet.as_manager()

    class Meta:
        verbose_name = "Audit Log"
        verbose_name_plural = "Audit Logs"
        ordering = ['-timestamp']
        indexes = [
            models.Index(fields=['residence', '-timestamp']),
            models.Index(fields=['resource_type', 'resource_id']),
        ]

    def __str__(self):
        actor = self.user.username if self.user else 'System'
        return f"{actor} - {self.action} - {self.resource_type} #{self.resource_id}"

    def save(self, *args, **kwargs):
        if self.pk is not None:
            raise PermissionDenied("Audit logs are immutable and cannot be modified after creation.")
        super().save(*args, **kwargs)

    def delete(self, *args, **kwargs):
        raise PermissionDenied("Audit logs are immutable and cannot be deleted.")

    @property
    def user_display(self):
        if self.user:
            return self.user.display_name
        return "System"
