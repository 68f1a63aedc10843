"""
Complaint service - filing, review and evidence of resident complaints.
"""
from typing import List, Tuple

from django.conf import settings
from django.db import transaction
from django.db.models import Q
from django.utils import timezone

from audit.helpers import log_action
from audit.models import AuditLog
from common.storage import upload_file
from core.constants import (
    ComplaintPrivacy,
    ComplaintReason,
    ComplaintStatus,
    DefaultLimits,
    FileKind,
    NotificationType,
    UserRole,
)
from core.context import AuthContext
from core.dto import ComplaintDTO, UploadResult
from core.exceptions import BaseApplicationException, NotFoundError, PermissionDeniedError, ValidationError
from core.permissions import has_capability
from core.services import BaseService
from notifications.helpers import notify
from residences import access
from .models import Complaint, ComplaintEvidence
from .visibility import can_view_complaint


def _choice_values(choices):
    return [value for value, _ in choices]


class ComplaintService(BaseService):
    """Business rules for complaints between residents"""

    @property
    def max_files(self):
        return getattr(settings, 'COMPLAINT_EVIDENCE_MAX_FILES', DefaultLimits.COMPLAINT_EVIDENCE_MAX_FILES)

    @property
    def max_file_size(self):
        return getattr(settings, 'COMPLAINT_EVIDENCE_MAX_SIZE', DefaultLimits.COMPLAINT_EVIDENCE_MAX_SIZE)

    def _validate(self, ctx: AuthContext, residence_id: int, data: ComplaintDTO):
        if not data.title or not data.title.strip():
            raise ValidationError("Title is required", code="REQUIRED", details={"field": "title"})
        if not data.description or not data.description.strip():
            raise ValidationError("Description is required", code="REQUIRED", details={"field": "description"})
        if data.reason not in _choice_values(ComplaintReason.CHOICES):
            raise ValidationError("Invalid complaint reason", code="INVALID_REASON", details={"field": "reason"})
        if data.privacy not in _choice_values(ComplaintPrivacy.CHOICES):
            raise ValidationError("Invalid privacy setting", code="INVALID_PRIVACY", details={"field": "privacy"})
        if not data.complained_about_id:
            raise ValidationError(
                "Select the resident you are complaining about",
                code="REQUIRED",
                details={"field": "complained_about_id"},
            )
        if data.complained_about_id == ctx.user_id:
            raise ValidationError(
                "You cannot file a complaint against yourself",
                code="SELF_COMPLAINT",
                details={"field": "complained_about_id"},
            )
        target = access.get_membership(data.complained_about_id, residence_id)
        if target is None or target.profile.role != UserRole.RESIDENT:
            raise ValidationError(
                "The selected person is not a resident of your residence",
                code="INVALID_TARGET",
                details={"field": "complained_about_id"},
            )

    def complainable_residents(self, ctx: AuthContext):
        """Residents the caller may file a complaint about"""
        residence_id = self.require(ctx, 'can_file_complaints')
        return access.get_members(residence_id, roles=[UserRole.RESIDENT]).exclude(profile_id=ctx.user_id)

    def create_complaint(self, ctx: AuthContext, data: ComplaintDTO, files=None) -> Tuple[Complaint, UploadResult]:
        """
        File a complaint, then attach evidence files one by one.

        The complaint is committed before any upload; failed uploads are
        reported in the returned UploadResult instead of undoing the complaint.
        """
        residence_id = self.require(ctx, 'can_file_complaints')
        files = list(files or [])
        self._validate(ctx, residence_id, data)
        if len(files) > self.max_files:
            raise ValidationError(
                f"You can attach at most {self.max_files} files",
                code="TOO_MANY_FILES",
                details={"field": "evidence"},
            )

        with transaction.atomic():
            complaint = Complaint.objects.create(
                residence_id=residence_id,
                complainant_id=ctx.user_id,
                complained_about_id=data.complained_about_id,
                reason=data.reason,
                privacy=data.privacy,
                title=data.title.strip(),
                description=data.description.strip(),
            )
        self.log_info("Complaint created", complaint_id=complaint.id, residence_id=residence_id)

        self._notify_created(complaint)
        result = self._attach(ctx, complaint, files)
        if result.failed:
            self.log_warning(
                "Complaint created with failed evidence uploads",
                complaint_id=complaint.id,
                failed=len(result.failed),
                total=result.total,
            )
        return complaint, result

    def _notify_created(self, complaint: Complaint):
        residence = access.get_residence(complaint.residence_id)
        if residence and residence.syndic_id:
            notify(
                residence.syndic_id,
                "New complaint",
                f"{complaint.complainant.display_name} filed a complaint: {complaint.title}",
                residence_id=complaint.residence_id,
                type=NotificationType.WARNING,
                action_data={'complaint_id': complaint.id},
            )
        if complaint.privacy == ComplaintPrivacy.ANONYMOUS:
            message = f"An anonymous complaint was filed about you: {complaint.title}"
        else:
            message = f"{complaint.complainant.display_name} filed a complaint about you: {complaint.title}"
        notify(
            complaint.complained_about_id,
            "Complaint received",
            message,
            residence_id=complaint.residence_id,
            type=NotificationType.WARNING,
            action_data={'complaint_id': complaint.id},
        )

    def _attach(self, ctx: AuthContext, complaint: Complaint, files) -> UploadResult:
        result = UploadResult()
        for uploaded in files:
            try:
                info = upload_file(
                    uploaded,
                    folder=f"complaints/{complaint.id}",
                    allowed_kinds=FileKind.ALL,
                    max_size=self.max_file_size,
                )
                ComplaintEvidence.objects.create(
                    complaint=complaint,
                    file_url=info.url,
                    file_name=info.file_name,
                    file_type=info.file_type,
                    file_size=info.file_size,
                    mime_type=info.mime_type,
                    uploaded_by_id=ctx.user_id,
                )
                result.uploaded.append(info.as_dict())
            except (BaseApplicationException, OSError) as e:
                self.log_error("Evidence upload failed", error=e, complaint_id=complaint.id, file_name=uploaded.name)
                result.failed.append({'file_name': uploaded.name, 'error': getattr(e, 'message', str(e))})
        return result

    def add_evidence(self, ctx: AuthContext, complaint_id: int, files) -> UploadResult:
        """The complainant adds evidence to an open complaint"""
        complaint = self.get_for_viewer(ctx, complaint_id)
        if complaint.complainant_id != ctx.user_id:
            raise PermissionDeniedError("Only the complainant can add evidence", code="FORBIDDEN")
        if complaint.status == ComplaintStatus.RESOLVED:
            raise ValidationError("Resolved complaints cannot receive evidence", code="COMPLAINT_RESOLVED")
        files = list(files or [])
        if not files:
            raise ValidationError("No files provided", code="REQUIRED", details={"field": "evidence"})
        if complaint.evidence.count() + len(files) > self.max_files:
            raise ValidationError(
                f"A complaint can hold at most {self.max_files} files",
                code="TOO_MANY_FILES",
                details={"field": "evidence"},
            )
        return self._attach(ctx, complaint, files)

    def list_for_viewer(self, ctx: AuthContext, status: str = None):
        residence_id = ctx.require_residence()
        queryset = Complaint.objects.filter(residence_id=residence_id).select_related(
            'complainant', 'complained_about', 'reviewed_by'
        )
        if not has_capability(ctx, 'can_review_complaints'):
            queryset = queryset.filter(Q(complainant_id=ctx.user_id) | Q(complained_about_id=ctx.user_id))
        if status:
            queryset = queryset.filter(status=status)
        return queryset.prefetch_related('evidence')

    def get_for_viewer(self, ctx: AuthContext, complaint_id: int) -> Complaint:
        residence_id = ctx.require_residence()
        complaint = (
            Complaint.objects.filter(id=complaint_id, residence_id=residence_id)
            .select_related('complainant', 'complained_about', 'reviewed_by')
            .first()
        )
        if complaint is None:
            raise NotFoundError("Complaint", complaint_id)
        if not can_view_complaint(complaint, ctx.user_id, ctx.role):
            raise PermissionDeniedError("You are not involved in this complaint", code="FORBIDDEN")
        return complaint

    @transaction.atomic
    def update_status(self, ctx: AuthContext, complaint_id: int, status: str, resolution_notes: str = None) -> Complaint:
        """
        Syndic review.

        Leaving 'submitted' stamps reviewed_at; entering 'resolved' stamps
        resolved_at, and leaving it clears the stamp.
        """
        residence_id = self.require(ctx, 'can_review_complaints')
        if status not in _choice_values(ComplaintStatus.CHOICES):
            raise ValidationError("Invalid complaint status", code="INVALID_STATUS", details={"field": "status"})
        complaint = Complaint.objects.select_for_update().filter(id=complaint_id, residence_id=residence_id).first()
        if complaint is None:
            raise NotFoundError("Complaint", complaint_id)

        now = timezone.now()
        previous = complaint.status
        complaint.status = status
        if resolution_notes is not None:
            complaint.resolution_notes = resolution_notes
        if previous == ComplaintStatus.SUBMITTED and status != ComplaintStatus.SUBMITTED:
            complaint.reviewed_at = now
            complaint.reviewed_by_id = ctx.user_id
        if status == ComplaintStatus.RESOLVED and previous != ComplaintStatus.RESOLVED:
            complaint.resolved_at = now
        elif status != ComplaintStatus.RESOLVED:
            complaint.resolved_at = None
        complaint.save()

        self.log_info("Complaint status changed", complaint_id=complaint.id, previous=previous, status=status)
        log_action(
            ctx, AuditLog.ACTION_STATUS_CHANGE, AuditLog.RESOURCE_COMPLAINT, complaint.id,
            f"Complaint {previous} -> {status}",
        )
        if previous != status:
            notify(
                complaint.complainant_id,
                "Complaint updated",
                f"Your complaint '{complaint.title}' is now {complaint.get_status_display().lower()}.",
                residence_id=residence_id,
                action_data={'complaint_id': complaint.id},
            )
        return complaint

    def evidence_for(self, ctx: AuthContext, complaint: Complaint) -> List[ComplaintEvidence]:
        if not has_capability(ctx, 'can_view_evidence'):
            return []
        return list(complaint.evidence.all())
