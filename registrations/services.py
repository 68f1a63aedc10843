"""
Registration requests.

Anyone can ask to join a residence; the request waits until its syndic
approves it, which adds the person through the resident directory, or
rejects it with a reason. The applicant hears back by email either way.
"""
from django.contrib.auth import get_user_model
from django.db import transaction
from django.utils import timezone

from audit.helpers import log_action
from audit.models import AuditLog
from common.mailer import send_registration_approved_email, send_registration_rejected_email
from core.constants import DefaultLimits, NotificationType, RegistrationStatus, UserRole
from core.context import AuthContext
from core.dto import RegistrationDTO, ResidentDTO
from core.exceptions import ConflictError, NotFoundError, ValidationError
from core.services import BaseService
from core.validators import ResidentValidator
from notifications.helpers import notify
from residences import access
from residents.services import ResidentDirectoryService
from .models import RegistrationRequest

User = get_user_model()


class RegistrationService(BaseService):
    """Submission and syndic review of registration requests"""

    def __init__(self):
        super().__init__()
        self.directory = ResidentDirectoryService()

    def submit(self, data: RegistrationDTO) -> RegistrationRequest:
        """Public entry point; no signed-in user is needed"""
        residence = access.get_residence(data.residence_id) if data.residence_id else None
        if residence is None:
            raise NotFoundError("Residence", data.residence_id)

        full_name = (data.full_name or '').strip()
        if not full_name:
            raise ValidationError("Full name is required", code="REQUIRED", details={"field": "full_name"})
        email = ResidentValidator.normalize_email(data.email)
        ResidentValidator.validate_email(email)
        apartment = ResidentValidator.validate_apartment(data.apartment_number, UserRole.RESIDENT)

        profile = User.objects.get_by_email(email)
        if profile is not None and access.is_member(profile.id, residence.id):
            raise ValidationError(
                "This email is already registered in this residence",
                code="ALREADY_MEMBER",
                details={"field": "email"},
            )
        pending = RegistrationRequest.objects.filter(
            residence=residence, email=email, status=RegistrationStatus.PENDING
        )
        if pending.exists():
            raise ConflictError(
                "A registration request for this email is already pending",
                code="DUPLICATE_REQUEST",
                details={"field": "email"},
            )

        registration = RegistrationRequest.objects.create(
            residence=residence,
            full_name=full_name,
            email=email,
            phone_number=(data.phone_number or '').strip(),
            apartment_number=apartment,
            message=(data.message or '').strip(),
        )
        self.log_info("Registration request submitted", request_id=registration.id, residence_id=residence.id)
        if residence.syndic_id:
            notify(
                residence.syndic_id,
                "New registration request",
                f"{full_name} asked to join apartment {apartment}",
                residence_id=residence.id,
                type=NotificationType.INFO,
                action_data={'registration_request_id': registration.id},
            )
        return registration

    def list_requests(self, ctx: AuthContext, status: str = None):
        residence_id = self.require(ctx, 'can_review_registrations')
        queryset = RegistrationRequest.objects.filter(residence_id=residence_id).select_related('reviewed_by')
        if status:
            queryset = queryset.filter(status=status)
        return queryset

    def get_request(self, ctx: AuthContext, request_id: int) -> RegistrationRequest:
        return self._get(self.require(ctx, 'can_review_registrations'), request_id)

    def _get(self, residence_id, request_id, for_update=False) -> RegistrationRequest:
        queryset = RegistrationRequest.objects.select_related('residence')
        if for_update:
            queryset = queryset.select_for_update()
        registration = queryset.filter(pk=request_id, residence_id=residence_id).first()
        if registration is None:
            raise NotFoundError("Registration request", request_id)
        return registration

    def _ensure_pending(self, registration):
        if registration.status != RegistrationStatus.PENDING:
            raise ConflictError(
                f"This request has already been {registration.status}",
                code="ALREADY_REVIEWED",
            )

    def approve(self, ctx: AuthContext, request_id: int) -> RegistrationRequest:
        """
        Add the applicant as a resident and mark the request approved.

        Directory errors (apartment taken, already a member, syndic email)
        leave the request pending.
        """
        residence_id = self.require(ctx, 'can_review_registrations')
        with transaction.atomic():
            registration = self._get(residence_id, request_id, for_update=True)
            self._ensure_pending(registration)
            result = self.directory.create_resident(ctx, ResidentDTO(
                full_name=registration.full_name,
                email=registration.email,
                phone_number=registration.phone_number,
                apartment_number=registration.apartment_number,
                role=UserRole.RESIDENT,
            ))
            registration.status = RegistrationStatus.APPROVED
            registration.reviewed_by_id = ctx.user_id
            registration.reviewed_at = timezone.now()
            registration.profile = result.membership.profile
            registration.save(update_fields=['status', 'reviewed_by', 'reviewed_at', 'profile', 'updated_at'])
            log_action(
                ctx, AuditLog.ACTION_APPROVE, AuditLog.RESOURCE_REGISTRATION, registration.id,
                f"Approved registration of {registration.full_name} (apartment {registration.apartment_number})",
                metadata={'profile_id': registration.profile_id, 'joined_existing': result.joined_existing},
            )

        self.log_info("Registration approved", request_id=registration.id, profile_id=registration.profile_id)
        if not send_registration_approved_email(registration):
            self.log_warning("Welcome email not sent", request_id=registration.id)
        return registration

    def reject(self, ctx: AuthContext, request_id: int, reason: str) -> RegistrationRequest:
        residence_id = self.require(ctx, 'can_review_registrations')
        reason = (reason or '').strip()
        if len(reason) < DefaultLimits.REJECTION_REASON_MIN_LENGTH:
            raise ValidationError(
                f"Rejection reason must be at least {DefaultLimits.REJECTION_REASON_MIN_LENGTH} characters",
                code="REASON_TOO_SHORT",
                details={"field": "reason"},
            )

        with transaction.atomic():
            registration = self._get(residence_id, request_id, for_update=True)
            self._ensure_pending(registration)
            registration.status = RegistrationStatus.REJECTED
            registration.rejection_reason = reason
            registration.reviewed_by_id = ctx.user_id
            registration.reviewed_at = timezone.now()
            registration.save(update_fields=['status', 'rejection_reason', 'reviewed_by', 'reviewed_at', 'updated_at'])
            log_action(
                ctx, AuditLog.ACTION_REJECT, AuditLog.RESOURCE_REGISTRATION, registration.id,
                f"Rejected registration of {registration.full_name}",
                metadata={'reason': reason},
            )

        self.log_info("Registration rejected", request_id=registration.id)
        if not send_registration_rejected_email(registration):
            self.log_warning("Rejection email not sent", request_id=registration.id)
        return registration
