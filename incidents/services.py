"""
Incident service - reporting, assignment and status of residence incidents.
"""
from django.conf import settings
from django.db import transaction

from audit.helpers import log_action
from audit.models import AuditLog
from common.storage import upload_file
from core.constants import DefaultLimits, FileKind, IncidentStatus, NotificationType, UserRole
from core.context import AuthContext
from core.dto import IncidentDTO
from core.exceptions import NotFoundError, PermissionDeniedError, ValidationError
from core.permissions import has_capability, require_capability
from core.services import BaseService
from notifications.helpers import notify
from residences import access
from .models import Incident

ASSIGNABLE_ROLES = [UserRole.SYNDIC, UserRole.GUARD]


class IncidentService(BaseService):
    """Business rules for incidents"""

    @property
    def max_photo_size(self):
        return getattr(settings, 'INCIDENT_PHOTO_MAX_SIZE', DefaultLimits.INCIDENT_PHOTO_MAX_SIZE)

    def _store_photo(self, photo):
        info = upload_file(photo, folder='incidents', allowed_kinds=[FileKind.IMAGE], max_size=self.max_photo_size)
        return info.url

    def list_for_viewer(self, ctx: AuthContext, status: str = None):
        """Syndics and guards see every incident of the residence, residents their own"""
        residence_id = ctx.require_residence()
        queryset = Incident.objects.filter(residence_id=residence_id).select_related('user', 'assigned_to')
        if not has_capability(ctx, 'can_view_all_incidents'):
            queryset = queryset.filter(user_id=ctx.user_id)
        if status:
            queryset = queryset.filter(status=status)
        return queryset

    def get_for_viewer(self, ctx: AuthContext, incident_id: int) -> Incident:
        incident = self.list_for_viewer(ctx).filter(id=incident_id).first()
        if incident is None:
            raise NotFoundError("Incident", incident_id)
        return incident

    def assignable_users(self, ctx: AuthContext):
        """Syndic and guard members an incident can be assigned to"""
        residence_id = self.require(ctx, 'can_assign_incidents')
        return access.get_members(residence_id, roles=ASSIGNABLE_ROLES)

    def create_incident(self, ctx: AuthContext, data: IncidentDTO, photo=None) -> Incident:
        residence_id = self.require(ctx, 'can_report_incidents')
        if not access.is_member(ctx.user_id, residence_id) and not ctx.is_syndic:
            raise PermissionDeniedError("You are not a member of this residence", code="NOT_A_MEMBER")
        if not data.title or not data.title.strip():
            raise ValidationError("Title is required", code="REQUIRED", details={"field": "title"})
        if not data.description or not data.description.strip():
            raise ValidationError("Description is required", code="REQUIRED", details={"field": "description"})

        photo_url = self._store_photo(photo) if photo else ''
        incident = Incident.objects.create(
            residence_id=residence_id,
            user_id=ctx.user_id,
            title=data.title.strip(),
            description=data.description.strip(),
            photo_url=photo_url,
        )
        self.log_info("Incident reported", incident_id=incident.id, residence_id=residence_id)

        residence = access.get_residence(residence_id)
        if residence and residence.syndic_id and residence.syndic_id != ctx.user_id:
            notify(
                residence.syndic_id,
                "New incident",
                f"{incident.user.display_name} reported: {incident.title}",
                residence_id=residence_id,
                type=NotificationType.WARNING,
                action_data={'incident_id': incident.id},
            )
        return incident

    @transaction.atomic
    def update_incident(self, ctx: AuthContext, incident_id: int, data: IncidentDTO, photo=None) -> Incident:
        """
        Edit an incident.

        The reporter may change title, description and photo. Status and
        assignment changes are reserved to syndics.
        """
        residence_id = ctx.require_residence()
        incident = Incident.objects.select_for_update().filter(id=incident_id, residence_id=residence_id).first()
        if incident is None:
            raise NotFoundError("Incident", incident_id)

        is_reporter = incident.user_id == ctx.user_id
        edits_content = data.title is not None or data.description is not None or photo is not None
        if edits_content and not (is_reporter or has_capability(ctx, 'can_update_incident_status')):
            raise PermissionDeniedError("Only the reporter can edit this incident", code="FORBIDDEN")

        if data.title is not None:
            if not data.title.strip():
                raise ValidationError("Title is required", code="REQUIRED", details={"field": "title"})
            incident.title = data.title.strip()
        if data.description is not None:
            if not data.description.strip():
                raise ValidationError("Description is required", code="REQUIRED", details={"field": "description"})
            incident.description = data.description.strip()
        if photo is not None:
            incident.photo_url = self._store_photo(photo)

        previous_status = incident.status
        if data.status is not None and data.status != incident.status:
            require_capability(ctx, 'can_update_incident_status')
            if data.status not in [value for value, _ in IncidentStatus.CHOICES]:
                raise ValidationError("Invalid incident status", code="INVALID_STATUS", details={"field": "status"})
            incident.status = data.status

        previous_assignee = incident.assigned_to_id
        if data.clear_assignment or data.assigned_to_id is not None:
            require_capability(ctx, 'can_assign_incidents')
            if data.clear_assignment:
                incident.assigned_to = None
            else:
                assignee = access.get_membership(data.assigned_to_id, residence_id)
                if assignee is None or assignee.profile.role not in ASSIGNABLE_ROLES:
                    raise ValidationError(
                        "Incidents can only be assigned to a syndic or guard of the residence",
                        code="INVALID_ASSIGNEE",
                        details={"field": "assigned_to_id"},
                    )
                incident.assigned_to_id = data.assigned_to_id

        incident.save()
        self.log_info("Incident updated", incident_id=incident.id, status=incident.status)

        if incident.status != previous_status:
            log_action(
                ctx, AuditLog.ACTION_STATUS_CHANGE, AuditLog.RESOURCE_INCIDENT, incident.id,
                f"Incident {previous_status} -> {incident.status}",
            )
            if incident.user_id != ctx.user_id:
                notify(
                    incident.user_id,
                    "Incident updated",
                    f"'{incident.title}' is now {incident.get_status_display().lower()}.",
                    residence_id=residence_id,
                    action_data={'incident_id': incident.id},
                )
        if incident.assigned_to_id and incident.assigned_to_id != previous_assignee:
            notify(
                incident.assigned_to_id,
                "Incident assigned to you",
                incident.title,
                residence_id=residence_id,
                action_data={'incident_id': incident.id},
            )
        return incident

    @transaction.atomic
    def delete_incident(self, ctx: AuthContext, incident_id: int):
        residence_id = self.require(ctx, 'can_delete_incidents')
        incident = Incident.objects.filter(id=incident_id, residence_id=residence_id).first()
        if incident is None:
            raise NotFoundError("Incident", incident_id)
        title = incident.title
        incident.delete()
        self.log_info("Incident deleted", incident_id=incident_id)
        log_action(ctx, AuditLog.ACTION_DELETE, AuditLog.RESOURCE_INCIDENT, incident_id, f"Deleted incident {title}")
