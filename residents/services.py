"""
Resident directory service.

A person has one profile across every residence they belong to, keyed by
email. Adding an email that already has a profile links that profile to the
residence instead of creating a second identity, and the shared identity
fields then stay read-only from any single residence.
"""
from dataclasses import dataclass, field
from typing import List, Optional

from django.contrib.auth import get_user_model
from django.db import transaction
from django.db.models import Q

from audit.helpers import log_action
from audit.models import AuditLog
from core.constants import GUARD_APARTMENT, UserRole
from core.context import AuthContext
from core.dto import ResidentDTO
from core.exceptions import BusinessLogicError, NotFoundError, PermissionDeniedError, ValidationError
from core.services import BaseService
from core.validators import ResidentValidator
from residences import access
from residences.models import ProfileResidence
from residences.repositories import MembershipRepository

User = get_user_model()

IDENTITY_FIELDS = ['full_name', 'email', 'phone_number', 'role']
ALL_FIELDS = IDENTITY_FIELDS + ['apartment_number']


@dataclass
class IdentityMatch:
    """What an email resolves to across all residences"""
    exists: bool
    profile: Optional[object] = None
    is_syndic: bool = False
    member_of_current: bool = False
    other_residence_ids: List[int] = field(default_factory=list)
    locked_fields: List[str] = field(default_factory=list)
    editable_fields: List[str] = field(default_factory=lambda: list(ALL_FIELDS))

    @property
    def can_join(self) -> bool:
        return not self.is_syndic and not self.member_of_current

    def as_dict(self):
        data = {
            'exists': self.exists,
            'is_syndic': self.is_syndic,
            'member_of_current': self.member_of_current,
            'other_residence_count': len(self.other_residence_ids),
            'locked_fields': self.locked_fields,
            'editable_fields': self.editable_fields,
            'can_join': self.can_join if self.exists else True,
        }
        if self.profile is not None and not self.is_syndic:
            data['profile'] = {
                'id': self.profile.id,
                'full_name': self.profile.full_name,
                'email': self.profile.email,
                'phone_number': self.profile.phone_number,
                'role': self.profile.role,
            }
        return data


@dataclass
class ResidentResult:
    membership: ProfileResidence
    inherited_fields: List[str] = field(default_factory=list)

    @property
    def joined_existing(self) -> bool:
        return bool(self.inherited_fields)


class ResidentDirectoryService(BaseService):
    """Adds, edits and removes residents and guards of the syndic's residence"""

    def __init__(self):
        super().__init__()
        self.membership_repo = MembershipRepository()

    def list_members(self, ctx: AuthContext, role: str = None, search: str = None):
        residence_id = self.require(ctx, 'can_manage_residents')
        queryset = access.get_members(residence_id, roles=[role] if role else None)
        if search:
            queryset = queryset.filter(
                Q(profile__full_name__icontains=search)
                | Q(profile__email__icontains=search)
                | Q(apartment_number__iexact=search)
            )
        return queryset

    def get_member(self, ctx: AuthContext, profile_id: int) -> ProfileResidence:
        residence_id = self.require(ctx, 'can_manage_residents')
        membership = self.membership_repo.get_membership(profile_id, residence_id)
        if membership is None:
            raise NotFoundError("Resident", profile_id)
        return membership

    def lookup_identity(self, ctx: AuthContext, email: str) -> IdentityMatch:
        """Resolve an email against every residence"""
        residence_id = self.require(ctx, 'can_manage_residents')
        profile = User.objects.get_by_email(ResidentValidator.normalize_email(email))
        if profile is None:
            return IdentityMatch(exists=False)

        is_syndic = profile.role == UserRole.SYNDIC
        return IdentityMatch(
            exists=True,
            profile=profile,
            is_syndic=is_syndic,
            member_of_current=access.is_member(profile.id, residence_id),
            other_residence_ids=access.other_residence_ids(profile.id, residence_id),
            locked_fields=list(ALL_FIELDS) if is_syndic else list(IDENTITY_FIELDS),
            editable_fields=[] if is_syndic else ['apartment_number'],
        )

    def check_apartment(self, ctx: AuthContext, apartment_number: str, exclude_profile_id: int = None) -> dict:
        residence_id = self.require(ctx, 'can_manage_residents')
        apartment = (apartment_number or '').strip()
        if not apartment or apartment == GUARD_APARTMENT:
            return {'available': True, 'reserved_by': None}
        holder = self.membership_repo.apartment_holder(residence_id, apartment, exclude_profile_id)
        if holder is None:
            return {'available': True, 'reserved_by': None}
        return {'available': False, 'reserved_by': holder.profile.display_name}

    def _ensure_apartment_free(self, residence_id, apartment, exclude_profile_id=None):
        if apartment == GUARD_APARTMENT:
            return
        holder = self.membership_repo.apartment_holder(residence_id, apartment, exclude_profile_id)
        if holder is not None:
            raise ValidationError(
                f"Apartment {apartment} is already assigned to {holder.profile.display_name}",
                code="APARTMENT_TAKEN",
                details={"field": "apartment_number"},
            )

    @transaction.atomic
    def create_resident(self, ctx: AuthContext, data: ResidentDTO) -> ResidentResult:
        """
        Add a resident or guard to the caller's residence.

        An email that already has a profile joins that profile to the residence;
        name, email, phone and role are then inherited and only the apartment
        number comes from the input.
        """
        residence_id = self.require(ctx, 'can_manage_residents')
        email = ResidentValidator.normalize_email(data.email)
        ResidentValidator.validate_email(email)

        existing = User.objects.get_by_email(email)
        if existing is not None:
            return self._join_existing(ctx, residence_id, existing, data)

        if not data.full_name or not data.full_name.strip():
            raise ValidationError("Full name is required", code="REQUIRED", details={"field": "full_name"})
        role = data.role or UserRole.RESIDENT
        ResidentValidator.validate_role(role)
        apartment = ResidentValidator.validate_apartment(data.apartment_number, role)
        self._ensure_apartment_free(residence_id, apartment)

        profile = User(
            username=email,
            email=email,
            full_name=data.full_name.strip(),
            phone_number=(data.phone_number or '').strip(),
            role=role,
            residence_id=residence_id,
            verified=True,
        )
        profile.set_unusable_password()
        profile.save()
        membership = self.membership_repo.create(
            profile=profile,
            residence_id=residence_id,
            apartment_number=apartment,
            verified=True,
        )
        self.log_info("Resident created", profile_id=profile.id, residence_id=residence_id, role=role)
        log_action(
            ctx, AuditLog.ACTION_CREATE, AuditLog.RESOURCE_RESIDENT, profile.id,
            f"Added {role} {profile.display_name} (apartment {apartment})",
        )
        return ResidentResult(membership=membership)

    def _join_existing(self, ctx, residence_id, profile, data: ResidentDTO) -> ResidentResult:
        if profile.role == UserRole.SYNDIC:
            raise PermissionDeniedError(
                "This email belongs to a syndic and cannot be added as a resident",
                code="SYNDIC_EMAIL",
            )
        if access.is_member(profile.id, residence_id):
            raise ValidationError(
                "This person is already a member of your residence",
                code="ALREADY_MEMBER",
                details={"field": "email"},
            )

        apartment = ResidentValidator.validate_apartment(data.apartment_number, profile.role)
        self._ensure_apartment_free(residence_id, apartment)
        membership = self.membership_repo.create(
            profile=profile,
            residence_id=residence_id,
            apartment_number=apartment,
            verified=True,
        )
        # A profile deactivated by an earlier removal signs in again once it rejoins
        updated = []
        if not profile.is_active:
            profile.is_active = True
            updated.append('is_active')
        if profile.residence_id is None:
            profile.residence_id = residence_id
            updated.append('residence')
        if updated:
            profile.save(update_fields=updated)

        self.log_info("Existing profile joined residence", profile_id=profile.id, residence_id=residence_id)
        log_action(
            ctx, AuditLog.ACTION_CREATE, AuditLog.RESOURCE_RESIDENT, profile.id,
            f"Linked existing profile {profile.display_name} (apartment {apartment})",
        )
        return ResidentResult(membership=membership, inherited_fields=list(IDENTITY_FIELDS))

    @transaction.atomic
    def update_resident(self, ctx: AuthContext, profile_id: int, data: ResidentDTO) -> ProfileResidence:
        """
        Edit a member of the caller's residence.

        A profile shared with another residence only accepts apartment changes.
        The syndic's own role is never editable here.
        """
        residence_id = self.require(ctx, 'can_manage_residents')
        membership = self.membership_repo.get_membership(profile_id, residence_id)
        if membership is None:
            raise NotFoundError("Resident", profile_id)
        profile = User.objects.select_for_update().get(id=membership.profile_id)

        if profile.role == UserRole.SYNDIC and profile.id != ctx.user_id:
            raise PermissionDeniedError("Syndic profiles cannot be edited", code="SYNDIC_PROTECTED")
        if data.role and data.role != profile.role and profile.id == ctx.user_id:
            raise ValidationError("You cannot change your own role", code="ROLE_LOCKED", details={"field": "role"})
        if data.role and data.role != profile.role:
            self.require(ctx, 'can_edit_roles')

        changes = {}
        if data.full_name is not None and data.full_name.strip() != profile.full_name:
            if not data.full_name.strip():
                raise ValidationError("Full name is required", code="REQUIRED", details={"field": "full_name"})
            changes['full_name'] = data.full_name.strip()
        if data.phone_number is not None and data.phone_number.strip() != profile.phone_number:
            changes['phone_number'] = data.phone_number.strip()
        if data.email is not None and ResidentValidator.normalize_email(data.email) != profile.email.lower():
            email = ResidentValidator.normalize_email(data.email)
            ResidentValidator.validate_email(email)
            if User.objects.filter(email__iexact=email).exclude(id=profile.id).exists():
                raise ValidationError(
                    "Another profile already uses this email",
                    code="EMAIL_TAKEN",
                    details={"field": "email"},
                )
            changes['email'] = email
            changes['username'] = email
        if data.role and data.role != profile.role:
            ResidentValidator.validate_role(data.role)
            changes['role'] = data.role

        shared = access.other_residence_ids(profile.id, residence_id)
        if changes and shared:
            raise ValidationError(
                "This person belongs to another residence; only the apartment number can be changed",
                code="SHARED_PROFILE",
                details={"locked_fields": sorted(set(changes) & set(IDENTITY_FIELDS))},
            )

        role = changes.get('role', profile.role)
        if data.apartment_number is not None or 'role' in changes:
            apartment_input = data.apartment_number if data.apartment_number is not None else membership.apartment_number
            if role == UserRole.SYNDIC:
                apartment = (apartment_input or '').strip() or membership.apartment_number
            else:
                apartment = ResidentValidator.validate_apartment(apartment_input, role)
            if apartment != membership.apartment_number:
                self._ensure_apartment_free(residence_id, apartment, exclude_profile_id=profile.id)
                membership.apartment_number = apartment
                membership.save(update_fields=['apartment_number'])

        if changes:
            for key, value in changes.items():
                setattr(profile, key, value)
            profile.save(update_fields=list(changes))
            membership.profile = profile

        self.log_info("Resident updated", profile_id=profile.id, fields=sorted(changes))
        return membership

    @transaction.atomic
    def delete_resident(self, ctx: AuthContext, profile_id: int) -> str:
        """
        Remove a member from the caller's residence.

        The profile itself is deleted only when no other residence uses it and
        it has no fee or payment history; otherwise it is deactivated.
        Returns 'membership_removed', 'profile_deactivated' or 'profile_deleted'.
        """
        residence_id = self.require(ctx, 'can_manage_residents')
        membership = self.membership_repo.get_membership(profile_id, residence_id)
        if membership is None:
            raise NotFoundError("Resident", profile_id)
        profile = membership.profile

        if profile.id == ctx.user_id:
            raise BusinessLogicError("You cannot remove yourself from the residence", code="CANNOT_REMOVE_SELF")
        if profile.role == UserRole.SYNDIC:
            raise PermissionDeniedError("Syndic profiles cannot be removed", code="SYNDIC_PROTECTED")

        name = profile.display_name
        self.membership_repo.delete(membership)
        remaining = ProfileResidence.objects.filter(profile_id=profile.id).order_by('id').first()

        if remaining is not None:
            if profile.residence_id == residence_id:
                profile.residence_id = remaining.residence_id
                profile.save(update_fields=['residence'])
            outcome = 'membership_removed'
        elif profile.fees.exists() or profile.payments.exists():
            profile.residence_id = None
            profile.is_active = False
            profile.save(update_fields=['residence', 'is_active'])
            outcome = 'profile_deactivated'
        else:
            profile.delete()
            outcome = 'profile_deleted'

        self.log_info("Resident removed", profile_id=profile_id, outcome=outcome)
        log_action(
            ctx, AuditLog.ACTION_DELETE, AuditLog.RESOURCE_RESIDENT, profile_id,
            f"Removed {name} ({outcome.replace('_', ' ')})",
        )
        return outcome
