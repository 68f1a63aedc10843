"""
Residence service - the residence a user acts in and its settings.
"""
from django.db import transaction

from core.constants import UserRole
from core.context import AuthContext
from core.exceptions import NotFoundError, PermissionDeniedError, ValidationError
from core.services import BaseService
from users.models import User
from .models import Residence
from .repositories import ResidenceRepository, MembershipRepository

EDITABLE_FIELDS = ['name', 'address', 'city', 'bank_rib']


class ResidenceService(BaseService):
    """Service for residence settings and residence switching"""

    def __init__(self):
        super().__init__()
        self.residence_repo = ResidenceRepository()
        self.membership_repo = MembershipRepository()

    def current(self, ctx: AuthContext) -> Residence:
        residence_id = ctx.require_residence()
        residence = self.residence_repo.get_by_id(residence_id)
        if residence is None:
            raise NotFoundError("Residence", residence_id)
        return residence

    def for_user(self, ctx: AuthContext):
        """Residences the user belongs to, plus those they administer"""
        member_of = self.membership_repo.get_all(profile_id=ctx.user_id).values_list('residence_id', flat=True)
        managed = self.residence_repo.get_managed_by(ctx.user_id).values_list('id', flat=True)
        return Residence.objects.filter(id__in=list(member_of) + list(managed)).select_related('syndic')

    def update_current(self, ctx: AuthContext, changes: dict) -> Residence:
        """Syndic edits name, address, city and bank details of their residence"""
        residence_id = self.require(ctx, 'can_manage_residents')
        residence = self.residence_repo.get_by_id(residence_id)
        if residence.syndic_id != ctx.user_id:
            raise PermissionDeniedError("Only the residence syndic can edit it", code="FORBIDDEN")
        values = {key: value for key, value in changes.items() if key in EDITABLE_FIELDS}
        if 'name' in values and not (values['name'] or '').strip():
            raise ValidationError("Residence name is required", code="REQUIRED", details={"field": "name"})
        residence = self.residence_repo.update(residence, **values)
        self.log_info("Residence updated", residence_id=residence_id, fields=sorted(values))
        return residence

    @transaction.atomic
    def switch(self, ctx: AuthContext, residence_id: int) -> User:
        """
        Make another residence the one the user acts in.

        Residents and guards may switch between residences they belong to.
        Syndics stay bound to the residence they administer.
        """
        if ctx.role == UserRole.SYNDIC:
            raise PermissionDeniedError("Syndics cannot switch residence", code="SYNDIC_LOCKED")
        if self.membership_repo.get_membership(ctx.user_id, residence_id) is None:
            raise NotFoundError("Residence", residence_id)
        User.objects.filter(id=ctx.user_id).update(residence_id=residence_id)
        self.log_info("Residence switched", user_id=ctx.user_id, residence_id=residence_id)
        return User.objects.get(id=ctx.user_id)
