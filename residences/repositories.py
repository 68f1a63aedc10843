"""
Residence repository - Data access layer for Residence and membership rows.
Follows Repository pattern for clean separation of concerns.
"""
from typing import Optional
from django.db.models import QuerySet
from core.repositories import BaseRepository
from .models import Residence, ProfileResidence


class ResidenceRepository(BaseRepository[Residence]):
    """Repository for Residence model"""

    def __init__(self):
        super().__init__(Residence)

    def get_managed_by(self, syndic_id: int) -> QuerySet[Residence]:
        """Residences administered by a syndic"""
        return self.get_all(syndic_id=syndic_id)


class MembershipRepository(BaseRepository[ProfileResidence]):
    """Repository for ProfileResidence model"""

    def __init__(self):
        super().__init__(ProfileResidence)

    def get_membership(self, profile_id: int, residence_id: int) -> Optional[ProfileResidence]:
        return self.get_all(profile_id=profile_id, residence_id=residence_id).select_related('profile').first()

    def get_by_residence(self, residence_id: int) -> QuerySet[ProfileResidence]:
        return self.get_all(residence_id=residence_id).select_related('profile')

    def apartment_holder(self, residence_id: int, apartment_number: str,
                         exclude_profile_id: int = None) -> Optional[ProfileResidence]:
        """Membership already holding an apartment in a residence"""
        queryset = self.get_all(residence_id=residence_id, apartment_number=apartment_number.strip())
        if exclude_profile_id:
            queryset = queryset.exclude(profile_id=exclude_profile_id)
        return queryset.select_related('profile').first()
