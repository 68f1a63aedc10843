"""
Residence Access Control Helper Functions

This module provides residence-level isolation for every domain query.

Access Rules:
- Residence-level isolation: users ONLY see data of the residence they act in
- Membership: a profile belongs to a residence through a ProfileResidence row
- Syndics administer exactly the residence assigned on their profile
"""

from residences.models import ProfileResidence, Residence


# ============================================================================
# ACCESS CONTROL HELPER FUNCTIONS
# ============================================================================

def get_membership(profile_id, residence_id):
    """
    Get the membership row linking a profile to a residence.

    Returns:
        ProfileResidence or None
    """
    return ProfileResidence.objects.filter(
        profile_id=profile_id,
        residence_id=residence_id,
    ).select_related('profile').first()


def is_member(profile_id, residence_id):
    """Check if a profile belongs to a residence"""
    return ProfileResidence.objects.filter(
        profile_id=profile_id,
        residence_id=residence_id,
    ).exists()


def get_members(residence_id, roles=None):
    """
    Get membership rows of a residence.

    Args:
        residence_id: Residence ID
        roles: Optional list of profile roles to keep

    Usage:
        residents = get_members(residence.id, roles=['resident'])
    """
    queryset = ProfileResidence.objects.filter(residence_id=residence_id)
    if roles:
        queryset = queryset.filter(profile__role__in=roles)
    return queryset.select_related('profile').order_by('apartment_number')


def get_member_ids(residence_id, roles=None):
    """IDs of profiles belonging to a residence"""
    return list(get_members(residence_id, roles).values_list('profile_id', flat=True))


def other_residence_ids(profile_id, residence_id):
    """IDs of residences the profile belongs to besides the given one"""
    return list(
        ProfileResidence.objects.filter(profile_id=profile_id)
        .exclude(residence_id=residence_id)
        .values_list('residence_id', flat=True)
    )



def get_residence(residence_id):
    """Get a residence by ID or None"""
    return Residence.objects.filter(id=residence_id).select_related('syndic').first()
