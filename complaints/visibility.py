"""
Who sees whom on a complaint.

Syndics always see the complainant. The complainant sees "You". The resident
complained about sees "Anonymous" when the complaint is anonymous, the real
name otherwise. Evidence is visible to syndics only, whatever the privacy.
"""
from core.constants import ComplaintPrivacy
from core.permissions import capabilities_for

YOU = "You"
ANONYMOUS = "Anonymous"


def complainant_label(complaint, viewer_id, viewer_role):
    if capabilities_for(viewer_role).can_review_complaints:
        return complaint.complainant.display_name
    if viewer_id == complaint.complainant_id:
        return YOU
    if viewer_id == complaint.complained_about_id and complaint.privacy == ComplaintPrivacy.ANONYMOUS:
        return ANONYMOUS
    return complaint.complainant.display_name


def reveals_complainant(complaint, viewer_id, viewer_role):
    """Whether the complainant's identity (id included) may be sent to the viewer"""
    return complainant_label(complaint, viewer_id, viewer_role) != ANONYMOUS


def can_view_evidence(viewer_role):
    return capabilities_for(viewer_role).can_view_evidence


def can_view_complaint(complaint, viewer_id, viewer_role):
    """Syndics see every complaint of their residence; residents only their own side"""
    if capabilities_for(viewer_role).can_review_complaints:
        return True
    return viewer_id in (complaint.complainant_id, complaint.complained_about_id)
