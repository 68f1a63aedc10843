"""
Application-wide constants.
Centralized constants following DRY principle.
"""

# User Roles
class UserRole:
    RESIDENT = 'resident'
    GUARD = 'guard'
    SYNDIC = 'syndic'

    CHOICES = [
        (RESIDENT, 'Resident'),
        (GUARD, 'Guard'),
        (SYNDIC, 'Syndic'),
    ]


# Apartment number reserved for guards
GUARD_APARTMENT = '0'


# Coverage period units for recurring fee rules
class CoveragePeriodType:
    WEEK = 'week'
    MONTH = 'month'
    YEAR = 'year'

    CHOICES = [
        (WEEK, 'Week'),
        (MONTH, 'Month'),
        (YEAR, 'Year'),
    ]


# Fee Status
class FeeStatus:
    UNPAID = 'unpaid'
    PAID = 'paid'
    OVERDUE = 'overdue'

    CHOICES = [
        (UNPAID, 'Unpaid'),
        (PAID, 'Paid'),
        (OVERDUE, 'Overdue'),
    ]

    OUTSTANDING = [UNPAID, OVERDUE]


# Payment Methods
class PaymentMethod:
    CASH = 'cash'
    CHECK = 'check'
    TRANSFER = 'transfer'
    BANK_TRANSFER = 'bank_transfer'
    ONLINE_CARD = 'online_card'

    CHOICES = [
        (CASH, 'Cash'),
        (CHECK, 'Check'),
        (TRANSFER, 'Transfer'),
        (BANK_TRANSFER, 'Bank transfer'),
        (ONLINE_CARD, 'Online card'),
    ]

    # Methods a syndic can record by hand
    MANUAL = [CASH, CHECK, TRANSFER]
    CUSTOM = [CASH, CHECK, TRANSFER, BANK_TRANSFER]

    # Balance buckets
    CASH_BUCKET = [CASH]
    BANK_BUCKET = [CHECK, TRANSFER, BANK_TRANSFER]
    ONLINE_BUCKET = [ONLINE_CARD]


# Payment Status
class PaymentStatus:
    PENDING = 'pending'
    COMPLETED = 'completed'
    REJECTED = 'rejected'

    CHOICES = [
        (PENDING, 'Pending'),
        (COMPLETED, 'Completed'),
        (REJECTED, 'Rejected'),
    ]

    # Allowed corrections: current status -> reachable statuses
    TRANSITIONS = {
        PENDING: [COMPLETED, REJECTED],
        COMPLETED: [REJECTED],
        REJECTED: [],
    }


# Complaint Status
class ComplaintStatus:
    SUBMITTED = 'submitted'
    REVIEWED = 'reviewed'
    RESOLVED = 'resolved'

    CHOICES = [
        (SUBMITTED, 'Submitted'),
        (REVIEWED, 'Reviewed'),
        (RESOLVED, 'Resolved'),
    ]


class ComplaintPrivacy:
    PRIVATE = 'private'
    ANONYMOUS = 'anonymous'

    CHOICES = [
        (PRIVATE, 'Private'),
        (ANONYMOUS, 'Anonymous'),
    ]


class ComplaintReason:
    NOISE = 'noise'
    TRASH = 'trash'
    BEHAVIOR = 'behavior'
    PARKING = 'parking'
    PETS = 'pets'
    PROPERTY_DAMAGE = 'property_damage'
    OTHER = 'other'

    CHOICES = [
        (NOISE, 'Noise'),
        (TRASH, 'Trash'),
        (BEHAVIOR, 'Behavior'),
        (PARKING, 'Parking'),
        (PETS, 'Pets'),
        (PROPERTY_DAMAGE, 'Property damage'),
        (OTHER, 'Other'),
    ]


# Incident Status
class IncidentStatus:
    OPEN = 'open'
    IN_PROGRESS = 'in_progress'
    RESOLVED = 'resolved'
    CLOSED = 'closed'

    CHOICES = [
        (OPEN, 'Open'),
        (IN_PROGRESS, 'In Progress'),
        (RESOLVED, 'Resolved'),
        (CLOSED, 'Closed'),
    ]

    ACTIVE = [OPEN, IN_PROGRESS]


# Registration request status
class RegistrationStatus:
    PENDING = 'pending'
    APPROVED = 'approved'
    REJECTED = 'rejected'

    CHOICES = [
        (PENDING, 'Pending'),
        (APPROVED, 'Approved'),
        (REJECTED, 'Rejected'),
    ]


# Expense Status
class ExpenseStatus:
    DRAFT = 'draft'
    APPROVED = 'approved'
    PAID = 'paid'
    CANCELLED = 'cancelled'

    CHOICES = [
        (DRAFT, 'Draft'),
        (APPROVED, 'Approved'),
        (PAID, 'Paid'),
        (CANCELLED, 'Cancelled'),
    ]

    EDITABLE = [DRAFT]
    # Committed spending: approved but not yet paid, or paid
    COMMITTED = [APPROVED, PAID]


class ExpenseCategory:
    MAINTENANCE = 'maintenance'
    CLEANING = 'cleaning'
    UTILITIES = 'utilities'
    SECURITY = 'security'
    INSURANCE = 'insurance'
    ADMINISTRATION = 'administration'
    OTHER = 'other'

    CHOICES = [
        (MAINTENANCE, 'Maintenance'),
        (CLEANING, 'Cleaning'),
        (UTILITIES, 'Utilities'),
        (SECURITY, 'Security'),
        (INSURANCE, 'Insurance'),
        (ADMINISTRATION, 'Administration'),
        (OTHER, 'Other'),
    ]


# Uploaded file kinds
class FileKind:
    IMAGE = 'image'
    AUDIO = 'audio'
    VIDEO = 'video'

    ALL = [IMAGE, AUDIO, VIDEO]


# Notification types
class NotificationType:
    INFO = 'info'
    SUCCESS = 'success'
    WARNING = 'warning'
    ERROR = 'error'

    CHOICES = [
        (INFO, 'Info'),
        (SUCCESS, 'Success'),
        (WARNING, 'Warning'),
        (ERROR, 'Error'),
    ]


# Default Limits
class DefaultLimits:
    INCIDENT_PHOTO_MAX_SIZE = 10 * 1024 * 1024
    COMPLAINT_EVIDENCE_MAX_SIZE = 50 * 1024 * 1024
    COMPLAINT_EVIDENCE_MAX_FILES = 5
    OVERDUE_REMINDER_EVERY_DAYS = 3
    REJECTION_REASON_MIN_LENGTH = 10


# Pagination
class Pagination:
    DEFAULT_PAGE_SIZE = 20
    MAX_PAGE_SIZE = 100
