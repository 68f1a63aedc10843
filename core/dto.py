"""
Data Transfer Objects (DTOs).
Used for passing data between layers without exposing domain models.
"""
from dataclasses import dataclass, field
from typing import Optional, List
from decimal import Decimal
from datetime import date


@dataclass
class ResidentDTO:
    """Data Transfer Object for a resident being added or edited"""
    full_name: Optional[str] = None
    email: Optional[str] = None
    phone_number: Optional[str] = None
    apartment_number: Optional[str] = None
    role: Optional[str] = None


@dataclass
class FeeRuleDTO:
    """Data Transfer Object for a recurring fee rule"""
    title: str = ""
    amount: Decimal = Decimal('0')
    coverage_period_value: int = 1
    coverage_period_type: str = "month"
    start_date: Optional[date] = None
    next_due_date: Optional[date] = None
    is_active: bool = True
    reminder_enabled: bool = False
    reminder_days_before: int = 3


@dataclass
class FeeDTO:
    """Data Transfer Object for an ad hoc fee"""
    user_id: Optional[int] = None
    title: str = ""
    amount: Decimal = Decimal('0')
    due_date: Optional[date] = None


@dataclass
class ComplaintDTO:
    """Data Transfer Object for a complaint being filed"""
    complained_about_id: Optional[int] = None
    reason: str = ""
    privacy: str = "private"
    title: str = ""
    description: str = ""


@dataclass
class IncidentDTO:
    """Data Transfer Object for an incident report or edit"""
    title: Optional[str] = None
    description: Optional[str] = None
    status: Optional[str] = None
    assigned_to_id: Optional[int] = None
    clear_assignment: bool = False


@dataclass
class RegistrationDTO:
    """Registration request submitted by a prospective resident"""
    residence_id: Optional[int] = None
    full_name: str = ""
    email: str = ""
    phone_number: str = ""
    apartment_number: str = ""
    message: str = ""


@dataclass
class ExpenseDTO:
    """Data Transfer Object for a residence expense"""
    title: Optional[str] = None
    amount: Optional[Decimal] = None
    expense_date: Optional[date] = None
    category: Optional[str] = None
    description: Optional[str] = None
    vendor_name: Optional[str] = None
    invoice_number: Optional[str] = None
    notes: Optional[str] = None


@dataclass
class UploadResult:
    """Outcome of a batch of file uploads"""
    uploaded: List[dict] = field(default_factory=list)
    failed: List[dict] = field(default_factory=list)

    @property
    def total(self) -> int:
        return len(self.uploaded) + len(self.failed)
