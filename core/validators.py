"""
Validation utilities and validators.
Centralized validation logic following single responsibility principle.
"""
from decimal import Decimal, InvalidOperation
from django.core.exceptions import ValidationError
from django.core.validators import validate_email
from core.constants import (
    CoveragePeriodType,
    GUARD_APARTMENT,
    UserRole,
)
from core.exceptions import ValidationError as AppValidationError


MAX_AMOUNT = Decimal('9999999.99')


def _to_decimal(value, field):
    try:
        return Decimal(str(value))
    except (InvalidOperation, TypeError, ValueError):
        raise AppValidationError(
            message=f"{field} must be a number",
            code="INVALID_AMOUNT",
            details={"field": field},
        )


class AmountValidator:
    """Validates monetary amounts"""

    @staticmethod
    def validate_positive(amount, field: str = "amount") -> Decimal:
        """Amount must be strictly positive and within the column range"""
        if amount is None or amount == '':
            raise AppValidationError(
                message=f"{field} is required",
                code="REQUIRED",
                details={"field": field},
            )
        value = _to_decimal(amount, field)
        if value <= 0:
            raise AppValidationError(
                message=f"{field} must be greater than 0",
                code="INVALID_AMOUNT",
                details={"field": field},
            )
        if value > MAX_AMOUNT:
            raise AppValidationError(
                message=f"{field} exceeds maximum allowed",
                code="AMOUNT_TOO_LARGE",
                details={"field": field},
            )
        return value


class FeeRuleValidator:
    """Validates recurring fee rule definitions"""

    @staticmethod
    def validate(title, amount, coverage_period_value, coverage_period_type, start_date):
        if not title or not str(title).strip():
            raise AppValidationError(
                message="Title is required",
                code="REQUIRED",
                details={"field": "title"},
            )
        AmountValidator.validate_positive(amount)
        if coverage_period_value is None or int(coverage_period_value) < 1:
            raise AppValidationError(
                message="Coverage period value must be at least 1",
                code="INVALID_COVERAGE_VALUE",
                details={"field": "coverage_period_value"},
            )
        valid_types = [choice for choice, _ in CoveragePeriodType.CHOICES]
        if coverage_period_type not in valid_types:
            raise AppValidationError(
                message=f"Coverage period type must be one of: {', '.join(valid_types)}",
                code="INVALID_COVERAGE_TYPE",
                details={"field": "coverage_period_type"},
            )
        if start_date is None:
            raise AppValidationError(
                message="Start date is required",
                code="REQUIRED",
                details={"field": "start_date"},
            )


class PaymentMethodValidator:
    """Validates payment methods for manual recording"""

    @staticmethod
    def validate(method, allowed):
        if method not in allowed:
            raise AppValidationError(
                message=f"Payment method must be one of: {', '.join(allowed)}",
                code="INVALID_PAYMENT_METHOD",
                details={"field": "method"},
            )


class ResidentValidator:
    """Validates resident directory input"""

    @staticmethod
    def normalize_email(email) -> str:
        return (email or '').strip().lower()

    @staticmethod
    def validate_email(email):
        if not email:
            raise AppValidationError(
                message="Email is required",
                code="REQUIRED",
                details={"field": "email"},
            )
        try:
            validate_email(email)
        except ValidationError:
            raise AppValidationError(
                message="Invalid email format",
                code="INVALID_EMAIL",
                details={"field": "email"},
            )

    @staticmethod
    def validate_role(role):
        if role == UserRole.SYNDIC:
            raise AppValidationError(
                message="Cannot add a resident with syndic role. Only one syndic per residence is allowed.",
                code="SYNDIC_ROLE",
                details={"field": "role"},
            )
        if role not in (UserRole.RESIDENT, UserRole.GUARD):
            raise AppValidationError(
                message="Role must be resident or guard",
                code="INVALID_ROLE",
                details={"field": "role"},
            )

    @staticmethod
    def validate_apartment(apartment_number, role):
        """Apartment "0" is reserved for guards; residents need a real apartment"""
        apartment = (apartment_number or '').strip()
        if not apartment:
            raise AppValidationError(
                message="Apartment number is required",
                code="REQUIRED",
                details={"field": "apartment_number"},
            )
        if role == UserRole.GUARD and apartment != GUARD_APARTMENT:
            raise AppValidationError(
                message=f"Guards must use apartment number {GUARD_APARTMENT}",
                code="GUARD_APARTMENT",
                details={"field": "apartment_number"},
            )
        if role == UserRole.RESIDENT and apartment == GUARD_APARTMENT:
            raise AppValidationError(
                message=f"Apartment number {GUARD_APARTMENT} is reserved for guards",
                code="RESERVED_APARTMENT",
                details={"field": "apartment_number"},
            )
        return apartment

