"""
Small builders for residences, members and fees used across the test suite.
"""
from datetime import date
from decimal import Decimal

from core.constants import CoveragePeriodType, FeeStatus, GUARD_APARTMENT, UserRole
from core.context import AuthContext
from fees.models import Fee, FeeRule
from residences.models import Residence, ProfileResidence
from users.models import User


def make_residence(name="Residence Atlas", syndic_email=None):
    residence = Residence.objects.create(name=name, address="12 Rue des Fleurs", city="Rabat")
    syndic = make_member(
        residence,
        syndic_email or f"syndic@{name.lower().replace(' ', '-')}.ma",
        role=UserRole.SYNDIC,
        apartment="S",
        full_name="Sara Syndic",
    )
    residence.syndic = syndic
    residence.save(update_fields=['syndic'])
    return residence, syndic


def make_member(residence, email, role=UserRole.RESIDENT, apartment=None, full_name=None):
    user = User.objects.create_user(
        username=email,
        email=email,
        password="pass-1234",
        full_name=full_name or email.split('@')[0].title(),
        role=role,
        residence=residence,
    )
    if apartment is None:
        apartment = GUARD_APARTMENT if role == UserRole.GUARD else str(User.objects.count())
    ProfileResidence.objects.create(profile=user, residence=residence, apartment_number=apartment)
    return user


def ctx_for(user, residence=None):
    return AuthContext(
        user_id=user.id,
        role=user.role,
        residence_id=residence.id if residence else user.residence_id,
    )


def make_rule(residence, syndic, title="Monthly charges", amount="250.00", value=1,
              period_type=CoveragePeriodType.MONTH, start=date(2024, 1, 1), **extra):
    return FeeRule.objects.create(
        residence=residence,
        title=title,
        amount=Decimal(amount),
        coverage_period_value=value,
        coverage_period_type=period_type,
        start_date=start,
        next_due_date=start,
        created_by=syndic,
        **extra,
    )


def make_fee(residence, user, title="Elevator repair", amount="100.00", due=date(2024, 1, 31),
             status=FeeStatus.UNPAID, rule=None):
    return Fee.objects.create(
        residence=residence,
        user=user,
        rule=rule,
        title=title,
        amount=Decimal(amount),
        due_date=due,
        status=status,
    )
