from unittest import mock

from django.contrib.auth import authenticate
from django.test import TestCase

from core.constants import UserRole
from core.dto import ResidentDTO
from core.exceptions import BusinessLogicError, PermissionDeniedError, ValidationError
from core.permissions import CAPABILITIES, Capabilities
from residences.models import ProfileResidence
from residents.services import IDENTITY_FIELDS, ResidentDirectoryService
from users.models import User
from .factories import make_residence, make_member, make_fee, ctx_for


class ResidentCreationTests(TestCase):

    def setUp(self):
        self.residence, self.syndic = make_residence()
        self.ctx = ctx_for(self.syndic)
        self.service = ResidentDirectoryService()

    def test_create_new_resident(self):
        result = self.service.create_resident(self.ctx, ResidentDTO(
            full_name="Alice Amrani", email="Alice@Example.com ", apartment_number="12",
        ))

        profile = result.membership.profile
        self.assertFalse(result.joined_existing)
        self.assertEqual(profile.email, "alice@example.com")
        self.assertEqual(profile.role, UserRole.RESIDENT)
        self.assertEqual(profile.residence_id, self.residence.id)
        self.assertFalse(profile.has_usable_password())

    def test_guard_gets_reserved_apartment(self):
        result = self.service.create_resident(self.ctx, ResidentDTO(
            full_name="Omar Guard", email="omar@example.com", role=UserRole.GUARD, apartment_number="0",
        ))
        self.assertEqual(result.membership.apartment_number, "0")

    def test_resident_cannot_take_guard_apartment(self):
        with self.assertRaises(ValidationError):
            self.service.create_resident(self.ctx, ResidentDTO(
                full_name="Alice", email="alice@example.com", apartment_number="0",
            ))

    def test_apartment_already_taken(self):
        make_member(self.residence, "bob@example.com", apartment="7")
        with self.assertRaises(ValidationError) as caught:
            self.service.create_resident(self.ctx, ResidentDTO(
                full_name="Alice", email="alice@example.com", apartment_number="7",
            ))
        self.assertEqual(caught.exception.code, "APARTMENT_TAKEN")

    def test_residents_cannot_add_members(self):
        resident = make_member(self.residence, "bob@example.com", apartment="7")
        with self.assertRaises(PermissionDeniedError):
            self.service.create_resident(ctx_for(resident), ResidentDTO(
                full_name="Alice", email="alice@example.com", apartment_number="8",
            ))


class CrossResidenceIdentityTests(TestCase):

    def setUp(self):
        self.first, self.first_syndic = make_residence("First Court")
        self.second, self.second_syndic = make_residence("Second Court")
        self.shared = make_member(
            self.first, "shared@example.com", apartment="3", full_name="Nadia Shared",
        )
        self.ctx = ctx_for(self.second_syndic)
        self.service = ResidentDirectoryService()

    def test_lookup_reports_locked_fields(self):
        match = self.service.lookup_identity(self.ctx, "SHARED@example.com")

        self.assertTrue(match.exists)
        self.assertTrue(match.can_join)
        self.assertEqual(match.locked_fields, IDENTITY_FIELDS)
        self.assertEqual(match.editable_fields, ['apartment_number'])
        self.assertEqual(match.other_residence_ids, [self.first.id])

    def test_lookup_unknown_email(self):
        self.assertFalse(self.service.lookup_identity(self.ctx, "nobody@example.com").exists)

    def test_existing_email_joins_with_inherited_identity(self):
        result = self.service.create_resident(self.ctx, ResidentDTO(
            full_name="Someone Else", email="shared@example.com", phone_number="0600000000",
            apartment_number="9",
        ))

        self.assertTrue(result.joined_existing)
        self.assertEqual(result.membership.profile_id, self.shared.id)
        self.assertEqual(result.membership.apartment_number, "9")
        self.shared.refresh_from_db()
        self.assertEqual(self.shared.full_name, "Nadia Shared")
        self.assertEqual(User.objects.filter(email__iexact="shared@example.com").count(), 1)

    def test_syndic_email_cannot_join(self):
        with self.assertRaises(PermissionDeniedError) as caught:
            self.service.create_resident(self.ctx, ResidentDTO(
                full_name="X", email=self.first_syndic.email, apartment_number="4",
            ))
        self.assertEqual(caught.exception.code, "SYNDIC_EMAIL")

    def test_shared_profile_identity_is_locked(self):
        self.service.create_resident(self.ctx, ResidentDTO(email="shared@example.com", apartment_number="9"))

        with self.assertRaises(ValidationError) as caught:
            self.service.update_resident(self.ctx, self.shared.id, ResidentDTO(full_name="Renamed"))

        self.assertEqual(caught.exception.code, "SHARED_PROFILE")
        self.shared.refresh_from_db()
        self.assertEqual(self.shared.full_name, "Nadia Shared")

    def test_shared_profile_apartment_is_editable(self):
        self.service.create_resident(self.ctx, ResidentDTO(email="shared@example.com", apartment_number="9"))

        membership = self.service.update_resident(self.ctx, self.shared.id, ResidentDTO(apartment_number="10"))

        self.assertEqual(membership.apartment_number, "10")
        first_membership = ProfileResidence.objects.get(profile=self.shared, residence=self.first)
        self.assertEqual(first_membership.apartment_number, "3")

    def test_removing_shared_profile_keeps_it(self):
        self.service.create_resident(self.ctx, ResidentDTO(email="shared@example.com", apartment_number="9"))

        outcome = self.service.delete_resident(self.ctx, self.shared.id)

        self.assertEqual(outcome, 'membership_removed')
        self.assertTrue(User.objects.filter(id=self.shared.id).exists())


class ResidentRemovalTests(TestCase):

    def setUp(self):
        self.residence, self.syndic = make_residence()
        self.ctx = ctx_for(self.syndic)
        self.service = ResidentDirectoryService()

    def test_profile_without_history_is_deleted(self):
        resident = make_member(self.residence, "alice@example.com", apartment="1")
        self.assertEqual(self.service.delete_resident(self.ctx, resident.id), 'profile_deleted')
        self.assertFalse(User.objects.filter(id=resident.id).exists())

    def test_profile_with_fees_is_deactivated(self):
        resident = make_member(self.residence, "alice@example.com", apartment="1")
        make_fee(self.residence, resident)

        self.assertEqual(self.service.delete_resident(self.ctx, resident.id), 'profile_deactivated')
        resident.refresh_from_db()
        self.assertFalse(resident.is_active)
        self.assertIsNone(resident.residence_id)

    def test_removed_resident_rejoins_active(self):
        resident = make_member(self.residence, "alice@example.com", apartment="1")
        make_fee(self.residence, resident)
        self.service.delete_resident(self.ctx, resident.id)

        result = self.service.create_resident(self.ctx, ResidentDTO(email="alice@example.com", apartment_number="1"))

        resident.refresh_from_db()
        self.assertTrue(result.joined_existing)
        self.assertTrue(resident.is_active)
        self.assertEqual(resident.residence_id, self.residence.id)
        self.assertEqual(authenticate(username="alice@example.com", password="pass-1234"), resident)

    def test_syndic_cannot_remove_self(self):
        with self.assertRaises(BusinessLogicError):
            self.service.delete_resident(self.ctx, self.syndic.id)

    def test_own_role_is_locked(self):
        with self.assertRaises(ValidationError) as caught:
            self.service.update_resident(self.ctx, self.syndic.id, ResidentDTO(role=UserRole.RESIDENT))
        self.assertEqual(caught.exception.code, "ROLE_LOCKED")

    def test_email_taken(self):
        make_member(self.residence, "alice@example.com", apartment="1")
        bob = make_member(self.residence, "bob@example.com", apartment="2")
        with self.assertRaises(ValidationError) as caught:
            self.service.update_resident(self.ctx, bob.id, ResidentDTO(email="ALICE@example.com"))
        self.assertEqual(caught.exception.code, "EMAIL_TAKEN")


class RoleEditingTests(TestCase):

    def setUp(self):
        self.residence, self.syndic = make_residence()
        self.ctx = ctx_for(self.syndic)
        self.service = ResidentDirectoryService()
        self.resident = make_member(self.residence, "alice@example.com", apartment="1")

    def test_syndic_turns_resident_into_guard(self):
        membership = self.service.update_resident(
            self.ctx, self.resident.id, ResidentDTO(role=UserRole.GUARD, apartment_number="0"),
        )
        self.assertEqual(membership.profile.role, UserRole.GUARD)
        self.assertEqual(membership.apartment_number, "0")

    def test_role_change_needs_role_capability(self):
        managers_only = {UserRole.SYNDIC: Capabilities(can_manage_residents=True)}
        with mock.patch.dict(CAPABILITIES, managers_only):
            with self.assertRaises(PermissionDeniedError):
                self.service.update_resident(
                    self.ctx, self.resident.id, ResidentDTO(role=UserRole.GUARD, apartment_number="0"),
                )
            membership = self.service.update_resident(
                self.ctx, self.resident.id, ResidentDTO(phone_number="0600000000"),
            )
        self.assertEqual(membership.profile.role, UserRole.RESIDENT)
        self.assertEqual(membership.profile.phone_number, "0600000000")
