from django.test import SimpleTestCase

from core.constants import UserRole
from core.context import AuthContext
from core.exceptions import AuthenticationRequiredError, PermissionDeniedError
from core.permissions import CAPABILITY_NAMES, capabilities_for, has_capability, require_capability


class CapabilityTableTests(SimpleTestCase):

    def test_syndic_holds_every_management_capability(self):
        caps = capabilities_for(UserRole.SYNDIC)
        for name in ('can_manage_residents', 'can_manage_fees', 'can_record_payments',
                     'can_view_balances', 'can_review_complaints', 'can_view_evidence',
                     'can_assign_incidents', 'can_delete_incidents', 'can_edit_roles',
                     'can_review_registrations', 'can_manage_expenses'):
            self.assertTrue(getattr(caps, name), name)
        self.assertFalse(caps.can_file_complaints)

    def test_resident(self):
        caps = capabilities_for(UserRole.RESIDENT)
        self.assertTrue(caps.can_file_complaints)
        self.assertTrue(caps.can_report_incidents)
        self.assertFalse(caps.can_view_all_incidents)
        self.assertFalse(caps.can_record_payments)

    def test_guard(self):
        caps = capabilities_for(UserRole.GUARD)
        self.assertTrue(caps.can_view_all_incidents)
        self.assertFalse(caps.can_file_complaints)
        self.assertFalse(caps.can_view_evidence)

    def test_unknown_role_has_nothing(self):
        caps = capabilities_for('landlord')
        self.assertFalse(any(getattr(caps, name) for name in CAPABILITY_NAMES))

    def test_require_capability_raises_with_message(self):
        ctx = AuthContext(user_id=1, role=UserRole.RESIDENT, residence_id=1)
        with self.assertRaises(PermissionDeniedError) as caught:
            require_capability(ctx, 'can_manage_fees')
        self.assertEqual(caught.exception.message, "Only syndics can manage fees")
        self.assertTrue(has_capability(ctx, 'can_file_complaints'))

    def test_context_requires_residence(self):
        ctx = AuthContext(user_id=1, role=UserRole.RESIDENT)
        with self.assertRaises(PermissionDeniedError):
            ctx.require_residence()

    def test_anonymous_user_has_no_context(self):
        with self.assertRaises(AuthenticationRequiredError):
            AuthContext.from_user(None)
