import shutil
import tempfile

from django.core.files.uploadedfile import SimpleUploadedFile
from django.test import TestCase, override_settings

from complaints.services import ComplaintService
from complaints.visibility import ANONYMOUS, YOU, complainant_label, can_view_evidence
from core.constants import ComplaintPrivacy, ComplaintReason, ComplaintStatus, UserRole
from core.dto import ComplaintDTO
from core.exceptions import NotFoundError, PermissionDeniedError, ValidationError
from notifications.models import Notification
from .factories import make_residence, make_member, ctx_for

MEDIA_ROOT = tempfile.mkdtemp()


def image(name="photo.jpg", size=16):
    return SimpleUploadedFile(name, b"\xff\xd8" + b"0" * size, content_type="image/jpeg")


@override_settings(MEDIA_ROOT=MEDIA_ROOT)
class ComplaintServiceTests(TestCase):

    @classmethod
    def tearDownClass(cls):
        shutil.rmtree(MEDIA_ROOT, ignore_errors=True)
        super().tearDownClass()

    def setUp(self):
        self.residence, self.syndic = make_residence()
        self.alice = make_member(self.residence, "alice@example.com", apartment="1", full_name="Alice")
        self.bob = make_member(self.residence, "bob@example.com", apartment="2", full_name="Bob")
        self.carol = make_member(self.residence, "carol@example.com", apartment="3", full_name="Carol")
        self.service = ComplaintService()

    def file(self, privacy=ComplaintPrivacy.PRIVATE, files=None):
        complaint, result = self.service.create_complaint(ctx_for(self.alice), ComplaintDTO(
            complained_about_id=self.bob.id,
            reason=ComplaintReason.NOISE,
            privacy=privacy,
            title="Loud music",
            description="Every night after midnight",
        ), files=files)
        return complaint, result

    def test_visibility_matrix(self):
        complaint, _ = self.file(privacy=ComplaintPrivacy.ANONYMOUS)

        self.assertEqual(complainant_label(complaint, self.syndic.id, UserRole.SYNDIC), "Alice")
        self.assertEqual(complainant_label(complaint, self.alice.id, UserRole.RESIDENT), YOU)
        self.assertEqual(complainant_label(complaint, self.bob.id, UserRole.RESIDENT), ANONYMOUS)

    def test_private_complaint_names_complainant_to_target(self):
        complaint, _ = self.file(privacy=ComplaintPrivacy.PRIVATE)
        self.assertEqual(complainant_label(complaint, self.bob.id, UserRole.RESIDENT), "Alice")

    def test_evidence_is_syndic_only(self):
        self.assertTrue(can_view_evidence(UserRole.SYNDIC))
        self.assertFalse(can_view_evidence(UserRole.RESIDENT))
        self.assertFalse(can_view_evidence(UserRole.GUARD))

    def test_uninvolved_resident_cannot_read(self):
        complaint, _ = self.file()
        with self.assertRaises(PermissionDeniedError):
            self.service.get_for_viewer(ctx_for(self.carol), complaint.id)
        self.assertEqual(list(self.service.list_for_viewer(ctx_for(self.carol))), [])

    def test_involved_residents_list_it(self):
        complaint, _ = self.file()
        self.assertEqual([c.id for c in self.service.list_for_viewer(ctx_for(self.bob))], [complaint.id])
        self.assertEqual(self.service.list_for_viewer(ctx_for(self.syndic)).count(), 1)

    def test_cannot_complain_about_self(self):
        with self.assertRaises(ValidationError) as caught:
            self.service.create_complaint(ctx_for(self.alice), ComplaintDTO(
                complained_about_id=self.alice.id, reason=ComplaintReason.NOISE,
                title="Me", description="Myself",
            ))
        self.assertEqual(caught.exception.code, "SELF_COMPLAINT")

    def test_cannot_complain_about_syndic(self):
        with self.assertRaises(ValidationError) as caught:
            self.service.create_complaint(ctx_for(self.alice), ComplaintDTO(
                complained_about_id=self.syndic.id, reason=ComplaintReason.OTHER,
                title="Syndic", description="...",
            ))
        self.assertEqual(caught.exception.code, "INVALID_TARGET")

    def test_syndic_cannot_file(self):
        with self.assertRaises(PermissionDeniedError):
            self.service.create_complaint(ctx_for(self.syndic), ComplaintDTO(
                complained_about_id=self.bob.id, reason=ComplaintReason.NOISE,
                title="Noise", description="...",
            ))

    def test_anonymous_notification_hides_name(self):
        self.file(privacy=ComplaintPrivacy.ANONYMOUS)
        notification = Notification.objects.get(user=self.bob)
        self.assertIn("anonymous", notification.message.lower())
        self.assertNotIn("Alice", notification.message)

    def test_evidence_partial_failure_keeps_complaint(self):
        bad = SimpleUploadedFile("notes.txt", b"hello", content_type="text/plain")

        complaint, result = self.file(files=[image(), bad])

        self.assertIsNotNone(complaint.pk)
        self.assertEqual(len(result.uploaded), 1)
        self.assertEqual(len(result.failed), 1)
        self.assertEqual(result.failed[0]['file_name'], "notes.txt")
        self.assertEqual(complaint.evidence.count(), 1)

    @override_settings(COMPLAINT_EVIDENCE_MAX_SIZE=10)
    def test_oversized_evidence_is_reported(self):
        _, result = self.file(files=[image(size=100)])
        self.assertEqual(result.uploaded, [])
        self.assertEqual(len(result.failed), 1)

    @override_settings(COMPLAINT_EVIDENCE_MAX_FILES=1)
    def test_too_many_files_rejected_upfront(self):
        with self.assertRaises(ValidationError):
            self.file(files=[image("a.jpg"), image("b.jpg")])

    def test_only_complainant_adds_evidence(self):
        complaint, _ = self.file()
        with self.assertRaises(PermissionDeniedError):
            self.service.add_evidence(ctx_for(self.bob), complaint.id, [image()])
        result = self.service.add_evidence(ctx_for(self.alice), complaint.id, [image()])
        self.assertEqual(len(result.uploaded), 1)

    def test_status_review_stamps(self):
        complaint, _ = self.file()
        ctx = ctx_for(self.syndic)

        reviewed = self.service.update_status(ctx, complaint.id, ComplaintStatus.REVIEWED)
        self.assertIsNotNone(reviewed.reviewed_at)
        self.assertIsNone(reviewed.resolved_at)

        resolved = self.service.update_status(ctx, complaint.id, ComplaintStatus.RESOLVED, "Talked to Bob")
        self.assertIsNotNone(resolved.resolved_at)
        self.assertEqual(resolved.resolution_notes, "Talked to Bob")

        reopened = self.service.update_status(ctx, complaint.id, ComplaintStatus.REVIEWED)
        self.assertIsNone(reopened.resolved_at)

    def test_residents_cannot_review(self):
        complaint, _ = self.file()
        with self.assertRaises(PermissionDeniedError):
            self.service.update_status(ctx_for(self.bob), complaint.id, ComplaintStatus.RESOLVED)

    def test_other_residence_complaint_not_found(self):
        complaint, _ = self.file()
        _, other_syndic = make_residence("Other Court")
        with self.assertRaises(NotFoundError):
            self.service.get_for_viewer(ctx_for(other_syndic), complaint.id)
