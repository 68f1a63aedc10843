import shutil
import tempfile

from django.core.files.uploadedfile import SimpleUploadedFile
from django.test import override_settings
from rest_framework import status
from rest_framework.test import APITestCase

from audit.models import AuditLog
from core.constants import ComplaintPrivacy, ComplaintReason, PaymentMethod
from fees.models import Fee
from residences.models import ProfileResidence
from .factories import make_residence, make_member, make_rule, make_fee

MEDIA_ROOT = tempfile.mkdtemp()


class ApiTestCase(APITestCase):

    def setUp(self):
        self.residence, self.syndic = make_residence()
        self.alice = make_member(self.residence, "alice@example.com", apartment="1", full_name="Alice")
        self.bob = make_member(self.residence, "bob@example.com", apartment="2", full_name="Bob")

    def login(self, user):
        self.client.force_authenticate(user=user)


class AuditTrailTests(ApiTestCase):

    def test_settlement_records_client_address(self):
        fee = make_fee(self.residence, self.alice)
        self.login(self.syndic)

        self.client.post(
            '/api/payments/settle/', {'fee_ids': [fee.id], 'method': PaymentMethod.CASH},
            format='json', HTTP_X_FORWARDED_FOR='203.0.113.9, 10.0.0.1',
        )

        entry = AuditLog.objects.get(action=AuditLog.ACTION_SETTLE_FEES)
        self.assertEqual(entry.ip_address, '203.0.113.9')
        self.assertEqual(entry.user_id, self.syndic.id)

    def test_direct_connection_address(self):
        self.login(self.syndic)
        self.client.post(
            '/api/fees/',
            {'user_id': self.alice.id, 'title': "Door repair", 'amount': '80.00', 'due_date': '2024-06-30'},
            format='json', REMOTE_ADDR='198.51.100.4',
        )
        entry = AuditLog.objects.get(action=AuditLog.ACTION_CREATE, resource_type=AuditLog.RESOURCE_FEE)
        self.assertEqual(entry.ip_address, '198.51.100.4')


class ErrorMappingTests(ApiTestCase):

    def test_unauthenticated_is_401(self):
        response = self.client.get('/api/fees/')
        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)
        self.assertFalse(response.data['success'])

    def test_resident_on_syndic_endpoint_is_403(self):
        self.login(self.alice)
        response = self.client.get('/api/fee-rules/')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)
        self.assertEqual(response.data['code'], 'FORBIDDEN')

    def test_missing_record_is_404(self):
        self.login(self.syndic)
        response = self.client.get('/api/fees/999999/')
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)
        self.assertEqual(response.data['error'], "Fee not found")

    def test_double_settlement_is_400(self):
        fee = make_fee(self.residence, self.alice)
        self.login(self.syndic)

        first = self.client.post('/api/payments/settle/', {'fee_ids': [fee.id], 'method': PaymentMethod.CASH}, format='json')
        second = self.client.post('/api/payments/settle/', {'fee_ids': [fee.id], 'method': PaymentMethod.CASH}, format='json')

        self.assertEqual(first.status_code, status.HTTP_201_CREATED)
        self.assertEqual(second.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(second.data, {
            'success': False,
            'error': "1 fee(s) already paid",
            'code': 'ALREADY_PAID',
            'details': {'already_paid': [fee.id]},
        })

    def test_serializer_errors_use_the_envelope(self):
        self.login(self.syndic)
        response = self.client.post('/api/payments/settle/', {'method': PaymentMethod.CASH}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['code'], 'INVALID_INPUT')
        self.assertIn('fee_ids', response.data['details'])

    def test_contribution_with_payment_cannot_be_deleted(self):
        fee = make_fee(self.residence, self.alice)
        self.login(self.syndic)
        self.client.post('/api/payments/settle/', {'fee_ids': [fee.id], 'method': PaymentMethod.CASH}, format='json')

        response = self.client.delete(f'/api/contributions/{fee.id}/')

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['code'], 'HAS_PAYMENTS')
        self.assertTrue(Fee.objects.filter(id=fee.id).exists())


class FeeApiTests(ApiTestCase):

    def test_generate_twice(self):
        rule = make_rule(self.residence, self.syndic)
        self.login(self.syndic)

        first = self.client.post(f'/api/fee-rules/{rule.id}/generate/', {'anchor': '2024-01-15'}, format='json')
        second = self.client.post(f'/api/fee-rules/{rule.id}/generate/', {'anchor': '2024-01-15'}, format='json')

        self.assertEqual(first.data['created'], 2)
        self.assertEqual(second.data['created'], 0)
        self.assertEqual(second.data['message'], "All residents already have a fee for this period")

    def test_resident_lists_own_fees(self):
        make_fee(self.residence, self.alice)
        make_fee(self.residence, self.bob)
        self.login(self.alice)

        response = self.client.get('/api/fees/')

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['count'], 1)

    def test_bulk_exceptional_fee(self):
        self.login(self.syndic)
        response = self.client.post('/api/fees/bulk/', {
            'apartment_numbers': ['1', '2', '77'],
            'title': "Facade cleaning",
            'amount': '300.00',
            'due_date': '2024-07-31',
        }, format='json')

        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['count'], 2)
        self.assertEqual(response.data['total_amount'], '300.00')
        self.assertEqual(response.data['missing_apartments'], ['77'])
        self.assertEqual(Fee.objects.filter(title="Facade cleaning").count(), 2)


class PaymentApiTests(ApiTestCase):

    def test_receipt_pdf(self):
        fee = make_fee(self.residence, self.alice)
        self.login(self.syndic)
        settled = self.client.post('/api/payments/settle/', {'fee_ids': [fee.id], 'method': PaymentMethod.CASH}, format='json')
        payment_id = settled.data['payments'][0]['id']

        response = self.client.get(f'/api/payments/{payment_id}/receipt/')

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response['Content-Type'], 'application/pdf')

    def test_balances_for_syndic_only(self):
        self.login(self.alice)
        self.assertEqual(self.client.get('/api/payments/balances/').status_code, status.HTTP_403_FORBIDDEN)
        self.login(self.syndic)
        response = self.client.get('/api/payments/balances/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertIn('cash_on_hand', response.data)


@override_settings(MEDIA_ROOT=MEDIA_ROOT)
class ComplaintApiTests(ApiTestCase):

    @classmethod
    def tearDownClass(cls):
        shutil.rmtree(MEDIA_ROOT, ignore_errors=True)
        super().tearDownClass()

    def create(self, files):
        self.login(self.alice)
        return self.client.post('/api/complaints/', {
            'complained_about_id': self.bob.id,
            'reason': ComplaintReason.NOISE,
            'privacy': ComplaintPrivacy.ANONYMOUS,
            'title': "Loud music",
            'description': "Every night",
            'evidence': files,
        }, format='multipart')

    def test_partial_upload_failure_warns(self):
        good = SimpleUploadedFile("photo.jpg", b"\xff\xd8data", content_type="image/jpeg")
        bad = SimpleUploadedFile("notes.txt", b"hello", content_type="text/plain")

        response = self.create([good, bad])

        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['warning'], "Complaint created but 1 of 2 evidence uploads failed")

    def test_target_sees_anonymous_without_evidence(self):
        good = SimpleUploadedFile("photo.jpg", b"\xff\xd8data", content_type="image/jpeg")
        complaint_id = self.create([good]).data['complaint']['id']

        self.login(self.bob)
        response = self.client.get(f'/api/complaints/{complaint_id}/')

        self.assertEqual(response.data['complainant'], "Anonymous")
        self.assertIsNone(response.data['complainant_id'])
        self.assertIsNone(response.data['evidence'])

        self.login(self.syndic)
        response = self.client.get(f'/api/complaints/{complaint_id}/')
        self.assertEqual(response.data['complainant'], "Alice")
        self.assertEqual(len(response.data['evidence']), 1)


class ProfileAndResidenceTests(ApiTestCase):

    def test_profile_lists_memberships(self):
        self.login(self.alice)
        response = self.client.get('/api/profile/')
        self.assertEqual(response.data['email'], "alice@example.com")
        self.assertEqual(response.data['memberships'][0]['apartment_number'], "1")

    def test_switch_residence(self):
        other, _ = make_residence("Second Court")
        ProfileResidence.objects.create(profile=self.alice, residence=other, apartment_number="5")
        self.login(self.alice)

        response = self.client.post(f'/api/residences/{other.id}/switch/')

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.alice.refresh_from_db()
        self.assertEqual(self.alice.residence_id, other.id)

    def test_dashboard(self):
        make_fee(self.residence, self.alice, amount="120")
        self.login(self.syndic)
        response = self.client.get('/api/dashboard/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['fees']['unpaid_count'], 1)
        self.assertEqual(response.data['resident_count'], 2)


class HealthTests(APITestCase):

    def test_liveness_and_readiness(self):
        self.assertEqual(self.client.get('/health/').status_code, 200)
        response = self.client.get('/health/ready/')
        self.assertEqual(response.status_code, 200)
        self.assertTrue(response.json()['checks']['database']['status'])
