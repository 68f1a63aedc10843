"""
Syndic Dashboard API

Returns the figures a syndic needs at a glance for the residence they manage:
- Balances by bucket (cash on hand, bank, online)
- Outstanding fees, split between overdue and not yet due
- Open incidents and complaints waiting for review
- Resident count

SECURITY: Everything is scoped to the caller's residence in backend queries
"""
from decimal import Decimal

from django.db.models import Sum, Count, Q
from django.utils import timezone
from rest_framework import viewsets
from rest_framework.decorators import api_view, permission_classes, action
from rest_framework.response import Response

from api.permissions import IsSyndic
from complaints.models import Complaint
from core.constants import ComplaintStatus, FeeStatus, IncidentStatus, UserRole
from core.context import AuthContext
from fees.models import Fee
from incidents.models import Incident
from payments.models import Payment
from payments.services import BalanceAggregator
from residences import access


def _fee_metrics(residence_id, today):
    stats = Fee.objects.filter(residence_id=residence_id, status__in=FeeStatus.OUTSTANDING).aggregate(
        unpaid_count=Count('id'),
        unpaid_total=Sum('amount'),
        overdue_count=Count('id', filter=Q(due_date__lt=today)),
        overdue_total=Sum('amount', filter=Q(due_date__lt=today)),
    )
    return {
        'unpaid_count': stats['unpaid_count'] or 0,
        'unpaid_total': str(stats['unpaid_total'] or Decimal('0')),
        'overdue_count': stats['overdue_count'] or 0,
        'overdue_total': str(stats['overdue_total'] or Decimal('0')),
    }


@api_view(['GET'])
@permission_classes([IsSyndic])
def dashboard_metrics(request):
    """
    Get dashboard metrics for the syndic's residence.

    Returns:
        JSON with balances, fee, incident, complaint and resident figures
    """
    return Response(build_summary(AuthContext.from_request(request)))


def build_summary(ctx):
    residence_id = ctx.require_residence()
    today = timezone.localdate()

    balances = BalanceAggregator().balances_for(ctx)

    open_incidents = Incident.objects.filter(
        residence_id=residence_id,
        status__in=IncidentStatus.ACTIVE,
    ).count()

    pending_complaints = Complaint.objects.filter(
        residence_id=residence_id,
        status=ComplaintStatus.SUBMITTED,
    ).count()

    resident_count = access.get_members(residence_id, roles=[UserRole.RESIDENT]).count()

    return {
        # Money
        'balances': balances.as_dict(),
        'fees': _fee_metrics(residence_id, today),

        # Community
        'open_incidents': open_incidents,
        'pending_complaints': pending_complaints,
        'resident_count': resident_count,

        # Metadata
        'residence_id': residence_id,
        'as_of': today.isoformat(),
    }


class DashboardViewSet(viewsets.ViewSet):
    """
    Dashboard endpoints for syndics.
    """
    permission_classes = [IsSyndic]

    @action(detail=False, methods=['get'])
    def summary(self, request):
        """Get dashboard summary metrics"""
        return Response(build_summary(AuthContext.from_request(request)))

    @action(detail=False, methods=['get'], url_path='recent-activity')
    def recent_activity(self, request):
        """Latest payments, incidents and complaints of the residence"""
        ctx = AuthContext.from_request(request)
        residence_id = ctx.require_residence()

        recent_payments = Payment.objects.filter(residence_id=residence_id).select_related('user').order_by('-created_at')[:10]
        recent_incidents = Incident.objects.filter(residence_id=residence_id).select_related('user').order_by('-created_at')[:10]
        recent_complaints = Complaint.objects.filter(residence_id=residence_id).order_by('-created_at')[:10]

        return Response({
            'recent_payments': [{
                'id': payment.id,
                'resident': payment.user.display_name,
                'amount': str(payment.amount),
                'method': payment.method,
                'status': payment.status,
                'created_at': payment.created_at,
            } for payment in recent_payments],
            'recent_incidents': [{
                'id': incident.id,
                'title': incident.title,
                'status': incident.status,
                'reporter': incident.user.display_name,
                'created_at': incident.created_at,
            } for incident in recent_incidents],
            # complainants are never listed here
            'recent_complaints': [{
                'id': complaint.id,
                'title': complaint.title,
                'reason': complaint.reason,
                'status': complaint.status,
                'created_at': complaint.created_at,
            } for complaint in recent_complaints],
        })
