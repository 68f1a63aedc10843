"""
API URLs for the Residence Portal
"""
from django.urls import path, include
from rest_framework.routers import DefaultRouter
from rest_framework_simplejwt.views import TokenObtainPairView, TokenRefreshView

from audit.views import AuditLogViewSet
from complaints.views import ComplaintViewSet
from dashboard.views import DashboardViewSet, dashboard_metrics
from expenses.views import ExpenseViewSet
from fees.views import FeeRuleViewSet, FeeViewSet, ContributionViewSet
from incidents.views import IncidentViewSet
from notifications.views import NotificationViewSet
from payments.views import PaymentViewSet
from registrations.views import RegistrationRequestViewSet
from residences.views import ResidenceViewSet
from residents.views import ResidentViewSet
from users.views import profile

# Create router
router = DefaultRouter()
router.register(r'residences', ResidenceViewSet, basename='residence')
router.register(r'residents', ResidentViewSet, basename='resident')
router.register(r'registration-requests', RegistrationRequestViewSet, basename='registrationrequest')
router.register(r'fee-rules', FeeRuleViewSet, basename='feerule')
router.register(r'fees', FeeViewSet, basename='fee')
router.register(r'contributions', ContributionViewSet, basename='contribution')
router.register(r'payments', PaymentViewSet, basename='payment')
router.register(r'expenses', ExpenseViewSet, basename='expense')
router.register(r'complaints', ComplaintViewSet, basename='complaint')
router.register(r'incidents', IncidentViewSet, basename='incident')
router.register(r'notifications', NotificationViewSet, basename='notification')
router.register(r'audit', AuditLogViewSet, basename='auditlog')
router.register(r'dashboard', DashboardViewSet, basename='dashboard')

urlpatterns = [
    # JWT Authentication
    path('auth/login/', TokenObtainPairView.as_view(), name='token_obtain_pair'),
    path('auth/refresh/', TokenRefreshView.as_view(), name='token_refresh'),

    path('profile/', profile, name='profile'),
    path('dashboard/', dashboard_metrics, name='dashboard_metrics'),

    # API routes
    path('', include(router.urls)),
]
