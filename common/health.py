"""
Liveness and readiness endpoints for load balancers and uptime checks.

/health/        process answers
/health/ready/  database and upload storage reachable, scheduler state reported
"""
import logging
import time

from django.conf import settings
from django.core.files.storage import default_storage
from django.db import connection, DatabaseError
from django.http import JsonResponse
from django.urls import path
from django.views.decorators.csrf import csrf_exempt
from django.views.decorators.http import require_GET

from common import scheduler

logger = logging.getLogger(__name__)


def _timed(check):
    start = time.monotonic()
    check()
    return round((time.monotonic() - start) * 1000, 2)


def _check_database():
    with connection.cursor() as cursor:
        cursor.execute('SELECT 1')
        cursor.fetchone()


def _check_storage():
    # Listing the upload root is enough to prove the backend is reachable
    default_storage.listdir('')


@csrf_exempt
@require_GET
def health_check(request):
    return JsonResponse({'status': 'healthy', 'timestamp': time.time()})


@csrf_exempt
@require_GET
def readiness_check(request):
    """Database is required; storage problems only degrade the report"""
    checks = {}
    errors = []

    try:
        checks['database'] = {'status': True, 'latency_ms': _timed(_check_database)}
    except DatabaseError as e:
        checks['database'] = {'status': False, 'latency_ms': None}
        errors.append(f'Database: {e}')
        logger.error(f'Readiness check - database error: {e}')

    try:
        checks['storage'] = {'status': True, 'latency_ms': _timed(_check_storage)}
    except (OSError, NotImplementedError) as e:
        checks['storage'] = {'status': False, 'latency_ms': None}
        errors.append(f'Storage: {e}')
        logger.warning(f'Readiness check - storage error: {e}')

    checks['scheduler'] = {
        'enabled': getattr(settings, 'ENABLE_BACKGROUND_SCHEDULER', False),
        'running': scheduler.is_running(),
    }

    ready = checks['database']['status']
    return JsonResponse({
        'status': 'ready' if ready else 'not_ready',
        'timestamp': time.time(),
        'checks': checks,
        'errors': errors or None,
    }, status=200 if ready else 503)


def get_health_urls():
    return [
        path('health/', health_check, name='health_check'),
        path('health/ready/', readiness_check, name='readiness_check'),
    ]
