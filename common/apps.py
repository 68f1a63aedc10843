from django.apps import AppConfig
import logging
import os
import sys

logger = logging.getLogger(__name__)


class CommonConfig(AppConfig):
    default_auto_field = 'django.db.models.BigAutoField'
    name = 'common'

    def ready(self):
        """
        Start the background scheduler in the serving process only
        (not during migrations, tests or the autoreloader parent).
        """
        if os.environ.get('RUN_MAIN') != 'true':
            return

        if len(sys.argv) > 1 and sys.argv[1] in ['migrate', 'makemigrations', 'test', 'collectstatic', 'shell']:
            return

        from django.conf import settings
        if getattr(settings, 'ENABLE_BACKGROUND_SCHEDULER', True):
            from .scheduler import start_scheduler
            start_scheduler()
            logger.info("Background task scheduler initialized")
