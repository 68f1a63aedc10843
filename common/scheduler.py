"""
Background task scheduler for fee reminders and recurring fee generation.
Uses APScheduler to run tasks in the background without requiring external services.
"""
import logging
import atexit
from apscheduler.schedulers.background import BackgroundScheduler
from apscheduler.triggers.cron import CronTrigger
from django.conf import settings
from django.core.management import call_command
from django.utils import timezone

logger = logging.getLogger(__name__)

# Global scheduler instance
scheduler = None


def send_fee_reminders_job():
    """
    Daily job sending due and overdue fee reminder emails.
    """
    try:
        logger.info("Starting scheduled fee reminders...")
        call_command('send_fee_reminders')
        logger.info("Scheduled fee reminders completed successfully")
    except Exception as e:
        logger.error(f"Error in scheduled fee reminders: {e}", exc_info=True)


def generate_recurring_fees_job():
    """
    Daily job generating the current period of every active fee rule.
    Generation is idempotent, so running it every day is safe.
    """
    try:
        logger.info("Starting scheduled recurring fee generation...")
        call_command('generate_recurring_fees')
        logger.info("Scheduled recurring fee generation completed successfully")
    except Exception as e:
        logger.error(f"Error in scheduled fee generation: {e}", exc_info=True)


def start_scheduler():
    """
    Initialize and start the background scheduler.
    This should be called once when Django starts.
    """
    global scheduler

    if scheduler is not None and scheduler.running:
        logger.warning("Scheduler is already running")
        return

    tz = timezone.get_current_timezone()
    reminder_hour = getattr(settings, 'FEE_REMINDER_HOUR', 8)

    scheduler = BackgroundScheduler(timezone=tz)
    scheduler.add_job(
        generate_recurring_fees_job,
        trigger=CronTrigger(hour=0, minute=5, timezone=tz),
        id='generate_recurring_fees',
        name='Generate Recurring Fees',
        replace_existing=True,
        max_instances=1,  # Prevent overlapping runs
        coalesce=True,
    )
    scheduler.add_job(
        send_fee_reminders_job,
        trigger=CronTrigger(hour=reminder_hour, minute=0, timezone=tz),
        id='send_fee_reminders',
        name='Send Fee Reminders',
        replace_existing=True,
        max_instances=1,
        coalesce=True,
    )

    scheduler.start()
    logger.info(f"Background scheduler started; fee reminders daily at {reminder_hour:02d}:00 ({tz})")
    atexit.register(stop_scheduler)


def stop_scheduler():
    """
    Stop the background scheduler.
    Should be called when Django shuts down.
    """
    global scheduler

    if scheduler is not None and scheduler.running:
        try:
            scheduler.shutdown(wait=True)
            logger.info("Background scheduler stopped")
        finally:
            scheduler = None


def is_running():
    return scheduler is not None and scheduler.running
