"""
Transactional email.

Mails are rendered from templates and sent through the configured
EMAIL_BACKEND. A failed send is logged and reported as False; callers never
fail because of email.
"""
import logging

from django.conf import settings
from django.core.mail import EmailMultiAlternatives
from django.template.loader import render_to_string
from django.utils.html import strip_tags

logger = logging.getLogger(__name__)


def send_html_email(subject, to, template_name, context):
    """Render an HTML template and send it with a plain-text alternative"""
    if not to:
        logger.warning(f"Email '{subject}' skipped: no recipient")
        return False
    try:
        html_body = render_to_string(template_name, context)
        message = EmailMultiAlternatives(
            subject=subject,
            body=strip_tags(html_body),
            from_email=settings.DEFAULT_FROM_EMAIL,
            to=[to],
        )
        message.attach_alternative(html_body, 'text/html')
        message.send()
        logger.info(f"Email '{subject}' sent to {to}")
        return True
    except Exception as e:
        logger.error(f"Failed to send email '{subject}' to {to}: {e}", exc_info=True)
        return False


def reminder_subject(days_until_due, residence_name):
    if days_until_due > 0:
        plural = 's' if days_until_due > 1 else ''
        return f"Reminder: payment due in {days_until_due} day{plural} - {residence_name}"
    if days_until_due == 0:
        return f"URGENT: payment due today - {residence_name}"
    return f"URGENT: payment overdue - {residence_name}"


def send_payment_reminder_email(fee, days_until_due, apartment_number):
    """
    Payment reminder for one unpaid fee.

    Returns True when the mail was handed to the backend.
    """
    residence = fee.residence
    context = {
        'user_name': fee.user.display_name,
        'residence_name': residence.name,
        'fee_title': fee.title,
        'amount': fee.amount,
        'currency': getattr(settings, 'RECEIPT_CURRENCY', 'MAD'),
        'due_date': fee.due_date,
        'days_until_due': days_until_due,
        'days_overdue': abs(days_until_due),
        'apartment_number': apartment_number,
        'bank_rib': residence.bank_rib,
    }
    return send_html_email(
        reminder_subject(days_until_due, residence.name),
        fee.user.email,
        'emails/payment_reminder.html',
        context,
    )


def send_registration_approved_email(registration):
    """Welcome mail for an approved registration request"""
    residence = registration.residence
    return send_html_email(
        f"Welcome to {residence.name}",
        registration.email,
        'emails/registration_approved.html',
        {
            'full_name': registration.full_name,
            'residence_name': residence.name,
            'apartment_number': registration.apartment_number,
            'login_url': getattr(settings, 'FRONTEND_LOGIN_URL', ''),
        },
    )


def send_registration_rejected_email(registration):
    residence = registration.residence
    return send_html_email(
        f"Registration Update - {residence.name}",
        registration.email,
        'emails/registration_rejected.html',
        {
            'full_name': registration.full_name,
            'residence_name': residence.name,
            'rejection_reason': registration.rejection_reason,
        },
    )
