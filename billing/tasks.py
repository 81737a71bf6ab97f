# billing/tasks.py
import logging

from celery import shared_task
from django.core.management import call_command

logger = logging.getLogger(__name__)


def _run_command(name, *args, **options):
    try:
        call_command(name, *args, **options)
        return f"{name} completed"
    except Exception as e:
        logger.error(f"Scheduled job {name} failed: {e}")
        return f"Error: {e}"


@shared_task
def generate_invoices():
    """Runs daily; only companies whose billing day is today are invoiced"""
    return _run_command('generate_invoices')


@shared_task
def process_expirations():
    return _run_command('process_expirations')


@shared_task
def send_sms_notifications():
    return _run_command('send_sms_notifications')


@shared_task
def retry_failed_sms(limit=10):
    return _run_command('retry_failed_sms', limit=limit)


@shared_task
def calculate_reseller_commissions(immediate=False, settle=False):
    return _run_command('calculate_reseller_commissions', immediate=immediate, settle=settle)
