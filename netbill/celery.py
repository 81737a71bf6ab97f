import os

from celery import Celery
from celery.schedules import crontab

# Set the default Django settings module for the 'celery' program.
os.environ.setdefault('DJANGO_SETTINGS_MODULE', 'netbill.settings')

app = Celery('netbill')

# Using a string here means the worker doesn't have to serialize
# the configuration object to child processes.
app.config_from_object('django.conf:settings', namespace='CELERY')

# Load task modules from all registered Django app configs.
app.autodiscover_tasks()

app.conf.update(
    task_track_started=True,
    task_serializer='json',
    result_serializer='json',
    accept_content=['json'],

    # Periodic tasks
    beat_schedule={
        'generate-invoices': {
            'task': 'billing.tasks.generate_invoices',
            'schedule': crontab(hour=0, minute=30),
        },
        'process-expirations': {
            'task': 'billing.tasks.process_expirations',
            'schedule': crontab(hour=1, minute=0),
        },
        'send-sms-notifications': {
            'task': 'billing.tasks.send_sms_notifications',
            'schedule': crontab(hour=9, minute=0),
        },
        'retry-failed-sms': {
            'task': 'billing.tasks.retry_failed_sms',
            'schedule': 3600.0,  # Run hourly
        },
        'calculate-reseller-commissions': {
            'task': 'billing.tasks.calculate_reseller_commissions',
            'schedule': crontab(hour=2, minute=0, day_of_month=1),
        },
    },
)
