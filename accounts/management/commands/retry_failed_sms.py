from django.core.management.base import BaseCommand

from accounts.models import Company
from accounts.sms_service import SMSService
from accounts.tenancy import TenantContext
from billing.exceptions import SchedulerLocked
from billing.locks import job_lock


class Command(BaseCommand):
    help = 'Retry sending failed SMS messages'

    def add_arguments(self, parser):
        parser.add_argument('--limit', type=int, default=10, help='Maximum messages to retry per company')

    def handle(self, *args, **options):
        try:
            with job_lock('retry_failed_sms'):
                total = 0
                for company in Company.objects.filter(status=Company.STATUS_ACTIVE):
                    service = SMSService(TenantContext.for_company(company))
                    total += service.retry_failed_sms(limit=options['limit'])
        except SchedulerLocked as e:
            self.stdout.write(self.style.WARNING(str(e)))
            return

        self.stdout.write(
            self.style.SUCCESS(f'Successfully retried {total} SMS messages')
        )
