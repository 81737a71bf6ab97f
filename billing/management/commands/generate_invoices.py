# billing/management/commands/generate_invoices.py
import logging

from django.core.management.base import BaseCommand
from django.utils import timezone

from accounts.models import Company
from accounts.tenancy import TenantContext
from billing.exceptions import SchedulerLocked
from billing.locks import job_lock
from billing.services import BillingService

logger = logging.getLogger(__name__)


class Command(BaseCommand):
    help = 'Generate invoices for companies whose billing day is today'

    def add_arguments(self, parser):
        parser.add_argument(
            '--company',
            type=int,
            help='Invoice this company now, regardless of its billing day',
        )

    def handle(self, *args, **options):
        today = timezone.localdate()
        companies = Company.objects.filter(status=Company.STATUS_ACTIVE)
        if options.get('company'):
            companies = companies.filter(pk=options['company'])
        else:
            companies = companies.filter(billing_day=today.day)

        self.stdout.write("Generating invoices...")
        total = 0
        try:
            with job_lock('generate_invoices'):
                for company in companies:
                    service = BillingService(TenantContext.for_company(company))
                    created = service.generate_invoices_for_company(company, billing_date=today)
                    self.stdout.write(f"{company.name}: {created} invoices")
                    total += created
        except SchedulerLocked as e:
            self.stdout.write(self.style.WARNING(str(e)))
            return

        self.stdout.write(
            self.style.SUCCESS(f"Invoice generation completed. Created: {total}")
        )
