# billing/management/commands/process_expirations.py
from django.core.management.base import BaseCommand
from django.utils import timezone

from accounts.models import Company
from accounts.tenancy import TenantContext
from billing.exceptions import SchedulerLocked
from billing.locks import job_lock
from billing.models import Customer
from billing.services import BillingService


class Command(BaseCommand):
    help = 'Expire active customers past their expiry date with unpaid invoices'

    def handle(self, *args, **options):
        today = timezone.localdate()
        self.stdout.write("Processing expirations...")

        expired = 0
        checked = 0
        try:
            with job_lock('process_expirations'):
                for company in Company.objects.filter(status=Company.STATUS_ACTIVE):
                    ctx = TenantContext.for_company(company)
                    service = BillingService(ctx)
                    customers = ctx.scope(Customer).filter(
                        status=Customer.STATUS_ACTIVE,
                        expiry_date__lte=today,
                    ).select_related('router')
                    for customer in customers:
                        checked += 1
                        if service.process_customer_expiry(customer, today=today):
                            expired += 1
        except SchedulerLocked as e:
            self.stdout.write(self.style.WARNING(str(e)))
            return

        if expired:
            self.stdout.write(self.style.WARNING(f"Expired {expired} customers"))
        self.stdout.write(
            self.style.SUCCESS(f"Expiry check completed. Checked: {checked}, Expired: {expired}")
        )
