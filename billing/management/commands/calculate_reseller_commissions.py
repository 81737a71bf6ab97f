# billing/management/commands/calculate_reseller_commissions.py
from django.core.management.base import BaseCommand

from accounts.models import Company, User
from accounts.tenancy import TenantContext
from billing.exceptions import SchedulerLocked
from billing.locks import job_lock
from billing.services import ResellerService


class Command(BaseCommand):
    help = 'Process pending reseller commissions'

    def add_arguments(self, parser):
        parser.add_argument(
            '--immediate',
            action='store_true',
            help='Credit pending commissions to reseller balances now',
        )
        parser.add_argument(
            '--settle',
            action='store_true',
            help='Also credit commissions already marked ready for payout',
        )

    def handle(self, *args, **options):
        immediate = options['immediate']
        settle = options['settle']
        processed = 0

        try:
            with job_lock('calculate_reseller_commissions'):
                for company in Company.objects.filter(status=Company.STATUS_ACTIVE):
                    service = ResellerService(TenantContext.for_company(company))
                    resellers = User.objects.filter(company=company, role=User.ROLE_RESELLER)
                    for reseller in resellers:
                        amount = service.payout_commission(reseller, immediate=immediate)
                        if settle:
                            amount += service.settle_ready_commissions(reseller)
                        if amount:
                            self.stdout.write(f"{reseller.username}: {amount}")
                        processed += 1
        except SchedulerLocked as e:
            self.stdout.write(self.style.WARNING(str(e)))
            return

        self.stdout.write(
            self.style.SUCCESS(f"Processed commissions for {processed} resellers")
        )
