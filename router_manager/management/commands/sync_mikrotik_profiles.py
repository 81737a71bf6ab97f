from django.core.management.base import BaseCommand

from accounts.models import Company
from accounts.tenancy import TenantContext
from billing.exceptions import SchedulerLocked
from billing.locks import job_lock
from router_manager.models import MikrotikRouter
from router_manager.services import RouterOSService


class Command(BaseCommand):
    help = 'Pull PPP profiles from every MikroTik router into the database'

    def add_arguments(self, parser):
        parser.add_argument('--company', type=int, help='Only sync routers of this company id')

    def handle(self, *args, **options):
        companies = Company.objects.filter(status=Company.STATUS_ACTIVE)
        if options.get('company'):
            companies = companies.filter(pk=options['company'])

        total = 0
        try:
            with job_lock('sync_mikrotik_profiles'):
                for company in companies:
                    ctx = TenantContext.for_company(company)
                    for router in ctx.scope(MikrotikRouter):
                        synced = RouterOSService(router).sync_profiles(ctx)
                        self.stdout.write(f'{router.name}: {synced} profiles')
                        total += synced
        except SchedulerLocked as e:
            self.stdout.write(self.style.WARNING(str(e)))
            return

        self.stdout.write(
            self.style.SUCCESS(f'Successfully synced {total} profiles')
        )
