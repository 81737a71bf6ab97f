# billing/management/commands/send_sms_notifications.py
from datetime import timedelta

from django.core.management.base import BaseCommand
from django.utils import timezone

from accounts.models import Company, SMSTemplate
from accounts.sms_service import SMSService
from accounts.tenancy import TenantContext
from billing.exceptions import SchedulerLocked
from billing.locks import job_lock
from billing.models import Customer

EXPIRY_WARNING_DAYS = 7


class Command(BaseCommand):
    help = 'Send expiry warnings (7 days ahead) and suspension notices (on expiry)'

    def handle(self, *args, **options):
        today = timezone.localdate()
        self.stdout.write("Sending SMS notifications...")

        warnings = 0
        notices = 0
        try:
            with job_lock('send_sms_notifications'):
                for company in Company.objects.filter(status=Company.STATUS_ACTIVE):
                    ctx = TenantContext.for_company(company)
                    sms = SMSService(ctx)
                    warnings += self.notify(
                        ctx, sms, 'expiry_warning', today + timedelta(days=EXPIRY_WARNING_DAYS)
                    )
                    notices += self.notify(ctx, sms, 'suspension_notice', today)
        except SchedulerLocked as e:
            self.stdout.write(self.style.WARNING(str(e)))
            return

        self.stdout.write(
            self.style.SUCCESS(
                f"SMS notifications sent. Expiry warnings: {warnings}, Suspension notices: {notices}"
            )
        )

    def notify(self, ctx, sms, category, expiry_date):
        template = (
            ctx.scope(SMSTemplate)
            .filter(category=category)
            .select_related('gateway')
            .first()
        )
        if template is None or not template.gateway.is_active():
            return 0

        customers = ctx.scope(Customer).filter(
            status=Customer.STATUS_ACTIVE,
            expiry_date=expiry_date,
        ).select_related('package')

        sent = 0
        for customer in customers:
            variables = {
                'name': customer.name,
                'package': customer.package.name if customer.package else 'N/A',
                'expiry_date': customer.expiry_date.strftime('%Y-%m-%d'),
            }
            if sms.send_sms_template(template, customer.phone, variables):
                sent += 1
        return sent
