# billing/reports.py
import logging
from decimal import Decimal

from django.core.exceptions import ValidationError
from django.db.models import Count, Q, Sum
from django.db.models.functions import TruncDate

from accounts.models import User

from .models import Customer, Invoice, Payment, ResellerCommission
from .services import TenantService
from .utils import to_money

logger = logging.getLogger(__name__)

OUTSTANDING = Q(status__in=[Invoice.STATUS_UNPAID, Invoice.STATUS_PARTIAL])


def _money(value):
    return to_money(value or Decimal('0'))


def _check_range(start_date, end_date):
    if start_date > end_date:
        raise ValidationError({'end_date': 'End date cannot be before start date'})


class ReportService(TenantService):
    """Read-only revenue, collection, commission and churn figures for one company.

    Date ranges are inclusive. Amounts come back as 2 dp Decimals.
    """

    def company_summary(self, company=None):
        company = self._company_for(company)
        invoices = self.ctx.scope(Invoice).filter(company=company)
        totals = invoices.aggregate(
            total_revenue=Sum('total_amount', filter=Q(status=Invoice.STATUS_PAID)),
            total_due=Sum('total_amount', filter=OUTSTANDING),
        )

        return {
            'company_name': company.name,
            'active_customers': self.ctx.scope(Customer).filter(
                company=company, status=Customer.STATUS_ACTIVE
            ).count(),
            'total_revenue': _money(totals['total_revenue']),
            'total_due': _money(totals['total_due']),
            'reseller_stats': self.reseller_stats(company),
        }

    def reseller_stats(self, company=None):
        """Lifetime commission totals for every reseller of the company"""
        company = self._company_for(company)
        amounts = {
            row['reseller_id']: row
            for row in (
                self.ctx.scope(ResellerCommission)
                .filter(company=company)
                .values('reseller_id')
                .annotate(
                    total=Sum('commission_amount'),
                    pending=Sum('commission_amount', filter=Q(status=ResellerCommission.STATUS_PENDING)),
                    paid=Sum('commission_amount', filter=Q(status=ResellerCommission.STATUS_PAID)),
                )
                .order_by()
            )
        }

        stats = []
        for reseller in User.objects.filter(company=company, role=User.ROLE_RESELLER).order_by('username'):
            row = amounts.get(reseller.pk, {})
            stats.append({
                'reseller_id': reseller.pk,
                'reseller_name': reseller.get_full_name() or reseller.username,
                'total_commission': _money(row.get('total')),
                'pending_commission': _money(row.get('pending')),
                'paid_commission': _money(row.get('paid')),
            })
        return stats

    def invoice_summary(self, start_date, end_date, company=None):
        _check_range(start_date, end_date)
        company = self._company_for(company)
        paid = Q(status=Invoice.STATUS_PAID)
        totals = (
            self.ctx.scope(Invoice)
            .filter(company=company, billing_date__range=(start_date, end_date))
            .aggregate(
                total_invoices=Count('id'),
                paid_invoices=Count('id', filter=paid),
                unpaid_invoices=Count('id', filter=OUTSTANDING),
                invoiced_amount=Sum('total_amount'),
                collected_amount=Sum('total_amount', filter=paid),
                outstanding_amount=Sum('total_amount', filter=OUTSTANDING),
            )
        )
        for key in ('invoiced_amount', 'collected_amount', 'outstanding_amount'):
            totals[key] = _money(totals[key])
        return totals

    def payment_collection_report(self, start_date, end_date, company=None):
        """Payments collected per day and method"""
        _check_range(start_date, end_date)
        company = self._company_for(company)
        rows = (
            self.ctx.scope(Payment)
            .filter(company=company, payment_date__date__range=(start_date, end_date))
            .annotate(day=TruncDate('payment_date'))
            .values('day', 'payment_method')
            .annotate(total_payments=Count('id'), total_collected=Sum('amount'))
            .order_by('day', 'payment_method')
        )
        return [
            {
                'payment_date': row['day'],
                'payment_method': row['payment_method'],
                'total_payments': row['total_payments'],
                'total_collected': _money(row['total_collected']),
            }
            for row in rows
        ]

    def reseller_commission_report(self, start_date, end_date, company=None):
        _check_range(start_date, end_date)
        company = self._company_for(company)
        rows = (
            self.ctx.scope(ResellerCommission)
            .filter(company=company, created_at__date__range=(start_date, end_date))
            .values('reseller_id', 'reseller__username')
            .annotate(
                total_commissions=Count('id'),
                total_earned=Sum('commission_amount'),
                pending_amount=Sum('commission_amount', filter=Q(status=ResellerCommission.STATUS_PENDING)),
                ready_amount=Sum('commission_amount', filter=Q(status=ResellerCommission.STATUS_READY)),
                paid_amount=Sum('commission_amount', filter=Q(status=ResellerCommission.STATUS_PAID)),
            )
            .order_by('reseller__username')
        )
        report = []
        for row in rows:
            report.append({
                'reseller_id': row['reseller_id'],
                'reseller_name': row['reseller__username'],
                'total_commissions': row['total_commissions'],
                'total_earned': _money(row['total_earned']),
                'pending_amount': _money(row['pending_amount']),
                'ready_amount': _money(row['ready_amount']),
                'paid_amount': _money(row['paid_amount']),
            })
        return report

    def customer_churn_report(self, start_date, end_date, company=None):
        """Customers deleted between the dates and what they had paid in total"""
        _check_range(start_date, end_date)
        company = self._company_for(company)
        customers = (
            self.ctx.scope(Customer)
            .filter(company=company, deleted_at__date__range=(start_date, end_date))
            .annotate(total_revenue=Sum('payments__amount'))
            .order_by('deleted_at')
        )

        churned = [
            {
                'customer_id': customer.pk,
                'customer_name': customer.name,
                'total_revenue': _money(customer.total_revenue),
                'churn_date': customer.deleted_at,
            }
            for customer in customers
        ]
        logger.info(f"Churn report for {company.name}: {len(churned)} customers")
        return {
            'total_churned_customers': len(churned),
            'total_churned_revenue': _money(sum((row['total_revenue'] for row in churned), Decimal('0'))),
            'churned_customers': churned,
        }
