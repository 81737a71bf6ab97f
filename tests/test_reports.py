from datetime import date, datetime, timedelta
from decimal import Decimal

from django.core.exceptions import ValidationError
from django.utils import timezone

from accounts.models import User
from accounts.tenancy import TenantContext
from billing.models import Customer, Invoice, Payment, ResellerCommission
from billing.reports import ReportService

from .base import TenantTestCase


def at(year, month, day, hour=12):
    return timezone.make_aware(datetime(year, month, day, hour))


class ReportTests(TenantTestCase):

    def setUp(self):
        super().setUp()
        self.service = ReportService(self.ctx)
        self.reseller = self.make_user(User.ROLE_RESELLER, username='north')

    def pay(self, customer, amount, when, method=Payment.METHOD_RECEIVE):
        return Payment.objects.create(
            company=customer.company, customer=customer, amount=Decimal(amount),
            payment_method=method, payment_date=when,
        )

    def commission(self, customer, amount, status=ResellerCommission.STATUS_PENDING):
        return ResellerCommission.objects.create(
            company=customer.company, reseller=self.reseller, customer=customer,
            base_amount=Decimal('100.00'), commission_percent=Decimal('10'),
            commission_amount=Decimal(amount), status=status,
        )

    def test_company_summary(self):
        customer = self.make_customer(reseller=self.reseller)
        self.make_customer(status=Customer.STATUS_SUSPENDED)
        self.make_invoice(customer, status=Invoice.STATUS_PAID)
        self.make_invoice(customer, status=Invoice.STATUS_PAID)
        self.make_invoice(customer)
        self.make_invoice(customer, status=Invoice.STATUS_CANCELLED)
        self.make_invoice(self.make_customer(company=self.other_company), status=Invoice.STATUS_PAID)
        self.commission(customer, '10.00')
        self.commission(customer, '7.50', status=ResellerCommission.STATUS_PAID)
        idle = self.make_user(User.ROLE_RESELLER, username='south')

        summary = self.service.company_summary()

        self.assertEqual(summary['company_name'], 'Alpha ISP')
        self.assertEqual(summary['active_customers'], 1)
        self.assertEqual(summary['total_revenue'], Decimal('200.00'))
        self.assertEqual(summary['total_due'], Decimal('100.00'))
        north, south = summary['reseller_stats']
        self.assertEqual(north['reseller_id'], self.reseller.pk)
        self.assertEqual(north['total_commission'], Decimal('17.50'))
        self.assertEqual(north['pending_commission'], Decimal('10.00'))
        self.assertEqual(north['paid_commission'], Decimal('7.50'))
        self.assertEqual(south['reseller_id'], idle.pk)
        self.assertEqual(south['total_commission'], Decimal('0.00'))

    def test_invoice_summary_uses_billing_date_range(self):
        customer = self.make_customer()
        self.make_invoice(customer, status=Invoice.STATUS_PAID)
        self.make_invoice(customer)
        Invoice.objects.create(
            company=self.company, customer=customer, invoice_number='INV-LATER',
            billing_date=date(2025, 2, 10), due_date=date(2025, 2, 25),
            base_price=Decimal('50.00'), total_amount=Decimal('50.00'),
        )

        summary = self.service.invoice_summary(date(2025, 1, 1), date(2025, 1, 31))

        self.assertEqual(summary['total_invoices'], 2)
        self.assertEqual(summary['paid_invoices'], 1)
        self.assertEqual(summary['unpaid_invoices'], 1)
        self.assertEqual(summary['invoiced_amount'], Decimal('200.00'))
        self.assertEqual(summary['collected_amount'], Decimal('100.00'))
        self.assertEqual(summary['outstanding_amount'], Decimal('100.00'))

    def test_empty_invoice_summary_reports_zero_amounts(self):
        summary = self.service.invoice_summary(date(2024, 1, 1), date(2024, 1, 31))

        self.assertEqual(summary['total_invoices'], 0)
        self.assertEqual(summary['invoiced_amount'], Decimal('0.00'))

    def test_payment_collection_groups_by_day_and_method(self):
        customer = self.make_customer()
        self.pay(customer, '100', at(2025, 3, 1, 9))
        self.pay(customer, '50', at(2025, 3, 1, 18))
        self.pay(customer, '30', at(2025, 3, 1), method=Payment.METHOD_ONLINE)
        self.pay(customer, '70', at(2025, 3, 2))
        self.pay(customer, '999', at(2025, 4, 1))
        self.pay(self.make_customer(company=self.other_company), '500', at(2025, 3, 1))

        report = self.service.payment_collection_report(date(2025, 3, 1), date(2025, 3, 31))

        self.assertEqual(
            [(row['payment_date'], row['payment_method'], row['total_payments'], row['total_collected'])
             for row in report],
            [
                (date(2025, 3, 1), 'online', 1, Decimal('30.00')),
                (date(2025, 3, 1), 'receive', 2, Decimal('150.00')),
                (date(2025, 3, 2), 'receive', 1, Decimal('70.00')),
            ],
        )

    def test_reseller_commission_report(self):
        customer = self.make_customer(reseller=self.reseller)
        self.commission(customer, '10.00')
        self.commission(customer, '10.00', status=ResellerCommission.STATUS_READY)
        self.commission(customer, '5.00', status=ResellerCommission.STATUS_PAID)
        today = timezone.localdate()

        (row,) = self.service.reseller_commission_report(today - timedelta(days=7), today)

        self.assertEqual(row['reseller_name'], 'north')
        self.assertEqual(row['total_commissions'], 3)
        self.assertEqual(row['total_earned'], Decimal('25.00'))
        self.assertEqual(row['pending_amount'], Decimal('10.00'))
        self.assertEqual(row['ready_amount'], Decimal('10.00'))
        self.assertEqual(row['paid_amount'], Decimal('5.00'))

    def test_churn_report_lists_deleted_customers_with_their_revenue(self):
        gone = self.make_customer(status=Customer.STATUS_DELETED, deleted_at=at(2025, 3, 5))
        self.pay(gone, '100', at(2025, 1, 1))
        self.pay(gone, '100', at(2025, 2, 1))
        self.make_customer(status=Customer.STATUS_DELETED, deleted_at=at(2025, 3, 20))
        self.make_customer(status=Customer.STATUS_DELETED, deleted_at=at(2025, 5, 1))
        self.make_customer()

        report = self.service.customer_churn_report(date(2025, 3, 1), date(2025, 3, 31))

        self.assertEqual(report['total_churned_customers'], 2)
        self.assertEqual(report['total_churned_revenue'], Decimal('200.00'))
        first = report['churned_customers'][0]
        self.assertEqual(first['customer_id'], gone.pk)
        self.assertEqual(first['total_revenue'], Decimal('200.00'))

    def test_reports_are_limited_to_the_active_tenant(self):
        theirs = self.make_customer(company=self.other_company)
        self.make_invoice(theirs, status=Invoice.STATUS_PAID)
        beta = ReportService(TenantContext.for_company(self.other_company))

        self.assertEqual(self.service.company_summary()['total_revenue'], Decimal('0.00'))
        self.assertEqual(beta.company_summary()['total_revenue'], Decimal('100.00'))
        # Naming another company does not escape the tenant
        self.assertEqual(
            self.service.company_summary(company=self.other_company)['company_name'], 'Alpha ISP'
        )

    def test_super_admin_must_name_a_company(self):
        service = ReportService(TenantContext.super_admin())

        with self.assertRaises(ValidationError):
            service.company_summary()
        self.assertEqual(service.company_summary(company=self.other_company)['company_name'], 'Beta ISP')

    def test_inverted_range_is_rejected(self):
        with self.assertRaises(ValidationError):
            self.service.invoice_summary(date(2025, 2, 1), date(2025, 1, 1))
