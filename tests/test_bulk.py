import io
from datetime import date, timedelta
from unittest import mock

from django.core.exceptions import ValidationError
from django.db import DatabaseError
from django.utils import timezone

from accounts.models import User
from billing.bulk import BulkOperationService
from billing.models import BulkImport, Customer, Package

from .base import TenantTestCase

CSV_HEADER = 'Full Name,Mobile,Login,Secret,Plan,Zone,Router\n'


def csv_rows(count, duplicate_at=None):
    lines = [CSV_HEADER]
    for n in range(1, count + 1):
        login = 'import1' if n == duplicate_at else f'import{n}'
        lines.append(f'Subscriber {n},01711{n:06d},{login},secret{n}x,10 Mbps,Central,core-1\n')
    return io.StringIO(''.join(lines))


MAPPING = {
    'Full Name': 'name',
    'Mobile': 'phone',
    'Login': 'username',
    'Secret': 'password',
    'Plan': 'package',
    'Zone': 'pop',
    'Router': 'router',
}


class BulkOperationTests(TenantTestCase):

    def setUp(self):
        super().setUp()
        self.service = BulkOperationService(self.ctx, chunk_size=2)

    def test_extend_expiry_adds_days(self):
        first = self.make_customer(expiry_date=date(2025, 1, 1))
        second = self.make_customer(expiry_date=None)

        result = self.service.bulk_extend_expiry([first.pk, second.pk], 10)

        self.assertEqual(result, {'total': 2, 'affected': 2, 'failed': 0, 'errors': []})
        first.refresh_from_db()
        second.refresh_from_db()
        self.assertEqual(first.expiry_date, date(2025, 1, 11))
        self.assertEqual(second.expiry_date, timezone.localdate() + timedelta(days=10))

    def test_extend_expiry_rejects_non_positive_days(self):
        with self.assertRaises(ValidationError):
            self.service.bulk_extend_expiry([self.make_customer().pk], 0)

    def test_mixed_ids_only_change_own_customers(self):
        mine = self.make_customer()
        theirs = self.make_customer(company=self.other_company)

        result = self.service.bulk_disable([mine.pk, theirs.pk])

        self.assertEqual(result['total'], 2)
        self.assertEqual(result['affected'], 1)
        mine.refresh_from_db()
        theirs.refresh_from_db()
        self.assertEqual(mine.status, Customer.STATUS_DISABLED)
        self.assertEqual(theirs.status, Customer.STATUS_ACTIVE)

    def test_other_tenant_ids_are_ignored_by_every_bulk_action(self):
        active = self.make_customer(company=self.other_company, expiry_date=date(2025, 1, 1))
        disabled = self.make_customer(
            company=self.other_company, status=Customer.STATUS_DISABLED, expiry_date=date(2025, 1, 1)
        )
        ids = [active.pk, disabled.pk]

        for action in (
            lambda: self.service.bulk_enable(ids),
            lambda: self.service.bulk_disable(ids),
            lambda: self.service.bulk_delete(ids),
            lambda: self.service.bulk_extend_expiry(ids, 30),
        ):
            result = action()
            self.assertEqual(result['total'], 2)
            self.assertEqual(result['affected'], 0)

        active.refresh_from_db()
        disabled.refresh_from_db()
        self.assertEqual(active.status, Customer.STATUS_ACTIVE)
        self.assertEqual(disabled.status, Customer.STATUS_DISABLED)
        self.assertEqual(active.expiry_date, date(2025, 1, 1))
        self.assertEqual(disabled.expiry_date, date(2025, 1, 1))
        self.assertIsNone(active.deleted_at)
        self.assertIsNone(disabled.deleted_at)

    def test_enable_disable_and_soft_delete(self):
        customers = [self.make_customer() for _ in range(3)]
        ids = [c.pk for c in customers]

        self.assertEqual(self.service.bulk_disable(ids)['affected'], 3)
        self.assertEqual(
            Customer.objects.filter(pk__in=ids, status=Customer.STATUS_DISABLED).count(), 3
        )
        self.assertEqual(self.service.bulk_enable(ids)['affected'], 3)

        self.assertEqual(self.service.bulk_delete(ids[:1])['affected'], 1)
        deleted = Customer.objects.get(pk=ids[0])
        self.assertEqual(deleted.status, Customer.STATUS_DELETED)
        self.assertIsNotNone(deleted.deleted_at)

        # Deleted customers stay deleted
        self.assertEqual(self.service.bulk_enable(ids)['affected'], 2)
        deleted.refresh_from_db()
        self.assertEqual(deleted.status, Customer.STATUS_DELETED)

    def test_change_package(self):
        premium = Package.objects.create(company=self.company, name='Premium', price=200)
        customers = [self.make_customer() for _ in range(3)]

        result = self.service.bulk_change_package([c.pk for c in customers], premium.pk)

        self.assertEqual(result['affected'], 3)
        self.assertEqual(Customer.objects.filter(package=premium).count(), 3)

    def test_change_package_rejects_foreign_package(self):
        foreign = Package.objects.create(company=self.other_company, name='Foreign', price=10)

        with self.assertRaises(ValidationError):
            self.service.bulk_change_package([self.make_customer().pk], foreign.pk)

    def test_failed_chunk_keeps_earlier_chunks(self):
        customers = [self.make_customer(expiry_date=date(2025, 1, 1)) for _ in range(5)]
        real_bulk_update = Customer.objects.bulk_update
        calls = []

        def flaky_bulk_update(objs, fields, **kwargs):
            calls.append(len(objs))
            if len(calls) == 2:
                raise DatabaseError('deadlock detected')
            return real_bulk_update(objs, fields, **kwargs)

        with mock.patch.object(Customer.objects, 'bulk_update', side_effect=flaky_bulk_update):
            result = self.service.bulk_extend_expiry([c.pk for c in customers], 5)

        self.assertEqual(result['total'], 5)
        self.assertEqual(result['affected'], 3)
        self.assertEqual(result['failed'], 2)
        self.assertEqual(len(result['errors']), 1)
        self.assertIn('Chunk 2', result['errors'][0])
        self.assertEqual(
            Customer.objects.filter(expiry_date=date(2025, 1, 6)).count(), 3
        )


class CustomerImportTests(TenantTestCase):

    def setUp(self):
        super().setUp()
        self.service = BulkOperationService(self.ctx)
        self.admin = self.make_user(User.ROLE_COMPANY_ADMIN)

    def test_partial_success_reports_failed_rows(self):
        bulk_import = self.service.import_customers(self.admin, csv_rows(10, duplicate_at=5), MAPPING, 'subs.csv')

        self.assertEqual(bulk_import.status, BulkImport.STATUS_COMPLETED)
        self.assertEqual(bulk_import.total_records, 10)
        self.assertEqual(bulk_import.success_records, 9)
        self.assertEqual(bulk_import.failed_records, 1)
        self.assertIn('Row 6', bulk_import.error_log)
        self.assertIsNotNone(bulk_import.completed_at)
        self.assertEqual(bulk_import.file_name, 'subs.csv')
        self.assertEqual(Customer.objects.filter(company=self.company).count(), 9)

    def test_imported_customers_are_wired_to_related_records(self):
        self.service.import_customers(self.admin, csv_rows(1), MAPPING)

        customer = Customer.objects.get(username='import1')
        self.assertEqual(customer.company, self.company)
        self.assertEqual(customer.package, self.package)
        self.assertEqual(customer.pop, self.pop)
        self.assertEqual(customer.router, self.router)
        self.assertEqual(customer.customer_type, Customer.TYPE_HOME)
        self.assertEqual(customer.activation_date, timezone.localdate())
        self.assertNotEqual(customer.password, 'secret1x')

    def test_invalid_rows_are_reported_not_raised(self):
        content = io.StringIO(
            CSV_HEADER
            + 'Good,01711000001,good1,secret1x,10 Mbps,Central,core-1\n'
            + 'Bad phone,abc,bad1,secret2x,10 Mbps,Central,core-1\n'
            + 'No plan,01711000003,noplan,secret3x,Gold,Central,core-1\n'
        )

        bulk_import = self.service.import_customers(self.admin, content, MAPPING)

        self.assertEqual(bulk_import.success_records, 1)
        self.assertEqual(bulk_import.failed_records, 2)
        self.assertIn('Row 3', bulk_import.error_log)
        self.assertIn('Row 4', bulk_import.error_log)

    def test_foreign_package_name_is_not_resolved(self):
        Package.objects.create(company=self.other_company, name='Beta Plan', price=10)
        content = io.StringIO(CSV_HEADER + 'Someone,01711000001,someone,secret1x,Beta Plan,Central,core-1\n')

        bulk_import = self.service.import_customers(self.admin, content, MAPPING)

        self.assertEqual(bulk_import.failed_records, 1)
        self.assertFalse(Customer.objects.filter(username='someone').exists())

    def test_bytes_content_is_decoded(self):
        content = io.BytesIO(csv_rows(2).getvalue().encode('utf-8-sig'))

        bulk_import = self.service.import_customers(self.admin, content, MAPPING)

        self.assertEqual(bulk_import.success_records, 2)
