# billing/bulk.py
import csv
import io
import logging
from datetime import timedelta

from django.conf import settings
from django.core.exceptions import ValidationError
from django.db import DatabaseError, transaction
from django.utils import timezone as tz

from accounts.models import User
from router_manager.models import POP, MikrotikRouter

from .models import BulkImport, Customer, Package
from .services import CustomerService

logger = logging.getLogger(__name__)

# Related columns in an import may carry a name instead of an id
RELATED_LOOKUPS = {
    'package': (Package, 'name'),
    'pop': (POP, 'name'),
    'router': (MikrotikRouter, 'name'),
    'reseller': (User, 'username'),
}


class BulkOperationService:
    """Mass updates over explicit customer ids, chunked with partial success.

    Each chunk commits on its own; a failed chunk is counted and reported,
    earlier chunks stay committed.
    """

    def __init__(self, tenant_context, chunk_size=None, customer_service=None):
        self.ctx = tenant_context.require()
        self.chunk_size = chunk_size or settings.BULK_CHUNK_SIZE
        self.customer_service = customer_service or CustomerService(tenant_context)

    def _chunks(self, ids):
        ids = list(dict.fromkeys(ids))
        for start in range(0, len(ids), self.chunk_size):
            yield ids[start:start + self.chunk_size]

    def _run(self, verb, ids, mutate):
        ids = list(dict.fromkeys(ids))
        result = {'total': len(ids), 'affected': 0, 'failed': 0, 'errors': []}

        for number, chunk in enumerate(self._chunks(ids), start=1):
            try:
                with transaction.atomic():
                    queryset = self.ctx.scope(Customer).filter(pk__in=chunk)
                    result['affected'] += mutate(queryset)
            except DatabaseError as e:
                logger.error(f"Bulk {verb} chunk {number} failed: {e}")
                result['failed'] += len(chunk)
                result['errors'].append(f"Chunk {number}: {e}")

        logger.info(
            f"Bulk {verb}: {result['affected']} of {result['total']} customers updated, "
            f"{result['failed']} failed"
        )
        return result

    def bulk_extend_expiry(self, ids, days):
        days = int(days)
        if days <= 0:
            raise ValidationError({'days': 'Days must be a positive number'})
        today = tz.localdate()
        now = tz.now()

        def extend(queryset):
            customers = list(queryset)
            for customer in customers:
                customer.expiry_date = (customer.expiry_date or today) + timedelta(days=days)
                customer.updated_at = now
            Customer.objects.bulk_update(customers, ['expiry_date', 'updated_at'])
            return len(customers)

        return self._run('extend_expiry', ids, extend)

    def bulk_change_package(self, ids, package_id):
        try:
            package = self.ctx.get(Package, pk=package_id)
        except Package.DoesNotExist:
            raise ValidationError({'package': f"Package {package_id} not found"})

        return self._run(
            'change_package', ids,
            lambda queryset: queryset.update(package=package, updated_at=tz.now())
        )

    def bulk_enable(self, ids):
        return self._run(
            'enable', ids,
            lambda queryset: queryset.exclude(status=Customer.STATUS_DELETED).update(
                status=Customer.STATUS_ACTIVE, updated_at=tz.now()
            )
        )

    def bulk_disable(self, ids):
        return self._run(
            'disable', ids,
            lambda queryset: queryset.exclude(status=Customer.STATUS_DELETED).update(
                status=Customer.STATUS_DISABLED, updated_at=tz.now()
            )
        )

    def bulk_delete(self, ids):
        return self._run(
            'delete', ids,
            lambda queryset: queryset.update(
                status=Customer.STATUS_DELETED, deleted_at=tz.now(), updated_at=tz.now()
            )
        )

    # CSV import

    def import_customers(self, user, csv_file, mapping, file_name=None):
        """Create one customer per CSV row; ``mapping`` is {csv column: customer field}"""
        company = self.ctx.company if self.ctx.is_tenant else user.company
        bulk_import = self.ctx.create(
            BulkImport,
            company=company,
            user=user,
            import_type='customers',
            file_name=file_name or getattr(csv_file, 'name', '') or '',
            status=BulkImport.STATUS_PROCESSING,
        )

        errors = []
        try:
            rows = list(csv.DictReader(io.StringIO(self._read(csv_file))))
        except (csv.Error, UnicodeDecodeError, OSError) as e:
            logger.error(f"Import {bulk_import.pk} could not read file: {e}")
            bulk_import.status = BulkImport.STATUS_FAILED
            bulk_import.error_log = str(e)
            bulk_import.completed_at = tz.now()
            self.ctx.save(bulk_import)
            return bulk_import

        for line_number, row in enumerate(rows, start=2):
            bulk_import.total_records += 1
            data = self._map_row(row, mapping, company)
            try:
                with transaction.atomic():
                    self.customer_service.create_customer(data, company=company)
                bulk_import.success_records += 1
            except ValidationError as e:
                bulk_import.failed_records += 1
                errors.append(f"Row {line_number}: {'; '.join(e.messages)}")
            except DatabaseError as e:
                logger.error(f"Import {bulk_import.pk} row {line_number} failed: {e}")
                bulk_import.failed_records += 1
                errors.append(f"Row {line_number}: {e}")

        bulk_import.status = BulkImport.STATUS_COMPLETED
        bulk_import.error_log = '\n'.join(errors)
        bulk_import.completed_at = tz.now()
        self.ctx.save(bulk_import)

        logger.info(
            f"Import {bulk_import.pk} finished: {bulk_import.success_records} created, "
            f"{bulk_import.failed_records} failed"
        )
        return bulk_import

    def _read(self, csv_file):
        if hasattr(csv_file, 'read'):
            content = csv_file.read()
        else:
            with open(csv_file, 'rb') as handle:
                content = handle.read()
        if isinstance(content, bytes):
            content = content.decode('utf-8-sig')
        return content

    def _map_row(self, row, mapping, company):
        data = {}
        for column, field in mapping.items():
            value = (row.get(column) or '').strip()
            if value and field in RELATED_LOOKUPS and not value.isdigit():
                model, lookup = RELATED_LOOKUPS[field]
                match = model.objects.filter(company=company, **{lookup: value}).values_list('pk', flat=True).first()
                value = match if match is not None else value
            data[field] = value
        return data
