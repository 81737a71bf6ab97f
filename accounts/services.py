# accounts/services.py
import logging
from decimal import Decimal

from django.conf import settings
from django.core.exceptions import ValidationError
from django.db import transaction
from django.db.models import Q

from .models import Company

logger = logging.getLogger(__name__)


class CompanyService:
    """Super-admin operations on tenants"""

    EDITABLE_FIELDS = [
        'name', 'domain', 'subdomain', 'status', 'billing_day', 'vat_percent',
        'currency', 'timezone', 'country', 'contact_email', 'contact_phone',
    ]

    def create_company(self, data):
        data = self._clean_keys(data)
        self.validate_domain_uniqueness(data.get('domain'), data.get('subdomain'))

        data.setdefault('billing_day', settings.TENANCY_DEFAULT_BILLING_DAY)
        data.setdefault('vat_percent', Decimal(str(settings.TENANCY_DEFAULT_VAT_PERCENT)))
        data.setdefault('currency', settings.TENANCY_DEFAULT_CURRENCY)
        data.setdefault('timezone', settings.TENANCY_DEFAULT_TIMEZONE)

        company = Company(**data)
        company.full_clean()
        with transaction.atomic():
            company.save()

        logger.info(f"Company created: {company.name} ({company.primary_domain})")
        return company

    def update_company(self, company, data):
        data = self._clean_keys(data)
        domain = data.get('domain', company.domain)
        subdomain = data.get('subdomain', company.subdomain)
        self.validate_domain_uniqueness(domain, subdomain, exclude_id=company.pk)

        for field, value in data.items():
            setattr(company, field, value)
        company.full_clean()
        company.save()

        logger.info(f"Company updated: {company.name}")
        return company

    def enable_company(self, company):
        return self._set_status(company, Company.STATUS_ACTIVE)

    def disable_company(self, company):
        return self._set_status(company, Company.STATUS_INACTIVE)

    def suspend_company(self, company):
        return self._set_status(company, Company.STATUS_SUSPENDED)

    def validate_domain_uniqueness(self, domain=None, subdomain=None, exclude_id=None):
        """Domains and subdomains share one namespace across all companies"""
        errors = {}
        for field, value in (('domain', domain), ('subdomain', subdomain)):
            if not value:
                continue
            value = value.strip().lower()
            clash = Company.objects.filter(Q(domain=value) | Q(subdomain=value))
            if exclude_id is not None:
                clash = clash.exclude(pk=exclude_id)
            if clash.exists():
                errors[field] = f"'{value}' is already used by another company"
        if errors:
            raise ValidationError(errors)

    def _set_status(self, company, status):
        company.status = status
        company.save(update_fields=['status', 'updated_at'])
        logger.info(f"Company {company.name} status -> {status}")
        return company

    def _clean_keys(self, data):
        unknown = set(data) - set(self.EDITABLE_FIELDS)
        if unknown:
            raise ValidationError(f"Unknown company fields: {', '.join(sorted(unknown))}")
        data = dict(data)
        for field in ('domain', 'subdomain'):
            if field in data and not (data[field] or '').strip():
                data[field] = None
        return data
