import logging

from django.conf import settings
from django.core.exceptions import ValidationError
from django.db import models

from .exceptions import CrossTenantViolation, TenantContextRequired, TenantNotFound
from .models import Company, TenantOwnedModel

logger = logging.getLogger(__name__)


class TenantContext:
    """Explicit tenant scope handed to every service.

    A context is uninitialized, bound to one company, or super admin.
    All reads and writes of tenant-owned records go through it so the
    company filter and the company stamp live in one place.
    """

    UNINITIALIZED = 'uninitialized'
    TENANT = 'tenant'
    SUPER_ADMIN = 'super_admin'

    def __init__(self, state=UNINITIALIZED, company=None):
        if state == self.TENANT and company is None:
            raise ValueError("A tenant context needs a company")
        self.state = state
        self.company = company if state == self.TENANT else None

    @classmethod
    def uninitialized(cls):
        return cls(cls.UNINITIALIZED)

    @classmethod
    def for_company(cls, company):
        return cls(cls.TENANT, company)

    @classmethod
    def super_admin(cls):
        return cls(cls.SUPER_ADMIN)

    @property
    def company_id(self):
        return self.company.pk if self.company is not None else None

    @property
    def is_super_admin(self):
        return self.state == self.SUPER_ADMIN

    @property
    def is_tenant(self):
        return self.state == self.TENANT

    @property
    def is_initialized(self):
        return self.state != self.UNINITIALIZED

    def require(self):
        if not self.is_initialized:
            raise TenantContextRequired("Tenant context has not been resolved")
        return self

    def scope(self, model_or_queryset):
        """Return a queryset limited to the active tenant"""
        self.require()
        if isinstance(model_or_queryset, models.QuerySet):
            queryset = model_or_queryset
        else:
            queryset = model_or_queryset._default_manager.all()
        self._check_model(queryset.model)

        if self.is_super_admin:
            return queryset
        return queryset.filter(company_id=self.company_id)

    def get(self, model_or_queryset, **lookup):
        return self.scope(model_or_queryset).get(**lookup)

    def create(self, model, **fields):
        instance = model(**fields)
        self.save(instance)
        return instance

    def save(self, instance, update_fields=None):
        self.require()
        self._check_model(type(instance))

        if instance._state.adding:
            if self.is_tenant:
                # Caller-supplied company is always overridden
                instance.company_id = self.company_id
            elif not instance.company_id:
                raise ValidationError({'company': 'Super admin writes must name a company'})
            instance.save()
        else:
            self.check_ownership(instance)
            instance.save(update_fields=update_fields)
        return instance

    def delete(self, instance):
        self.require()
        self._check_model(type(instance))
        self.check_ownership(instance)
        instance.delete()

    def check_ownership(self, instance):
        if self.is_super_admin:
            return
        self.require()

        stored_company_id = (
            type(instance)._default_manager
            .filter(pk=instance.pk)
            .values_list('company_id', flat=True)
            .first()
        )
        if stored_company_id != self.company_id or instance.company_id != self.company_id:
            logger.error(
                f"Cross-tenant write blocked: {type(instance).__name__} #{instance.pk} "
                f"stored company {stored_company_id}, context company {self.company_id}"
            )
            raise CrossTenantViolation(
                f"{type(instance).__name__} #{instance.pk} does not belong to company {self.company_id}"
            )

    def _check_model(self, model):
        if not issubclass(model, TenantOwnedModel):
            raise TypeError(f"{model.__name__} is not a tenant-owned model")

    def __repr__(self):
        if self.is_tenant:
            return f"<TenantContext company={self.company_id}>"
        return f"<TenantContext {self.state}>"


def normalize_host(host):
    return (host or '').split(':')[0].strip().lower().rstrip('.')


def resolve_tenant_context(host):
    """Map a request host onto a TenantContext.

    The super admin domain wins, then an exact custom-domain match,
    then the subdomain in front of the configured base domain.
    """
    host = normalize_host(host)

    if host == settings.TENANCY_SUPER_ADMIN_DOMAIN.lower():
        return TenantContext.super_admin()

    company = Company.objects.filter(domain=host).first()

    if company is None:
        suffix = '.' + settings.TENANCY_BASE_DOMAIN.lower()
        if host.endswith(suffix):
            subdomain = host[:-len(suffix)]
            if subdomain:
                company = Company.objects.filter(subdomain=subdomain).first()

    if company is None:
        raise TenantNotFound(host)

    return TenantContext.for_company(company)
