# accounts/models.py
import re
from decimal import Decimal

from django.conf import settings
from django.contrib.auth.models import AbstractUser
from django.core.exceptions import ValidationError
from django.core.validators import MaxValueValidator, MinValueValidator
from django.db import models
from django.utils import timezone
from django_countries.fields import CountryField

SUBDOMAIN_PATTERN = re.compile(r'^[a-z0-9]([a-z0-9-]*[a-z0-9])?$')


class Company(models.Model):
    """An ISP operator (tenant). Every business record hangs off one."""

    STATUS_ACTIVE = 'active'
    STATUS_INACTIVE = 'inactive'
    STATUS_SUSPENDED = 'suspended'
    STATUS_CHOICES = [
        (STATUS_ACTIVE, 'Active'),
        (STATUS_INACTIVE, 'Inactive'),
        (STATUS_SUSPENDED, 'Suspended'),
    ]

    name = models.CharField(max_length=255)
    domain = models.CharField(max_length=255, unique=True, null=True, blank=True)
    subdomain = models.CharField(max_length=100, unique=True, null=True, blank=True)
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default=STATUS_ACTIVE)
    billing_day = models.PositiveSmallIntegerField(
        default=10,
        validators=[MinValueValidator(1), MaxValueValidator(28)],
        help_text="Day of month invoices are generated (1-28)"
    )
    vat_percent = models.DecimalField(max_digits=5, decimal_places=2, default=Decimal('0.00'))
    currency = models.CharField(max_length=3, default='BDT')
    timezone = models.CharField(max_length=64, default='Asia/Dhaka')
    country = CountryField(blank=True)
    contact_email = models.EmailField(blank=True)
    contact_phone = models.CharField(max_length=20, blank=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'companies'
        ordering = ['name']
        verbose_name = "Company"
        verbose_name_plural = "Companies"

    def clean(self):
        # Blank identifiers are stored as NULL
        self.domain = (self.domain or '').strip().lower() or None
        self.subdomain = (self.subdomain or '').strip().lower() or None

        if not self.domain and not self.subdomain:
            raise ValidationError('A company needs either a domain or a subdomain')
        if self.domain and self.subdomain:
            raise ValidationError('Domain and subdomain are mutually exclusive')

        if self.subdomain:
            if not SUBDOMAIN_PATTERN.match(self.subdomain):
                raise ValidationError({
                    'subdomain': 'Subdomain can only contain lowercase letters, numbers, and hyphens'
                })
            if self.subdomain in settings.TENANCY_RESERVED_SUBDOMAINS:
                raise ValidationError({'subdomain': 'This subdomain is reserved'})

        if self.domain and self.domain == settings.TENANCY_SUPER_ADMIN_DOMAIN:
            raise ValidationError({'domain': 'This domain is reserved'})

    @property
    def primary_domain(self):
        if self.domain:
            return self.domain
        return f"{self.subdomain}.{settings.TENANCY_BASE_DOMAIN}"

    @property
    def is_active(self):
        return self.status == self.STATUS_ACTIVE

    def __str__(self):
        return f"{self.name} ({self.primary_domain})"


class User(AbstractUser):
    """Staff principal: platform super admin, company staff, resellers and their employees."""

    ROLE_SUPERADMIN = 'superadmin'
    ROLE_COMPANY_ADMIN = 'company_admin'
    ROLE_OPERATOR = 'operator'
    ROLE_RESELLER = 'reseller'
    ROLE_RESELLER_EMPLOYEE = 'reseller_employee'
    ROLE_CHOICES = [
        (ROLE_SUPERADMIN, 'Super Admin'),
        (ROLE_COMPANY_ADMIN, 'Company Administrator'),
        (ROLE_OPERATOR, 'Operator'),
        (ROLE_RESELLER, 'Reseller'),
        (ROLE_RESELLER_EMPLOYEE, 'Reseller Employee'),
    ]

    company = models.ForeignKey(
        Company,
        on_delete=models.CASCADE,
        null=True,
        blank=True,
        related_name='users'
    )
    role = models.CharField(max_length=20, choices=ROLE_CHOICES, default=ROLE_OPERATOR)
    phone = models.CharField(max_length=20, blank=True)

    # Reseller fields
    commission_percent = models.DecimalField(
        max_digits=5,
        decimal_places=2,
        null=True,
        blank=True,
        validators=[MinValueValidator(Decimal('0')), MaxValueValidator(Decimal('100'))],
        help_text="Commission rate on package price (e.g., 10 for 10%)"
    )
    reseller = models.ForeignKey(
        'self',
        on_delete=models.CASCADE,
        null=True,
        blank=True,
        related_name='employees',
        limit_choices_to={'role': ROLE_RESELLER},
        help_text="Owning reseller, for reseller employees"
    )

    class Meta:
        db_table = 'users'
        ordering = ['-date_joined']

    def clean(self):
        if self.role == self.ROLE_RESELLER_EMPLOYEE and not self.reseller_id:
            raise ValidationError({'reseller': 'Reseller employees must belong to a reseller'})
        if self.role != self.ROLE_SUPERADMIN and not self.company_id:
            raise ValidationError({'company': 'Company staff must belong to a company'})

    def save(self, *args, **kwargs):
        # Ensure superusers have superadmin role
        if self.is_superuser:
            self.role = self.ROLE_SUPERADMIN
        super().save(*args, **kwargs)

    @property
    def is_reseller(self):
        return self.role == self.ROLE_RESELLER

    @property
    def is_reseller_employee(self):
        return self.role == self.ROLE_RESELLER_EMPLOYEE

    def __str__(self):
        return f"{self.username} ({self.role})"


class TenantOwnedModel(models.Model):
    """Base for every record partitioned by company.

    Writes go through ``accounts.tenancy.TenantContext`` which stamps and
    checks ``company_id``.
    """
    company = models.ForeignKey(Company, on_delete=models.CASCADE)

    class Meta:
        abstract = True


class SMSGateway(TenantOwnedModel):
    """Outbound SMS provider configured by a company"""

    PROVIDER_HTTP = 'http'
    PROVIDER_AFRICASTALKING = 'africastalking'
    PROVIDERS = [
        (PROVIDER_HTTP, 'Custom HTTP API'),
        (PROVIDER_AFRICASTALKING, "Africa's Talking"),
    ]

    HTTP_METHODS = [
        ('GET', 'GET (query string)'),
        ('POST', 'POST (form body)'),
        ('JSON', 'POST (JSON body)'),
    ]

    name = models.CharField(max_length=100)
    provider = models.CharField(max_length=20, choices=PROVIDERS, default=PROVIDER_HTTP)
    gateway_url = models.URLField(blank=True)
    http_method = models.CharField(max_length=4, choices=HTTP_METHODS, default='GET')
    headers = models.JSONField(default=dict, blank=True)
    params = models.JSONField(default=dict, blank=True, help_text="Static parameters sent with every message")
    success_indicators = models.JSONField(
        default=dict,
        blank=True,
        help_text="Response body keys/values that must match for a send to count as successful"
    )
    default_sender_id = models.CharField(max_length=20, blank=True)

    # Africa's Talking credentials
    api_username = models.CharField(max_length=100, blank=True)
    api_key = models.CharField(max_length=255, blank=True)

    # Prepaid unit balance tracked locally
    balance = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal('0.00'))
    balance_check_url = models.URLField(blank=True)
    last_balance_check = models.DateTimeField(null=True, blank=True)

    is_enabled = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'sms_gateways'
        ordering = ['name']

    def __str__(self):
        return f"{self.name} ({self.company.name})"

    def is_active(self):
        return self.is_enabled

    def has_sufficient_balance(self, units):
        return self.balance >= Decimal(str(units))

    def deduct_balance(self, units):
        self.balance = self.balance - Decimal(str(units))


class SMSTemplate(TenantOwnedModel):
    """Template for SMS messages with {variable} placeholders"""

    CATEGORY_CHOICES = [
        ('expiry_warning', 'Expiry Warning'),
        ('suspension_notice', 'Suspension Notice'),
        ('payment_received', 'Payment Received'),
        ('invoice_generated', 'Invoice Generated'),
        ('custom', 'Custom'),
    ]

    gateway = models.ForeignKey(SMSGateway, on_delete=models.CASCADE, related_name='templates')
    name = models.CharField(max_length=100)
    category = models.CharField(max_length=30, choices=CATEGORY_CHOICES, default='custom')
    content = models.TextField(help_text="Available variables: {name}, {package}, {expiry_date}, {amount}")
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'sms_templates'
        ordering = ['name']

    def __str__(self):
        return f"{self.name} ({self.get_category_display()})"

    def render(self, variables=None):
        message = self.content
        for key, value in (variables or {}).items():
            message = message.replace('{' + key + '}', str(value))
        return message


class SMSLog(TenantOwnedModel):
    """One outbound SMS attempt"""

    STATUS_PENDING = 'pending'
    STATUS_SENT = 'sent'
    STATUS_FAILED = 'failed'
    STATUS_CHOICES = [
        (STATUS_PENDING, 'Pending'),
        (STATUS_SENT, 'Sent'),
        (STATUS_FAILED, 'Failed'),
    ]

    gateway = models.ForeignKey(SMSGateway, on_delete=models.SET_NULL, null=True, blank=True, related_name='logs')
    phone_number = models.CharField(max_length=20)
    message = models.TextField()
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default=STATUS_PENDING)
    response = models.TextField(blank=True)
    attempts = models.PositiveIntegerField(default=0)
    sent_at = models.DateTimeField(null=True, blank=True)
    created_at = models.DateTimeField(default=timezone.now)

    class Meta:
        db_table = 'sms_logs'
        ordering = ['-created_at']
        indexes = [
            models.Index(fields=['status', 'created_at'], name='sms_logs_status_8c1b2e_idx'),
        ]

    def __str__(self):
        return f"SMS to {self.phone_number} - {self.status}"
