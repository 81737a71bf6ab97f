# billing/models.py
from decimal import Decimal

from django.contrib.auth.hashers import make_password
from django.core.exceptions import ValidationError
from django.core.validators import MinValueValidator
from django.db import models
from django.utils import timezone as tz

from accounts.models import Company, TenantOwnedModel, User

from .exceptions import InsufficientBalance
from .utils import to_money


class Package(TenantOwnedModel):
    """Service plan sold to customers"""

    name = models.CharField(max_length=100)
    price = models.DecimalField(max_digits=10, decimal_places=2, validators=[MinValueValidator(Decimal('0'))])
    vat_percent = models.DecimalField(
        max_digits=5,
        decimal_places=2,
        null=True,
        blank=True,
        help_text="Leave empty to use the company VAT rate"
    )
    duration_days = models.PositiveIntegerField(default=30)
    mikrotik_profile = models.ForeignKey(
        'router_manager.MikrotikProfile',
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='packages'
    )
    is_expired_package = models.BooleanField(
        default=False,
        help_text="Degraded package assigned to customers disabled for nonpayment"
    )
    is_active = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'packages'
        ordering = ['price']

    def __str__(self):
        return f"{self.name} - {self.price}"

    def effective_vat_percent(self):
        if self.vat_percent is not None:
            return self.vat_percent
        if self.company.vat_percent is not None:
            return self.company.vat_percent
        return Decimal('0')


class Customer(TenantOwnedModel):
    TYPE_HOME = 'home'
    TYPE_FREE = 'free'
    TYPE_VIP = 'vip'
    TYPE_CORPORATE = 'corporate'
    TYPE_CHOICES = [
        (TYPE_HOME, 'Home'),
        (TYPE_FREE, 'Free'),
        (TYPE_VIP, 'VIP'),
        (TYPE_CORPORATE, 'Corporate'),
    ]

    STATUS_ACTIVE = 'active'
    STATUS_SUSPENDED = 'suspended'
    STATUS_EXPIRED = 'expired'
    STATUS_DISABLED = 'disabled'
    STATUS_DELETED = 'deleted'
    STATUS_CHOICES = [
        (STATUS_ACTIVE, 'Active'),
        (STATUS_SUSPENDED, 'Suspended'),
        (STATUS_EXPIRED, 'Expired'),
        (STATUS_DISABLED, 'Disabled'),
        (STATUS_DELETED, 'Deleted'),
    ]

    name = models.CharField(max_length=255)
    phone = models.CharField(max_length=20)
    email = models.EmailField(unique=True, null=True, blank=True)
    username = models.CharField(max_length=100, unique=True, null=True, blank=True, help_text="PPPoE username")
    password = models.CharField(max_length=128, blank=True)
    nid = models.CharField(max_length=50, blank=True, verbose_name="National ID")
    address = models.TextField(blank=True)
    ip_address = models.GenericIPAddressField(null=True, blank=True)
    mac_address = models.CharField(max_length=17, blank=True)

    package = models.ForeignKey(Package, on_delete=models.SET_NULL, null=True, blank=True, related_name='customers')
    pop = models.ForeignKey('router_manager.POP', on_delete=models.SET_NULL, null=True, blank=True, related_name='customers')
    router = models.ForeignKey(
        'router_manager.MikrotikRouter',
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='customers'
    )
    reseller = models.ForeignKey(
        User,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='customers',
        limit_choices_to={'role': User.ROLE_RESELLER}
    )

    customer_type = models.CharField(max_length=20, choices=TYPE_CHOICES, default=TYPE_HOME)
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default=STATUS_ACTIVE)
    activation_date = models.DateField(null=True, blank=True)
    expiry_date = models.DateField(null=True, blank=True)
    notes = models.TextField(blank=True)
    deleted_at = models.DateTimeField(null=True, blank=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'customers'
        ordering = ['-created_at']
        indexes = [
            models.Index(fields=['status', 'expiry_date'], name='customers_status_e1f0a3_idx'),
        ]

    def __str__(self):
        return f"{self.name} ({self.username or self.phone})"

    @property
    def is_free(self):
        return self.customer_type == self.TYPE_FREE

    @property
    def is_vip(self):
        return self.customer_type == self.TYPE_VIP

    def set_password(self, raw_password):
        self.password = make_password(raw_password)


class Invoice(TenantOwnedModel):
    STATUS_UNPAID = 'unpaid'
    STATUS_PARTIAL = 'partial'
    STATUS_PAID = 'paid'
    STATUS_CANCELLED = 'cancelled'
    STATUS_CHOICES = [
        (STATUS_UNPAID, 'Unpaid'),
        (STATUS_PARTIAL, 'Partially Paid'),
        (STATUS_PAID, 'Paid'),
        (STATUS_CANCELLED, 'Cancelled'),
    ]

    customer = models.ForeignKey(Customer, on_delete=models.CASCADE, related_name='invoices')
    invoice_number = models.CharField(max_length=30)
    billing_date = models.DateField()
    due_date = models.DateField()
    base_price = models.DecimalField(max_digits=10, decimal_places=2)
    vat_percent = models.DecimalField(max_digits=5, decimal_places=2, default=Decimal('0.00'))
    vat_amount = models.DecimalField(max_digits=10, decimal_places=2, default=Decimal('0.00'))
    total_amount = models.DecimalField(max_digits=10, decimal_places=2)
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default=STATUS_UNPAID)
    payment_date = models.DateTimeField(null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = 'invoices'
        ordering = ['-billing_date', '-id']
        constraints = [
            models.UniqueConstraint(fields=['company', 'invoice_number'], name='invoices_company_number_uniq'),
        ]

    def __str__(self):
        return f"{self.invoice_number} - {self.customer.name} ({self.status})"


class InvoiceSequence(models.Model):
    """Per-company, per-day invoice counter; incremented under a row lock"""

    company = models.ForeignKey(Company, on_delete=models.CASCADE, related_name='invoice_sequences')
    date = models.DateField()
    last_value = models.PositiveIntegerField(default=0)

    class Meta:
        db_table = 'invoice_sequences'
        unique_together = ['company', 'date']

    def __str__(self):
        return f"{self.company_id} {self.date}: {self.last_value}"


class Payment(TenantOwnedModel):
    METHOD_RECEIVE = 'receive'
    METHOD_DUE = 'due'
    METHOD_ONLINE = 'online'
    METHOD_CHOICES = [
        (METHOD_RECEIVE, 'Received'),
        (METHOD_DUE, 'Due'),
        (METHOD_ONLINE, 'Online'),
    ]

    customer = models.ForeignKey(Customer, on_delete=models.CASCADE, related_name='payments')
    invoice = models.ForeignKey(Invoice, on_delete=models.SET_NULL, null=True, blank=True, related_name='payments')
    amount = models.DecimalField(max_digits=10, decimal_places=2)
    payment_method = models.CharField(max_length=20, choices=METHOD_CHOICES, default=METHOD_RECEIVE)
    payment_gateway = models.CharField(max_length=50, null=True, blank=True)
    transaction_id = models.CharField(max_length=100, null=True, blank=True)
    operator = models.ForeignKey(
        User,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='recorded_payments'
    )
    payment_date = models.DateTimeField(default=tz.now)
    notes = models.TextField(blank=True)

    class Meta:
        db_table = 'payments'
        ordering = ['-payment_date']

    def __str__(self):
        return f"{self.customer.name} - {self.amount} ({self.payment_method})"


class BalanceLedgerModel(TenantOwnedModel):
    """Prepaid balance. Mutators change the instance only; callers persist
    inside a transaction holding ``select_for_update`` on the row."""

    balance = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal('0.00'))
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        abstract = True

    def has_sufficient_balance(self, amount):
        return to_money(self.balance) >= to_money(amount)

    def add_balance(self, amount):
        amount = to_money(amount)
        if amount <= 0:
            raise ValidationError('Amount must be positive')
        self.balance = to_money(self.balance) + amount
        return self.balance

    def deduct_balance(self, amount):
        amount = to_money(amount)
        if amount <= 0:
            raise ValidationError('Amount must be positive')
        if not self.has_sufficient_balance(amount):
            raise InsufficientBalance(to_money(self.balance), amount)
        self.balance = to_money(self.balance) - amount
        return self.balance


class ResellerBalance(BalanceLedgerModel):
    reseller = models.ForeignKey(User, on_delete=models.CASCADE, related_name='reseller_balances')

    class Meta:
        db_table = 'reseller_balances'
        unique_together = ['company', 'reseller']

    def __str__(self):
        return f"{self.reseller.username}: {self.balance}"


class EmployeeBalance(BalanceLedgerModel):
    employee = models.ForeignKey(User, on_delete=models.CASCADE, related_name='employee_balances')

    class Meta:
        db_table = 'employee_balances'
        unique_together = ['company', 'employee']

    def __str__(self):
        return f"{self.employee.username}: {self.balance}"


class ResellerCommission(TenantOwnedModel):
    STATUS_PENDING = 'pending'
    STATUS_READY = 'ready_for_payout'
    STATUS_PAID = 'paid'
    STATUS_CHOICES = [
        (STATUS_PENDING, 'Pending'),
        (STATUS_READY, 'Ready for Payout'),
        (STATUS_PAID, 'Paid'),
    ]

    MUTABLE_FIELDS = {'status', 'paid_at'}

    reseller = models.ForeignKey(User, on_delete=models.CASCADE, related_name='commissions')
    customer = models.ForeignKey(Customer, on_delete=models.CASCADE, related_name='commissions')
    payment = models.ForeignKey(Payment, on_delete=models.SET_NULL, null=True, blank=True, related_name='commissions')
    base_amount = models.DecimalField(max_digits=10, decimal_places=2)
    commission_percent = models.DecimalField(max_digits=5, decimal_places=2)
    commission_amount = models.DecimalField(max_digits=10, decimal_places=2)
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default=STATUS_PENDING)
    paid_at = models.DateTimeField(null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = 'reseller_commissions'
        ordering = ['-created_at']

    def __str__(self):
        return f"{self.reseller.username} {self.commission_amount} ({self.status})"

    def save(self, *args, **kwargs):
        # Amounts and rate are fixed at accrual
        update_fields = kwargs.get('update_fields')
        if not self._state.adding and (update_fields is None or not set(update_fields) <= self.MUTABLE_FIELDS):
            raise ValidationError('Only status and paid_at may change on a commission')
        super().save(*args, **kwargs)


class FundTransfer(TenantOwnedModel):
    """Append-only audit row for every balance movement"""

    TYPE_ADMIN_TO_RESELLER = 'admin_to_reseller'
    TYPE_RESELLER_TO_EMPLOYEE = 'reseller_to_employee'
    TYPE_COMMISSION_PAYOUT = 'reseller_commission_payout'
    TYPE_RESELLER_RECHARGE = 'reseller_recharge'
    TYPE_EMPLOYEE_RECHARGE = 'employee_recharge'
    TYPE_COMMISSION_SETTLEMENT = 'commission_settlement'
    TYPE_CHOICES = [
        (TYPE_ADMIN_TO_RESELLER, 'Admin to Reseller'),
        (TYPE_RESELLER_TO_EMPLOYEE, 'Reseller to Employee'),
        (TYPE_COMMISSION_PAYOUT, 'Commission Payout'),
        (TYPE_RESELLER_RECHARGE, 'Reseller Recharge'),
        (TYPE_EMPLOYEE_RECHARGE, 'Employee Recharge'),
        (TYPE_COMMISSION_SETTLEMENT, 'Commission Settlement'),
    ]

    transfer_type = models.CharField(max_length=40, choices=TYPE_CHOICES)
    amount = models.DecimalField(max_digits=12, decimal_places=2)
    from_user = models.ForeignKey(User, on_delete=models.SET_NULL, null=True, blank=True, related_name='transfers_out')
    to_user = models.ForeignKey(User, on_delete=models.SET_NULL, null=True, blank=True, related_name='transfers_in')
    notes = models.TextField(blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = 'fund_transfers'
        ordering = ['-created_at', '-id']

    def __str__(self):
        return f"{self.get_transfer_type_display()}: {self.amount}"

    def save(self, *args, **kwargs):
        if not self._state.adding:
            raise ValidationError('Fund transfers cannot be modified')
        super().save(*args, **kwargs)

    def delete(self, *args, **kwargs):
        raise ValidationError('Fund transfers cannot be deleted')


class BulkImport(TenantOwnedModel):
    STATUS_PENDING = 'pending'
    STATUS_PROCESSING = 'processing'
    STATUS_COMPLETED = 'completed'
    STATUS_FAILED = 'failed'
    STATUS_CHOICES = [
        (STATUS_PENDING, 'Pending'),
        (STATUS_PROCESSING, 'Processing'),
        (STATUS_COMPLETED, 'Completed'),
        (STATUS_FAILED, 'Failed'),
    ]

    user = models.ForeignKey(User, on_delete=models.SET_NULL, null=True, blank=True, related_name='bulk_imports')
    import_type = models.CharField(max_length=30, default='customers')
    file_name = models.CharField(max_length=255, blank=True)
    total_records = models.PositiveIntegerField(default=0)
    success_records = models.PositiveIntegerField(default=0)
    failed_records = models.PositiveIntegerField(default=0)
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default=STATUS_PENDING)
    error_log = models.TextField(blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    completed_at = models.DateTimeField(null=True, blank=True)

    class Meta:
        db_table = 'bulk_imports'
        ordering = ['-created_at']

    def __str__(self):
        return f"{self.import_type} import {self.file_name} ({self.status})"


class PaymentGatewayTransaction(TenantOwnedModel):
    """Immutable log of every mobile-money gateway call"""

    GATEWAY_CHOICES = [
        ('bkash', 'bKash'),
        ('nagad', 'Nagad'),
    ]
    TYPE_CHECK_BILL = 'check_bill'
    TYPE_PAYMENT = 'payment'
    TYPE_SEARCH = 'search'
    TYPE_CHOICES = [
        (TYPE_CHECK_BILL, 'Check Bill'),
        (TYPE_PAYMENT, 'Payment'),
        (TYPE_SEARCH, 'Search'),
    ]

    customer = models.ForeignKey(Customer, on_delete=models.SET_NULL, null=True, blank=True, related_name='gateway_transactions')
    payment = models.ForeignKey(Payment, on_delete=models.SET_NULL, null=True, blank=True, related_name='gateway_transactions')
    gateway = models.CharField(max_length=20, choices=GATEWAY_CHOICES)
    transaction_type = models.CharField(max_length=20, choices=TYPE_CHOICES)
    customer_id_gateway = models.CharField(max_length=100, null=True, blank=True)
    amount = models.DecimalField(max_digits=10, decimal_places=2, null=True, blank=True)
    mobile_no = models.CharField(max_length=20, null=True, blank=True)
    transaction_id = models.CharField(max_length=100, null=True, blank=True)
    datetime = models.CharField(max_length=50, null=True, blank=True)
    error_code = models.CharField(max_length=20, null=True, blank=True)
    error_message = models.TextField(null=True, blank=True)
    result = models.CharField(max_length=100, null=True, blank=True)
    name = models.CharField(max_length=255, null=True, blank=True)
    contact = models.CharField(max_length=50, null=True, blank=True)
    bill_amount = models.CharField(max_length=50, null=True, blank=True)
    paid_amount = models.CharField(max_length=50, null=True, blank=True)
    trx_id = models.CharField(max_length=100, null=True, blank=True)
    raw_response = models.JSONField(null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = 'payment_gateway_transactions'
        ordering = ['-created_at']

    def __str__(self):
        return f"{self.gateway} {self.transaction_type} ({self.error_code})"

    @property
    def is_successful(self):
        return self.error_code == '200'

    def save(self, *args, **kwargs):
        if not self._state.adding:
            raise ValidationError('Gateway transaction logs cannot be modified')
        super().save(*args, **kwargs)
