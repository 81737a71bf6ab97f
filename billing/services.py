# billing/services.py
import logging
from datetime import timedelta
from decimal import Decimal

from django.conf import settings
from django.core.exceptions import ValidationError
from django.db import transaction
from django.db.models import F, Q
from django.utils import timezone as tz

from accounts.exceptions import CrossTenantViolation
from accounts.models import User
from router_manager.services import RouterOSService

from .forms import CustomerForm
from .gateways import SUCCESS_CODE, get_gateway
from .models import (
    Customer, EmployeeBalance, FundTransfer, Invoice, InvoiceSequence, Package,
    Payment, PaymentGatewayTransaction, ResellerBalance, ResellerCommission,
)
from .utils import add_one_month, percent_of, to_money

logger = logging.getLogger(__name__)


class TenantService:
    """Shared plumbing for services bound to a TenantContext"""

    def __init__(self, tenant_context, router_service_factory=None):
        self.ctx = tenant_context.require()
        self.router_service_factory = router_service_factory or RouterOSService

    def _company_for(self, company=None):
        if self.ctx.is_tenant:
            return self.ctx.company
        if company is None:
            raise ValidationError({'company': 'Super admin operations must name a company'})
        return company

    def _check_owned(self, instance):
        self.ctx.check_ownership(instance)

    def _router_call(self, customer, operation, *args):
        """Best-effort router action; failures never propagate"""
        if not customer.router_id or not customer.username:
            return False
        try:
            service = self.router_service_factory(customer.router)
            result = getattr(service, operation)(customer.username, *args)
        except Exception as e:
            logger.warning(f"Router {operation} failed for customer {customer.pk}: {e}")
            return False
        if not result:
            logger.warning(f"Router {operation} returned failure for customer {customer.pk}")
        return result


class CustomerService(TenantService):

    def create_customer(self, data, company=None):
        company = self._company_for(company)
        form = CustomerForm(data, company=company)
        if not form.is_valid():
            raise ValidationError(form.errors.as_data())

        customer = form.save(commit=False)
        customer.company = company
        raw_password = form.cleaned_data['password']
        customer.set_password(raw_password)
        if not customer.activation_date:
            customer.activation_date = tz.localdate()
        self.ctx.save(customer)

        logger.info(f"Customer created: {customer.name} ({customer.username}) for {company.name}")

        profile = customer.package.mikrotik_profile if customer.package else None
        if profile is not None:
            self._router_call(customer, 'create_pppoe_user', raw_password, profile.name)
        return customer

    def enable_customer(self, customer):
        self._check_owned(customer)
        customer.status = Customer.STATUS_ACTIVE
        self.ctx.save(customer, update_fields=['status', 'updated_at'])
        logger.info(f"Customer {customer.pk} enabled")
        self._router_call(customer, 'enable_pppoe_user')
        return customer

    def suspend_customer(self, customer):
        self._check_owned(customer)
        customer.status = Customer.STATUS_SUSPENDED
        self.ctx.save(customer, update_fields=['status', 'updated_at'])
        logger.info(f"Customer {customer.pk} suspended")
        self._router_call(customer, 'disable_pppoe_user')
        return customer


class BillingService(TenantService):
    """Invoices, payments, commission accrual and expiry handling"""

    # Invoices

    def generate_invoices_for_company(self, company, billing_date=None):
        """Invoice every billable active customer not yet billed on ``billing_date``; returns the number created"""
        customers = (
            self.ctx.scope(Customer)
            .filter(company=company, status=Customer.STATUS_ACTIVE)
            .exclude(customer_type=Customer.TYPE_FREE)
            .select_related('package', 'company')
        )

        billing_date = billing_date or tz.localdate()
        already_billed = set(
            self.ctx.scope(Invoice)
            .filter(company=company, billing_date=billing_date)
            .values_list('customer_id', flat=True)
        )

        created = 0
        for customer in customers:
            if customer.pk in already_billed:
                continue
            if self.generate_invoice_for_customer(customer, billing_date) is not None:
                created += 1

        logger.info(f"Generated {created} invoices for {company.name}")
        return created

    def generate_invoice_for_customer(self, customer, billing_date=None):
        if customer.is_free or customer.package_id is None:
            return None
        self._check_owned(customer)

        billing_date = billing_date or tz.localdate()

        package = customer.package
        vat_percent = package.effective_vat_percent()
        base_price = to_money(package.price)
        vat_amount = percent_of(base_price, vat_percent)

        with transaction.atomic():
            invoice = self.ctx.create(
                Invoice,
                company_id=customer.company_id,
                customer=customer,
                invoice_number=self.next_invoice_number(customer.company_id, tz.localdate()),
                billing_date=billing_date,
                due_date=billing_date + timedelta(days=settings.BILLING_INVOICE_GRACE_DAYS),
                base_price=base_price,
                vat_percent=vat_percent,
                vat_amount=vat_amount,
                total_amount=base_price + vat_amount,
                status=Invoice.STATUS_UNPAID,
            )

        logger.info(f"Invoice {invoice.invoice_number} created for customer {customer.pk}")
        return invoice

    def next_invoice_number(self, company_id, on_date):
        """INV-YYYYMMDD-NNNN from the per-company daily counter"""
        with transaction.atomic():
            sequence, _ = (
                InvoiceSequence.objects.select_for_update()
                .get_or_create(company_id=company_id, date=on_date)
            )
            InvoiceSequence.objects.filter(pk=sequence.pk).update(last_value=F('last_value') + 1)
            sequence.refresh_from_db(fields=['last_value'])
        return f"INV-{on_date:%Y%m%d}-{sequence.last_value:04d}"

    def mark_invoice_paid(self, invoice, payment_date=None):
        invoice.status = Invoice.STATUS_PAID
        invoice.payment_date = payment_date or tz.now()
        self.ctx.save(invoice, update_fields=['status', 'payment_date'])
        return invoice

    # Payments and commission

    def process_payment(self, customer, amount, payment_method, gateway=None, transaction_id=None,
                        operator=None, invoice=None, notes=''):
        self._check_owned(customer)
        if invoice is not None:
            self._check_owned(invoice)
            if invoice.customer_id != customer.pk:
                raise ValidationError({'invoice': f"Invoice {invoice.invoice_number} belongs to another customer"})
        if payment_method not in dict(Payment.METHOD_CHOICES):
            raise ValidationError({'payment_method': f"Unknown payment method: {payment_method}"})
        amount = to_money(amount)
        if amount <= 0:
            raise ValidationError({'amount': 'Amount must be positive'})

        with transaction.atomic():
            payment = self.ctx.create(
                Payment,
                company_id=customer.company_id,
                customer=customer,
                invoice=invoice,
                amount=amount,
                payment_method=payment_method,
                payment_gateway=gateway,
                transaction_id=transaction_id,
                operator=operator,
                payment_date=tz.now(),
                notes=notes,
            )
            if customer.reseller_id:
                self.calculate_and_record_commission(customer, amount, payment=payment)

        logger.info(f"Payment of {amount} recorded for customer {customer.pk} ({payment_method})")
        return payment

    def calculate_and_record_commission(self, customer, amount, payment=None):
        """Accrue commission on the package price; ``amount`` is the payment, not the base"""
        if not customer.reseller_id or not customer.package_id:
            return None

        # Current rate, snapshotted onto the commission row
        reseller = User.objects.get(pk=customer.reseller_id)
        if not reseller.commission_percent:
            return None

        base_amount = to_money(customer.package.price)
        commission = self.ctx.create(
            ResellerCommission,
            company_id=customer.company_id,
            reseller=reseller,
            customer=customer,
            payment=payment,
            base_amount=base_amount,
            commission_percent=reseller.commission_percent,
            commission_amount=percent_of(base_amount, reseller.commission_percent),
            status=ResellerCommission.STATUS_PENDING,
        )
        logger.info(
            f"Commission {commission.commission_amount} accrued for reseller {reseller.username} "
            f"on customer {customer.pk}"
        )
        return commission

    # Expiry

    def process_customer_expiry(self, customer, today=None):
        """Move an unpaid, non-VIP customer past expiry to expired; True when moved"""
        today = today or tz.localdate()

        if customer.is_free:
            return False
        if customer.expiry_date is not None and customer.expiry_date > today:
            return False
        if customer.is_vip:
            return False

        has_unpaid = self.ctx.scope(Invoice).filter(
            customer=customer, status=Invoice.STATUS_UNPAID
        ).exists()
        if not has_unpaid:
            return False

        with transaction.atomic():
            expired_package = (
                self.ctx.scope(Package)
                .filter(company_id=customer.company_id, is_expired_package=True)
                .first()
            )
            if expired_package is not None:
                customer.package = expired_package
            customer.status = Customer.STATUS_EXPIRED
            self.ctx.save(customer, update_fields=['package', 'status', 'updated_at'])

        logger.info(f"Customer {customer.pk} expired for nonpayment")
        self._router_call(customer, 'disable_pppoe_user')
        return True

    def extend_customer_expiry(self, customer, payment_type=Payment.METHOD_RECEIVE, today=None):
        if payment_type not in (Payment.METHOD_RECEIVE, Payment.METHOD_DUE):
            raise ValidationError({'payment_type': f"Unknown payment type: {payment_type}"})
        today = today or tz.localdate()

        if customer.expiry_date is None or customer.expiry_date < today:
            anchor = today
        else:
            anchor = customer.expiry_date

        customer.expiry_date = add_one_month(anchor)
        self.ctx.save(customer, update_fields=['expiry_date', 'updated_at'])
        logger.info(f"Customer {customer.pk} expiry extended to {customer.expiry_date}")
        return customer.expiry_date

    def recharge_customer(self, principal, customer, amount, payment_type=Payment.METHOD_RECEIVE):
        """Reseller-funded recharge: debit, extend and record in one transaction"""
        with transaction.atomic():
            ResellerService(self.ctx).deduct_balance_for_recharge(
                principal, amount, notes=f"Recharge for {customer.name} ({customer.pk})"
            )
            self.extend_customer_expiry(customer, payment_type)
            payment = self.process_payment(customer, amount, payment_type, operator=principal)
        return payment


class ResellerService(TenantService):
    """Reseller and employee balances, transfers and commission payouts"""

    def _company_id_for(self, user):
        if user.company_id is None:
            raise ValidationError(f"{user.username} does not belong to a company")
        if self.ctx.is_tenant and user.company_id != self.ctx.company_id:
            logger.error(f"Cross-tenant ledger access for user {user.pk} from company {self.ctx.company_id}")
            raise CrossTenantViolation(f"User {user.pk} does not belong to company {self.ctx.company_id}")
        return user.company_id

    def _get_balance(self, model, owner_field, user, lock=False):
        company_id = self._company_id_for(user)
        balance, _ = self.ctx.scope(model).get_or_create(
            **{owner_field: user},
            defaults={'company_id': company_id},
        )
        if lock:
            balance = self.ctx.scope(model).select_for_update().get(pk=balance.pk)
        return balance

    def _save_balance(self, balance):
        self.ctx.save(balance, update_fields=['balance', 'updated_at'])

    def _record_transfer(self, company_id, transfer_type, amount, from_user=None, to_user=None, notes=None):
        return self.ctx.create(
            FundTransfer,
            company_id=company_id,
            transfer_type=transfer_type,
            amount=to_money(amount),
            from_user=from_user,
            to_user=to_user,
            notes=notes or '',
        )

    def get_reseller_balance(self, reseller):
        return self._get_balance(ResellerBalance, 'reseller', reseller)

    def get_employee_balance(self, employee):
        return self._get_balance(EmployeeBalance, 'employee', employee)

    def add_balance(self, reseller, amount, notes=None, from_user=None):
        """Top up a reseller's balance (admin to reseller)"""
        if not reseller.is_reseller:
            raise ValidationError(f"{reseller.username} is not a reseller")

        with transaction.atomic():
            balance = self._get_balance(ResellerBalance, 'reseller', reseller, lock=True)
            balance.add_balance(amount)
            self._save_balance(balance)
            self._record_transfer(
                balance.company_id, FundTransfer.TYPE_ADMIN_TO_RESELLER, amount,
                from_user=from_user, to_user=reseller, notes=notes,
            )

        logger.info(f"Added {to_money(amount)} to reseller {reseller.username}")
        return balance

    def transfer_to_employee(self, reseller, employee, amount, notes=None):
        if not reseller.is_reseller:
            raise ValidationError(f"{reseller.username} is not a reseller")
        if not employee.is_reseller_employee or employee.reseller_id != reseller.pk:
            raise ValidationError(f"{employee.username} is not an employee of {reseller.username}")

        with transaction.atomic():
            # Reseller row first, then employee row
            reseller_balance = self._get_balance(ResellerBalance, 'reseller', reseller, lock=True)
            employee_balance = self._get_balance(EmployeeBalance, 'employee', employee, lock=True)

            reseller_balance.deduct_balance(amount)
            employee_balance.add_balance(amount)
            self._save_balance(reseller_balance)
            self._save_balance(employee_balance)

            transfer = self._record_transfer(
                reseller_balance.company_id, FundTransfer.TYPE_RESELLER_TO_EMPLOYEE, amount,
                from_user=reseller, to_user=employee, notes=notes,
            )

        logger.info(f"Transferred {to_money(amount)} from {reseller.username} to {employee.username}")
        return transfer

    def validate_balance_for_recharge(self, user, amount):
        if user.is_reseller:
            return self.get_reseller_balance(user).has_sufficient_balance(amount)
        if user.is_reseller_employee:
            return self.get_employee_balance(user).has_sufficient_balance(amount)
        return True

    def deduct_balance_for_recharge(self, user, amount, notes=None):
        """Debit a reseller or employee for a recharge; other principals pay nothing"""
        if user.is_reseller:
            model, owner_field, transfer_type = ResellerBalance, 'reseller', FundTransfer.TYPE_RESELLER_RECHARGE
        elif user.is_reseller_employee:
            model, owner_field, transfer_type = EmployeeBalance, 'employee', FundTransfer.TYPE_EMPLOYEE_RECHARGE
        else:
            return None

        with transaction.atomic():
            balance = self._get_balance(model, owner_field, user, lock=True)
            balance.deduct_balance(amount)
            self._save_balance(balance)
            transfer = self._record_transfer(
                balance.company_id, transfer_type, amount, from_user=user, notes=notes,
            )

        logger.info(f"Recharge debit of {to_money(amount)} from {user.username}")
        return transfer

    def payout_commission(self, reseller, immediate=False):
        """Pay or queue all pending commissions; returns the total handled"""
        if immediate:
            return self._pay_commissions(
                reseller, ResellerCommission.STATUS_PENDING, FundTransfer.TYPE_COMMISSION_PAYOUT
            )

        with transaction.atomic():
            pending = self.ctx.scope(ResellerCommission).select_for_update().filter(
                reseller=reseller, status=ResellerCommission.STATUS_PENDING
            )
            commissions = list(pending)
            if not commissions:
                return Decimal('0.00')
            total = to_money(sum(c.commission_amount for c in commissions))
            self.ctx.scope(ResellerCommission).filter(
                pk__in=[c.pk for c in commissions]
            ).update(status=ResellerCommission.STATUS_READY)

        logger.info(f"{len(commissions)} commissions ({total}) ready for payout to {reseller.username}")
        return total

    def settle_ready_commissions(self, reseller):
        """Credit commissions previously marked ready_for_payout"""
        return self._pay_commissions(
            reseller, ResellerCommission.STATUS_READY, FundTransfer.TYPE_COMMISSION_SETTLEMENT
        )

    def _pay_commissions(self, reseller, from_status, transfer_type):
        with transaction.atomic():
            commissions = list(
                self.ctx.scope(ResellerCommission).select_for_update().filter(
                    reseller=reseller, status=from_status
                )
            )
            if not commissions:
                return Decimal('0.00')

            total = to_money(sum(c.commission_amount for c in commissions))
            if total > 0:
                balance = self._get_balance(ResellerBalance, 'reseller', reseller, lock=True)
                balance.add_balance(total)
                self._save_balance(balance)
                self._record_transfer(
                    balance.company_id, transfer_type, total, to_user=reseller,
                    notes=f"{len(commissions)} commission(s)",
                )

            self.ctx.scope(ResellerCommission).filter(
                pk__in=[c.pk for c in commissions]
            ).update(status=ResellerCommission.STATUS_PAID, paid_at=tz.now())

        logger.info(f"Paid {total} commission to {reseller.username}")
        return total

    def get_transfer_history(self, user, limit=50):
        return list(
            self.ctx.scope(FundTransfer)
            .filter(Q(from_user=user) | Q(to_user=user))
            .select_related('from_user', 'to_user')[:limit]
        )


class PaymentGatewayService(TenantService):
    """Calls a mobile-money gateway and logs every call"""

    def __init__(self, tenant_context, billing_service=None, gateway_factory=None):
        super().__init__(tenant_context)
        self.billing = billing_service or BillingService(tenant_context)
        self.gateway_factory = gateway_factory or get_gateway

    def customer_identifier(self, customer):
        return customer.username or str(customer.pk)

    def check_bill(self, gateway_name, customer):
        self._check_owned(customer)
        response = self.gateway_factory(gateway_name).check_bill(self.customer_identifier(customer))
        return self._log(
            gateway_name, PaymentGatewayTransaction.TYPE_CHECK_BILL, response,
            company_id=customer.company_id, customer=customer,
            customer_id_gateway=self.customer_identifier(customer),
        )

    def process_payment(self, gateway_name, customer, amount, mobile_no, trx_id, datetime=None):
        self._check_owned(customer)
        amount = to_money(amount)
        datetime = datetime or tz.now().strftime('%Y-%m-%d %H:%M:%S')
        identifier = self.customer_identifier(customer)

        response = self.gateway_factory(gateway_name).process_payment(
            identifier, amount, mobile_no, trx_id, datetime
        )

        payment = None
        if response.get('ErrorCode') == SUCCESS_CODE:
            already_recorded = self.ctx.scope(Payment).filter(
                payment_gateway=gateway_name, transaction_id=trx_id
            ).exists()
            if already_recorded:
                logger.warning(f"{gateway_name} transaction {trx_id} already recorded, skipping payment")
            else:
                payment = self.billing.process_payment(
                    customer, amount, Payment.METHOD_ONLINE, gateway=gateway_name, transaction_id=trx_id
                )
        else:
            logger.warning(
                f"{gateway_name} payment {trx_id} failed: "
                f"{response.get('ErrorCode')} {response.get('ErrorMessage', '')}"
            )

        return self._log(
            gateway_name, PaymentGatewayTransaction.TYPE_PAYMENT, response,
            company_id=customer.company_id, customer=customer, payment=payment,
            customer_id_gateway=identifier, amount=amount, mobile_no=mobile_no,
            transaction_id=trx_id, datetime=datetime,
        )

    def search_transaction(self, gateway_name, trx_id, company=None):
        company = self._company_for(company)
        response = self.gateway_factory(gateway_name).search_transaction(trx_id)

        customer = None
        customer_ref = response.get('customer_id')
        if customer_ref:
            lookup = Q(username=customer_ref)
            if str(customer_ref).isdigit():
                lookup |= Q(pk=int(customer_ref))
            customer = self.ctx.scope(Customer).filter(lookup, company=company).first()

        return self._log(
            gateway_name, PaymentGatewayTransaction.TYPE_SEARCH, response,
            company_id=company.pk, customer=customer,
            customer_id_gateway=customer_ref, transaction_id=trx_id,
        )

    def _log(self, gateway_name, transaction_type, response, **fields):
        return self.ctx.create(
            PaymentGatewayTransaction,
            gateway=gateway_name,
            transaction_type=transaction_type,
            error_code=response.get('ErrorCode'),
            error_message=response.get('ErrorMessage'),
            result=response.get('result'),
            name=response.get('name'),
            contact=response.get('contact'),
            bill_amount=self._as_text(response.get('bill_amount')),
            paid_amount=self._as_text(response.get('paid_amount')),
            trx_id=response.get('trx_id'),
            raw_response=response,
            **fields,
        )

    def _as_text(self, value):
        return None if value is None else str(value)
