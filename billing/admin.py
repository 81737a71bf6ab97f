# billing/admin.py
from django.contrib import admin

from .models import (
    BulkImport, Customer, EmployeeBalance, FundTransfer, Invoice, Package, Payment,
    PaymentGatewayTransaction, ResellerBalance, ResellerCommission,
)


@admin.register(Package)
class PackageAdmin(admin.ModelAdmin):
    list_display = ['name', 'company', 'price', 'vat_percent', 'duration_days', 'is_expired_package', 'is_active']
    list_filter = ['is_active', 'is_expired_package', 'company']
    search_fields = ['name']


@admin.register(Customer)
class CustomerAdmin(admin.ModelAdmin):
    list_display = ['name', 'username', 'phone', 'company', 'package', 'customer_type', 'status', 'expiry_date']
    list_filter = ['status', 'customer_type', 'company']
    search_fields = ['name', 'username', 'phone', 'email']
    readonly_fields = ['created_at', 'updated_at', 'deleted_at']
    exclude = ['password']
    date_hierarchy = 'expiry_date'


@admin.register(Invoice)
class InvoiceAdmin(admin.ModelAdmin):
    list_display = ['invoice_number', 'customer', 'company', 'billing_date', 'due_date', 'total_amount', 'status']
    list_filter = ['status', 'billing_date', 'company']
    search_fields = ['invoice_number', 'customer__name', 'customer__username']
    readonly_fields = ['invoice_number', 'base_price', 'vat_percent', 'vat_amount', 'total_amount', 'created_at']


@admin.register(Payment)
class PaymentAdmin(admin.ModelAdmin):
    list_display = ['customer', 'company', 'amount', 'payment_method', 'payment_gateway', 'transaction_id', 'payment_date']
    list_filter = ['payment_method', 'payment_gateway', 'payment_date']
    search_fields = ['customer__name', 'transaction_id']


@admin.register(ResellerBalance)
class ResellerBalanceAdmin(admin.ModelAdmin):
    list_display = ['reseller', 'company', 'balance', 'updated_at']
    readonly_fields = ['balance']


@admin.register(EmployeeBalance)
class EmployeeBalanceAdmin(admin.ModelAdmin):
    list_display = ['employee', 'company', 'balance', 'updated_at']
    readonly_fields = ['balance']


@admin.register(ResellerCommission)
class ResellerCommissionAdmin(admin.ModelAdmin):
    list_display = ['reseller', 'customer', 'base_amount', 'commission_percent', 'commission_amount', 'status', 'paid_at']
    list_filter = ['status', 'company']
    readonly_fields = ['base_amount', 'commission_percent', 'commission_amount']


class ReadOnlyAdmin(admin.ModelAdmin):
    def has_add_permission(self, request):
        return False

    def has_change_permission(self, request, obj=None):
        return False

    def has_delete_permission(self, request, obj=None):
        return False


@admin.register(FundTransfer)
class FundTransferAdmin(ReadOnlyAdmin):
    list_display = ['transfer_type', 'amount', 'from_user', 'to_user', 'company', 'created_at']
    list_filter = ['transfer_type', 'company']


@admin.register(PaymentGatewayTransaction)
class PaymentGatewayTransactionAdmin(ReadOnlyAdmin):
    list_display = ['gateway', 'transaction_type', 'customer', 'amount', 'trx_id', 'error_code', 'created_at']
    list_filter = ['gateway', 'transaction_type', 'error_code']
    search_fields = ['trx_id', 'transaction_id', 'mobile_no']


@admin.register(BulkImport)
class BulkImportAdmin(admin.ModelAdmin):
    list_display = ['file_name', 'company', 'user', 'total_records', 'success_records', 'failed_records', 'status', 'created_at']
    list_filter = ['status']
    readonly_fields = ['error_log', 'completed_at']
