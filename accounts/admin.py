# accounts/admin.py
from django.contrib import admin
from django.contrib.auth.admin import UserAdmin

from .models import Company, SMSGateway, SMSLog, SMSTemplate, User
from .services import CompanyService


@admin.register(Company)
class CompanyAdmin(admin.ModelAdmin):
    list_display = ['name', 'domain', 'subdomain', 'status', 'billing_day', 'vat_percent', 'currency', 'created_at']
    list_filter = ['status', 'country', 'created_at']
    search_fields = ['name', 'domain', 'subdomain', 'contact_email']
    readonly_fields = ['created_at', 'updated_at']
    actions = ['enable_companies', 'suspend_companies']

    fieldsets = (
        ('Basic Information', {
            'fields': ('name', 'status', 'country')
        }),
        ('Domain', {
            'fields': ('domain', 'subdomain')
        }),
        ('Billing', {
            'fields': ('billing_day', 'vat_percent', 'currency', 'timezone')
        }),
        ('Contact Information', {
            'fields': ('contact_email', 'contact_phone')
        }),
        ('Timestamps', {
            'fields': ('created_at', 'updated_at'),
            'classes': ('collapse',),
        }),
    )

    def enable_companies(self, request, queryset):
        service = CompanyService()
        for company in queryset:
            service.enable_company(company)
        self.message_user(request, f"{queryset.count()} company(ies) enabled.")
    enable_companies.short_description = "Enable selected companies"

    def suspend_companies(self, request, queryset):
        service = CompanyService()
        for company in queryset:
            service.suspend_company(company)
        self.message_user(request, f"{queryset.count()} company(ies) suspended.")
    suspend_companies.short_description = "Suspend selected companies"


@admin.register(User)
class NetbillUserAdmin(UserAdmin):
    list_display = ['username', 'email', 'company', 'role', 'commission_percent', 'is_active']
    list_filter = ['role', 'is_active', 'company']
    search_fields = ['username', 'email', 'phone']
    fieldsets = UserAdmin.fieldsets + (
        ('Company & Role', {
            'fields': ('company', 'role', 'phone', 'commission_percent', 'reseller')
        }),
    )


@admin.register(SMSGateway)
class SMSGatewayAdmin(admin.ModelAdmin):
    list_display = ['name', 'company', 'provider', 'http_method', 'balance', 'is_enabled', 'last_balance_check']
    list_filter = ['provider', 'is_enabled']
    search_fields = ['name', 'company__name']


@admin.register(SMSTemplate)
class SMSTemplateAdmin(admin.ModelAdmin):
    list_display = ['name', 'company', 'category', 'gateway']
    list_filter = ['category']


@admin.register(SMSLog)
class SMSLogAdmin(admin.ModelAdmin):
    list_display = ['phone_number', 'company', 'status', 'attempts', 'sent_at', 'created_at']
    list_filter = ['status', 'created_at']
    search_fields = ['phone_number', 'message']
    readonly_fields = ['created_at', 'sent_at', 'response']
