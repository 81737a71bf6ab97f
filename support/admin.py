# support/admin.py
from django.contrib import admin

from .models import SupportTicket, SupportToken, TicketAttachment, TicketLog


class TicketLogInline(admin.TabularInline):
    model = TicketLog
    extra = 0
    can_delete = False
    readonly_fields = ['user', 'action', 'description', 'created_at']
    exclude = ['company']


class TicketAttachmentInline(admin.TabularInline):
    model = TicketAttachment
    extra = 0
    readonly_fields = ['file_name', 'file_size', 'uploaded_by', 'created_at']
    exclude = ['company']


@admin.register(SupportTicket)
class SupportTicketAdmin(admin.ModelAdmin):
    list_display = ['id', 'subject', 'company', 'customer', 'category', 'priority', 'status', 'assigned_to', 'created_at']
    list_filter = ['status', 'priority', 'category', 'company']
    search_fields = ['subject', 'customer__name', 'customer__username']
    readonly_fields = ['created_at', 'updated_at', 'deleted_at']
    inlines = [TicketAttachmentInline, TicketLogInline]


@admin.register(SupportToken)
class SupportTokenAdmin(admin.ModelAdmin):
    list_display = ['token_number', 'company', 'customer', 'category', 'status', 'printed', 'created_at']
    list_filter = ['status', 'printed', 'company']
    search_fields = ['token_number', 'customer__name']
    readonly_fields = ['token_number', 'created_at']
