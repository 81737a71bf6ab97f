# router_manager/admin.py
from django import forms
from django.contrib import admin

from .models import POP, MikrotikProfile, MikrotikRouter
from .services import RouterOSService


class MikrotikRouterAdminForm(forms.ModelForm):
    """Takes a plain password and stores it encrypted"""
    new_password = forms.CharField(required=False, widget=forms.PasswordInput(render_value=False))

    class Meta:
        model = MikrotikRouter
        exclude = ['encrypted_password']

    def save(self, commit=True):
        router = super().save(commit=False)
        if self.cleaned_data.get('new_password'):
            router.set_password(self.cleaned_data['new_password'])
        if commit:
            router.save()
        return router


@admin.register(POP)
class POPAdmin(admin.ModelAdmin):
    list_display = ['name', 'company', 'location', 'is_active']
    list_filter = ['is_active', 'company']
    search_fields = ['name', 'location']


@admin.register(MikrotikRouter)
class MikrotikRouterAdmin(admin.ModelAdmin):
    form = MikrotikRouterAdminForm
    list_display = ['name', 'company', 'pop', 'ip_address', 'api_port', 'status', 'last_connected_at']
    list_filter = ['status', 'company']
    search_fields = ['name', 'ip_address']
    readonly_fields = ['status', 'last_connected_at', 'created_at', 'updated_at']
    actions = ['test_connections']

    def test_connections(self, request, queryset):
        online = sum(1 for router in queryset if RouterOSService(router).test_connection())
        self.message_user(request, f"{online} of {queryset.count()} router(s) reachable.")
    test_connections.short_description = "Test connection"


@admin.register(MikrotikProfile)
class MikrotikProfileAdmin(admin.ModelAdmin):
    list_display = ['name', 'router', 'rate_limit', 'synced_at']
    list_filter = ['router']
