# billing/forms.py
import re

from django import forms
from django.core.exceptions import ValidationError

from accounts.models import User
from router_manager.models import POP, MikrotikRouter

from .models import Customer, Package

MAC_PATTERN = re.compile(r'^([0-9A-Fa-f]{2}[:-]){5}([0-9A-Fa-f]{2})$')


class CustomerForm(forms.ModelForm):
    """Validation for creating a customer, shared by single create and CSV import"""

    password = forms.CharField(
        widget=forms.PasswordInput(render_value=False),
        min_length=6,
        help_text="PPPoE password, minimum 6 characters"
    )

    class Meta:
        model = Customer
        fields = [
            'name', 'phone', 'email', 'username', 'password', 'nid', 'address',
            'ip_address', 'mac_address', 'package', 'pop', 'router', 'reseller',
            'customer_type', 'activation_date', 'expiry_date', 'notes',
        ]

    def __init__(self, *args, company=None, **kwargs):
        super().__init__(*args, **kwargs)
        self.company = company

        # Related records must belong to the same company
        self.fields['package'].queryset = Package.objects.filter(company=company, is_active=True)
        self.fields['pop'].queryset = POP.objects.filter(company=company)
        self.fields['router'].queryset = MikrotikRouter.objects.filter(company=company)
        self.fields['reseller'].queryset = User.objects.filter(company=company, role=User.ROLE_RESELLER)

        for name in ('username', 'package', 'pop', 'router'):
            self.fields[name].required = True
        self.fields['customer_type'].required = False

    def clean_phone(self):
        phone = self.cleaned_data['phone'].strip()
        if not re.match(r'^\+?[0-9]{6,15}$', phone):
            raise ValidationError("Enter a valid phone number")
        return phone

    def clean_customer_type(self):
        return self.cleaned_data.get('customer_type') or Customer.TYPE_HOME

    def clean_mac_address(self):
        mac = self.cleaned_data.get('mac_address', '').strip()
        if mac and not MAC_PATTERN.match(mac):
            raise ValidationError("Enter a valid MAC address (AA:BB:CC:DD:EE:FF)")
        return mac.upper()

    def clean(self):
        cleaned_data = super().clean()
        activation_date = cleaned_data.get('activation_date')
        expiry_date = cleaned_data.get('expiry_date')
        if activation_date and expiry_date and expiry_date < activation_date:
            self.add_error('expiry_date', "Expiry date cannot be before activation date")
        return cleaned_data
