# support/forms.py
from django import forms

from accounts.models import User
from billing.models import Customer

from .models import SupportTicket, SupportToken


class SupportTicketForm(forms.ModelForm):

    class Meta:
        model = SupportTicket
        fields = ['customer', 'category', 'subject', 'description', 'priority']

    def __init__(self, *args, company=None, **kwargs):
        super().__init__(*args, **kwargs)
        self.company = company

        # Related records must belong to the same company
        self.fields['customer'].queryset = Customer.objects.filter(company=company)
        self.fields['category'].required = False
        self.fields['priority'].required = False

    def clean_subject(self):
        return self.cleaned_data['subject'].strip()

    def clean_category(self):
        return (self.cleaned_data.get('category') or 'general').strip().lower()

    def clean_priority(self):
        return self.cleaned_data.get('priority') or SupportTicket.PRIORITY_MEDIUM


class SupportTokenForm(forms.ModelForm):

    class Meta:
        model = SupportToken
        fields = ['customer', 'ticket', 'category', 'assigned_to']

    def __init__(self, *args, company=None, **kwargs):
        super().__init__(*args, **kwargs)
        self.company = company

        self.fields['customer'].queryset = Customer.objects.filter(company=company)
        self.fields['ticket'].queryset = SupportTicket.objects.filter(company=company, deleted_at__isnull=True)
        self.fields['assigned_to'].queryset = User.objects.filter(company=company, is_active=True)
        self.fields['category'].required = False

    def clean_category(self):
        return (self.cleaned_data.get('category') or 'general').strip().lower()
