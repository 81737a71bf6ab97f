# router_manager/models.py
from django.db import models

from accounts.models import TenantOwnedModel

from .encryption import DataEncryption


class POP(TenantOwnedModel):
    """Point of presence: a network site grouping routers and customers"""

    name = models.CharField(max_length=100)
    location = models.CharField(max_length=255, blank=True)
    is_active = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = 'pops'
        ordering = ['name']
        verbose_name = "POP"
        verbose_name_plural = "POPs"

    def __str__(self):
        return self.name


class MikrotikRouter(TenantOwnedModel):
    ROUTER_TYPES = [
        ('mikrotik', 'MikroTik RouterOS'),
    ]

    STATUS_CHOICES = [
        ('online', 'Online'),
        ('offline', 'Offline'),
        ('unknown', 'Unknown'),
    ]

    pop = models.ForeignKey(POP, on_delete=models.SET_NULL, null=True, blank=True, related_name='routers')
    name = models.CharField(max_length=100)
    router_type = models.CharField(max_length=20, choices=ROUTER_TYPES, default='mikrotik')
    ip_address = models.GenericIPAddressField()
    api_port = models.PositiveIntegerField(default=8728)
    username = models.CharField(max_length=100)
    encrypted_password = models.TextField(blank=True)
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default='unknown')
    last_connected_at = models.DateTimeField(null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'mikrotik_routers'
        ordering = ['name']

    def __str__(self):
        return f"{self.name} ({self.ip_address})"

    @property
    def password(self):
        return DataEncryption.decrypt(self.encrypted_password)

    def set_password(self, raw_password):
        self.encrypted_password = DataEncryption.encrypt(raw_password)


class MikrotikProfile(TenantOwnedModel):
    """PPP profile mirrored from a router"""

    router = models.ForeignKey(MikrotikRouter, on_delete=models.CASCADE, related_name='profiles')
    name = models.CharField(max_length=100)
    rate_limit = models.CharField(max_length=100, blank=True)
    local_address = models.CharField(max_length=100, blank=True)
    remote_address = models.CharField(max_length=100, blank=True)
    synced_at = models.DateTimeField(null=True, blank=True)

    class Meta:
        db_table = 'mikrotik_profiles'
        ordering = ['name']
        unique_together = ['router', 'name']

    def __str__(self):
        return f"{self.name} @ {self.router.name}"
