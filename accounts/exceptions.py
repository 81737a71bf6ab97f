from django.core.exceptions import PermissionDenied


class TenantError(Exception):
    """Base class for tenancy errors"""


class TenantNotFound(TenantError):
    """No company matches the request host"""

    def __init__(self, host):
        self.host = host
        super().__init__(f"No tenant found for host '{host}'")


class TenantContextRequired(TenantError):
    """A tenant-owned record was touched without a resolved tenant context"""


class CrossTenantViolation(TenantError, PermissionDenied):
    """A write would move or modify a record owned by another company"""
