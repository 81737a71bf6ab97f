import logging

from django.http import HttpResponseNotFound

from .exceptions import TenantNotFound
from .tenancy import resolve_tenant_context

logger = logging.getLogger(__name__)


class TenantMiddleware:
    """Resolve the tenant context once per request from the host name"""

    def __init__(self, get_response):
        self.get_response = get_response

    def __call__(self, request):
        try:
            request.tenant_context = resolve_tenant_context(request.get_host())
        except TenantNotFound as e:
            logger.warning(str(e))
            return HttpResponseNotFound("Unknown tenant")

        response = self.get_response(request)
        return response
