# router_manager/services.py
import logging

from django.utils import timezone

from .models import MikrotikProfile
from .router_drivers import RouterDriverFactory

logger = logging.getLogger(__name__)


class RouterOSService:
    """PPP control surface for one router.

    Each call opens a connection, runs one operation and closes it.
    Failures are logged and come back as ``False`` or ``[]``.
    """

    def __init__(self, router, driver=None):
        self.router = router
        self.driver = driver

    def get_driver(self):
        if self.driver is None:
            self.driver = RouterDriverFactory.get_driver(self.router)
        return self.driver

    def _run(self, operation, default, *args, **kwargs):
        try:
            driver = self.get_driver()
        except (ValueError, ImportError, AttributeError) as e:
            logger.error(f"No driver for router {self.router}: {e}")
            return default

        if not driver.connect():
            logger.warning(f"Router {self.router} unreachable, skipped {operation}")
            return default
        try:
            return getattr(driver, operation)(*args, **kwargs)
        finally:
            driver.disconnect()

    def test_connection(self):
        try:
            driver = self.get_driver()
        except (ValueError, ImportError, AttributeError) as e:
            logger.error(f"No driver for router {self.router}: {e}")
            return False

        connected = driver.connect()
        if connected:
            driver.disconnect()
            self.router.status = 'online'
            self.router.last_connected_at = timezone.now()
        else:
            self.router.status = 'offline'
        self.router.save(update_fields=['status', 'last_connected_at', 'updated_at'])
        return connected

    def create_pppoe_user(self, username, password, profile):
        return self._run('add_ppp_secret', False, username, password, profile)

    def disable_pppoe_user(self, username):
        return self._run('set_ppp_secret', False, username, disabled=True)

    def enable_pppoe_user(self, username):
        return self._run('set_ppp_secret', False, username, disabled=False)

    def change_pppoe_password(self, username, password):
        return self._run('set_ppp_secret', False, username, password=password)

    def delete_pppoe_user(self, username):
        return self._run('remove_ppp_secret', False, username)

    def get_active_sessions(self):
        return self._run('get_active_sessions', [])

    def get_profiles(self):
        return self._run('get_profiles', [])

    def sync_profiles(self, tenant_context):
        """Mirror the router's PPP profiles into MikrotikProfile rows"""
        profiles = self.get_profiles()
        now = timezone.now()
        synced = 0

        for data in profiles:
            if not data.get('name'):
                continue
            profile = (
                tenant_context.scope(MikrotikProfile)
                .filter(router=self.router, name=data['name'])
                .first()
            )
            if profile is None:
                profile = MikrotikProfile(company_id=self.router.company_id, router=self.router, name=data['name'])
            profile.rate_limit = data.get('rate_limit', '')
            profile.local_address = data.get('local_address', '')
            profile.remote_address = data.get('remote_address', '')
            profile.synced_at = now
            tenant_context.save(profile)
            synced += 1

        logger.info(f"Synced {synced} profiles from router {self.router.name}")
        return synced
