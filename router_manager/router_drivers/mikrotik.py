# router_manager/router_drivers/mikrotik.py
import logging

from django.conf import settings
from librouteros import connect
from librouteros.exceptions import LibRouterosError

from router_manager.router_drivers import RouterDriverBase

logger = logging.getLogger(__name__)

ROUTER_ERRORS = (LibRouterosError, OSError)


class MikroTikDriver(RouterDriverBase):
    """MikroTik router driver using the RouterOS API (PPP secrets)"""

    def __init__(self, router_config):
        super().__init__(router_config)
        self.api = None

    def connect(self):
        """Connect to MikroTik RouterOS API"""
        try:
            self.api = connect(
                username=self.config.username,
                password=self.config.password,
                host=self.config.ip_address,
                port=self.config.api_port or 8728,
                timeout=settings.ROUTEROS_TIMEOUT
            )
            self.logger.info(f"Connected to MikroTik router {self.config.ip_address}")
            return True
        except ROUTER_ERRORS as e:
            self.logger.error(f"Connection to {self.config.ip_address} failed: {e}")
            return False

    def disconnect(self):
        """Disconnect from API"""
        if self.api:
            self.api.close()
            self.api = None

    def _secrets(self):
        return self.api.path('ppp', 'secret')

    def _find_secret_id(self, username):
        for secret in self._secrets():
            if secret.get('name') == username:
                return secret.get('.id')
        return None

    def add_ppp_secret(self, username, password, profile, service='pppoe'):
        try:
            self._secrets().add(
                name=username,
                password=password,
                service=service,
                profile=profile,
                disabled=False,
            )
            self.logger.info(f"PPP secret {username} created")
            return True
        except ROUTER_ERRORS as e:
            self.logger.error(f"Failed to create PPP secret {username}: {e}")
            return False

    def set_ppp_secret(self, username, **values):
        try:
            secret_id = self._find_secret_id(username)
            if secret_id is None:
                self.logger.warning(f"PPP secret {username} not found")
                return False
            self._secrets().update(**{'.id': secret_id}, **values)
            return True
        except ROUTER_ERRORS as e:
            self.logger.error(f"Failed to update PPP secret {username}: {e}")
            return False

    def remove_ppp_secret(self, username):
        try:
            secret_id = self._find_secret_id(username)
            if secret_id is None:
                self.logger.warning(f"PPP secret {username} not found")
                return False
            self._secrets().remove(secret_id)
            return True
        except ROUTER_ERRORS as e:
            self.logger.error(f"Failed to remove PPP secret {username}: {e}")
            return False

    def get_active_sessions(self):
        try:
            return [
                {
                    'name': session.get('name', ''),
                    'address': session.get('address', ''),
                    'caller_id': session.get('caller-id', ''),
                    'uptime': session.get('uptime', ''),
                    'service': session.get('service', ''),
                }
                for session in self.api.path('ppp', 'active')
            ]
        except ROUTER_ERRORS as e:
            self.logger.error(f"Failed to get active sessions: {e}")
            return []

    def get_profiles(self):
        try:
            return [
                {
                    'name': profile.get('name', ''),
                    'rate_limit': profile.get('rate-limit', ''),
                    'local_address': profile.get('local-address', ''),
                    'remote_address': profile.get('remote-address', ''),
                }
                for profile in self.api.path('ppp', 'profile')
            ]
        except ROUTER_ERRORS as e:
            self.logger.error(f"Failed to get profiles: {e}")
            return []
