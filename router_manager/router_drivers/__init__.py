# router_manager/router_drivers/__init__.py
import importlib
import logging

logger = logging.getLogger(__name__)


class RouterDriverBase:
    """Base class for all router drivers"""

    def __init__(self, router_config):
        self.config = router_config
        self.logger = logging.getLogger(f'{__name__}.{self.__class__.__name__}')

    def connect(self):
        """Establish connection to router"""
        raise NotImplementedError

    def disconnect(self):
        """Close connection to router"""
        raise NotImplementedError

    def add_ppp_secret(self, username, password, profile, service='pppoe'):
        raise NotImplementedError

    def set_ppp_secret(self, username, **values):
        raise NotImplementedError

    def remove_ppp_secret(self, username):
        raise NotImplementedError

    def get_active_sessions(self):
        raise NotImplementedError

    def get_profiles(self):
        raise NotImplementedError


class RouterDriverFactory:
    """Factory to create appropriate router driver"""

    driver_classes = {
        'mikrotik': 'router_manager.router_drivers.mikrotik.MikroTikDriver',
    }

    @classmethod
    def get_driver(cls, router_config):
        """Get driver instance for router type"""
        router_type = router_config.router_type.lower()

        if router_type not in cls.driver_classes:
            raise ValueError(f"No driver available for router type: {router_type}")

        module_path, class_name = cls.driver_classes[router_type].rsplit('.', 1)

        try:
            module = importlib.import_module(module_path)
            driver_class = getattr(module, class_name)
            return driver_class(router_config)
        except (ImportError, AttributeError) as e:
            logger.error(f"Failed to load driver {router_type}: {e}")
            raise
