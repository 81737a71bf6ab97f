# router_manager/apps.py
from django.apps import AppConfig


class RouterManagerConfig(AppConfig):
    default_auto_field = 'django.db.models.BigAutoField'
    name = 'router_manager'
    verbose_name = 'Router Manager'
