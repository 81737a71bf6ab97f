from decimal import Decimal
from io import StringIO
from unittest import mock

from django.core.management import call_command
from django.test import override_settings
from librouteros.exceptions import TrapError

from billing.models import Package
from billing.services import CustomerService
from router_manager.encryption import DataEncryption
from router_manager.models import MikrotikProfile, MikrotikRouter
from router_manager.router_drivers import RouterDriverFactory
from router_manager.router_drivers.mikrotik import MikroTikDriver
from router_manager.services import RouterOSService

from .base import TenantTestCase


class EncryptionTests(TenantTestCase):

    def test_router_password_is_stored_encrypted(self):
        self.router.set_password('s3cret')
        self.router.save()

        stored = MikrotikRouter.objects.get(pk=self.router.pk)
        self.assertNotIn('s3cret', stored.encrypted_password)
        self.assertEqual(stored.password, 's3cret')

    def test_empty_and_garbage_values_decrypt_to_empty(self):
        self.assertEqual(DataEncryption.encrypt(''), '')
        self.assertEqual(DataEncryption.decrypt(''), '')
        self.assertEqual(DataEncryption.decrypt('not-a-token'), '')

    def test_token_from_another_key_is_rejected(self):
        with override_settings(ENCRYPTION_KEY='', SECRET_KEY='first-secret'):
            token = DataEncryption.encrypt('s3cret')
        with override_settings(ENCRYPTION_KEY='', SECRET_KEY='second-secret'):
            self.assertEqual(DataEncryption.decrypt(token), '')


class RouterOSServiceTests(TenantTestCase):

    def setUp(self):
        super().setUp()
        self.driver = mock.Mock()
        self.driver.connect.return_value = True
        self.service = RouterOSService(self.router, driver=self.driver)

    def test_each_operation_connects_and_disconnects(self):
        self.driver.add_ppp_secret.return_value = True

        self.assertTrue(self.service.create_pppoe_user('user1', 'pw123456', 'default'))

        self.driver.add_ppp_secret.assert_called_once_with('user1', 'pw123456', 'default')
        self.driver.disconnect.assert_called_once_with()

    def test_disable_enable_and_password_change_update_secret(self):
        self.driver.set_ppp_secret.return_value = True

        self.service.disable_pppoe_user('user1')
        self.service.enable_pppoe_user('user1')
        self.service.change_pppoe_password('user1', 'newpass1')

        self.assertEqual(self.driver.set_ppp_secret.call_args_list, [
            mock.call('user1', disabled=True),
            mock.call('user1', disabled=False),
            mock.call('user1', password='newpass1'),
        ])

    def test_unreachable_router_returns_defaults(self):
        self.driver.connect.return_value = False

        self.assertFalse(self.service.delete_pppoe_user('user1'))
        self.assertEqual(self.service.get_active_sessions(), [])
        self.driver.remove_ppp_secret.assert_not_called()

    def test_connection_test_updates_status(self):
        self.assertTrue(self.service.test_connection())
        self.router.refresh_from_db()
        self.assertEqual(self.router.status, 'online')
        self.assertIsNotNone(self.router.last_connected_at)

        self.driver.connect.return_value = False
        self.assertFalse(self.service.test_connection())
        self.router.refresh_from_db()
        self.assertEqual(self.router.status, 'offline')

    def test_unknown_router_type_has_no_driver(self):
        self.router.router_type = 'cisco'

        with self.assertRaises(ValueError):
            RouterDriverFactory.get_driver(self.router)
        self.assertFalse(RouterOSService(self.router).create_pppoe_user('u', 'p', 'default'))

    def test_sync_profiles_upserts(self):
        MikrotikProfile.objects.create(company=self.company, router=self.router, name='10M', rate_limit='5M/5M')
        self.driver.get_profiles.return_value = [
            {'name': '10M', 'rate_limit': '10M/10M', 'local_address': '', 'remote_address': 'pool1'},
            {'name': '20M', 'rate_limit': '20M/20M', 'local_address': '', 'remote_address': 'pool1'},
            {'name': '', 'rate_limit': ''},
        ]

        self.assertEqual(self.service.sync_profiles(self.ctx), 2)

        self.assertEqual(MikrotikProfile.objects.filter(router=self.router).count(), 2)
        updated = MikrotikProfile.objects.get(router=self.router, name='10M')
        self.assertEqual(updated.rate_limit, '10M/10M')
        self.assertIsNotNone(updated.synced_at)


class MikroTikDriverTests(TenantTestCase):

    def setUp(self):
        super().setUp()
        self.api = mock.MagicMock()
        self.secrets = mock.MagicMock()
        self.secrets.__iter__.return_value = [
            {'.id': '*1', 'name': 'user1'},
            {'.id': '*2', 'name': 'user2'},
        ]
        self.api.path.return_value = self.secrets

        patcher = mock.patch('router_manager.router_drivers.mikrotik.connect', return_value=self.api)
        self.mock_connect = patcher.start()
        self.addCleanup(patcher.stop)

        self.router.set_password('routerpw')
        self.driver = MikroTikDriver(self.router)
        self.assertTrue(self.driver.connect())

    def test_connect_uses_decrypted_credentials(self):
        kwargs = self.mock_connect.call_args.kwargs
        self.assertEqual(kwargs['username'], 'api')
        self.assertEqual(kwargs['password'], 'routerpw')
        self.assertEqual(kwargs['host'], '10.0.0.1')
        self.assertEqual(kwargs['port'], 8728)

    def test_connect_failure_returns_false(self):
        self.mock_connect.side_effect = OSError('connection refused')

        self.assertFalse(MikroTikDriver(self.router).connect())

    def test_add_secret(self):
        self.assertTrue(self.driver.add_ppp_secret('user3', 'pw', 'default'))

        self.api.path.assert_called_with('ppp', 'secret')
        self.secrets.add.assert_called_once_with(
            name='user3', password='pw', service='pppoe', profile='default', disabled=False
        )

    def test_set_secret_by_name(self):
        self.assertTrue(self.driver.set_ppp_secret('user2', disabled=True))

        self.secrets.update.assert_called_once_with(**{'.id': '*2', 'disabled': True})

    def test_missing_secret_is_reported(self):
        self.assertFalse(self.driver.set_ppp_secret('ghost', disabled=True))
        self.assertFalse(self.driver.remove_ppp_secret('ghost'))
        self.secrets.remove.assert_not_called()

    def test_router_trap_is_reported(self):
        self.secrets.remove.side_effect = TrapError('no such item')

        self.assertFalse(self.driver.remove_ppp_secret('user1'))

    def test_active_sessions_are_mapped(self):
        self.secrets.__iter__.return_value = [
            {'name': 'user1', 'address': '10.10.0.2', 'caller-id': 'AA:BB', 'uptime': '1h', 'service': 'pppoe'},
        ]

        sessions = self.driver.get_active_sessions()

        self.assertEqual(sessions[0]['caller_id'], 'AA:BB')
        self.assertEqual(sessions[0]['address'], '10.10.0.2')

    def test_disconnect_closes_api(self):
        self.driver.disconnect()

        self.api.close.assert_called_once_with()
        self.assertIsNone(self.driver.api)


class CustomerProvisioningTests(TenantTestCase):

    def test_new_customer_with_profile_is_provisioned(self):
        profile = MikrotikProfile.objects.create(company=self.company, router=self.router, name='20M')
        package = Package.objects.create(
            company=self.company, name='20 Mbps', price=Decimal('200'), mikrotik_profile=profile
        )
        factory = mock.Mock()
        service = CustomerService(self.ctx, router_service_factory=factory)

        customer = service.create_customer({
            'name': 'New Subscriber',
            'phone': '01711222333',
            'username': 'newsub',
            'password': 'pppoe-pass',
            'package': package.pk,
            'pop': self.pop.pk,
            'router': self.router.pk,
        })

        factory.assert_called_once_with(self.router)
        factory.return_value.create_pppoe_user.assert_called_once_with('newsub', 'pppoe-pass', '20M')
        self.assertNotEqual(customer.password, 'pppoe-pass')

    def test_suspend_and_enable_drive_the_router(self):
        factory = mock.Mock()
        service = CustomerService(self.ctx, router_service_factory=factory)
        customer = self.make_customer(router=self.router)

        service.suspend_customer(customer)
        service.enable_customer(customer)

        factory.return_value.disable_pppoe_user.assert_called_once_with(customer.username)
        factory.return_value.enable_pppoe_user.assert_called_once_with(customer.username)
        customer.refresh_from_db()
        self.assertEqual(customer.status, 'active')


class SyncProfilesCommandTests(TenantTestCase):

    @mock.patch('router_manager.management.commands.sync_mikrotik_profiles.RouterOSService')
    def test_syncs_each_router_of_the_company(self, mock_service):
        mock_service.return_value.sync_profiles.return_value = 3
        out = StringIO()

        call_command('sync_mikrotik_profiles', company=self.company.pk, stdout=out)

        mock_service.assert_called_once_with(self.router)
        self.assertIn('core-1: 3 profiles', out.getvalue())
