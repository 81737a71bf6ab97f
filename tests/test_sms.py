from decimal import Decimal
from unittest import mock

import requests
from django.test import override_settings

from accounts.models import SMSGateway, SMSLog, SMSTemplate
from accounts.sms_service import SMSService

from .base import TenantTestCase


def http_response(ok=True, body=None, text='OK'):
    response = mock.Mock(ok=ok, text=text)
    response.json.return_value = body if body is not None else {}
    return response


@override_settings(SMS_MAX_RETRIES=3)
class SMSServiceTests(TenantTestCase):

    def setUp(self):
        super().setUp()
        self.service = SMSService(self.ctx)
        self.gateway = SMSGateway.objects.create(
            company=self.company,
            name='Local SMS',
            gateway_url='https://sms.example.net/send',
            http_method='GET',
            params={'api_key': 'k1'},
            success_indicators={'status': 'success'},
            default_sender_id='ALPHA',
            balance=Decimal('10.00'),
        )

    @mock.patch('accounts.sms_service.requests.get')
    def test_http_send_logs_and_deducts_balance(self, mock_get):
        mock_get.return_value = http_response(body={'status': 'success'})

        sent = self.service.send_sms(self.gateway, '01711000000', 'Hello {name}', {'name': 'Rahim'})

        self.assertTrue(sent)
        params = mock_get.call_args.kwargs['params']
        self.assertEqual(params['message'], 'Hello Rahim')
        self.assertEqual(params['to'], '01711000000')
        self.assertEqual(params['from'], 'ALPHA')
        self.assertEqual(params['api_key'], 'k1')

        log = SMSLog.objects.get()
        self.assertEqual(log.status, SMSLog.STATUS_SENT)
        self.assertEqual(log.attempts, 1)
        self.assertIsNotNone(log.sent_at)
        self.gateway.refresh_from_db()
        self.assertEqual(self.gateway.balance, Decimal('9.00'))

    @mock.patch('accounts.sms_service.requests.post')
    def test_json_method_posts_json_body(self, mock_post):
        self.gateway.http_method = 'JSON'
        self.gateway.save()
        mock_post.return_value = http_response(body={'status': 'success'})

        self.assertTrue(self.service.send_sms(self.gateway, '01711000000', 'Hi'))
        self.assertEqual(mock_post.call_args.kwargs['json']['message'], 'Hi')

    @mock.patch('accounts.sms_service.requests.get')
    def test_unmatched_success_indicator_marks_failed(self, mock_get):
        mock_get.return_value = http_response(body={'status': 'queued'})

        self.assertFalse(self.service.send_sms(self.gateway, '01711000000', 'Hi'))

        self.assertEqual(SMSLog.objects.get().status, SMSLog.STATUS_FAILED)
        self.gateway.refresh_from_db()
        self.assertEqual(self.gateway.balance, Decimal('10.00'))

    @mock.patch('accounts.sms_service.requests.get')
    def test_transport_error_is_logged_not_raised(self, mock_get):
        mock_get.side_effect = requests.Timeout('timed out')

        self.assertFalse(self.service.send_sms(self.gateway, '01711000000', 'Hi'))

        log = SMSLog.objects.get()
        self.assertEqual(log.status, SMSLog.STATUS_FAILED)
        self.assertIn('timed out', log.response)

    @mock.patch('accounts.sms_service.africastalking')
    def test_africastalking_provider(self, mock_at):
        gateway = SMSGateway.objects.create(
            company=self.company, name='AT', provider=SMSGateway.PROVIDER_AFRICASTALKING,
            api_username='sandbox', api_key='at-key',
        )
        mock_at.SMS.send.return_value = {'SMSMessageData': {'Recipients': [{'statusCode': 101}]}}

        self.assertTrue(self.service.send_sms(gateway, '+254700000000', 'Jambo'))

        mock_at.initialize.assert_called_once_with(username='sandbox', api_key='at-key')
        mock_at.SMS.send.assert_called_once_with('Jambo', ['+254700000000'])

    @mock.patch('accounts.sms_service.requests.get')
    def test_template_send(self, mock_get):
        mock_get.return_value = http_response(body={'status': 'success'})
        template = SMSTemplate.objects.create(
            company=self.company, gateway=self.gateway, name='Warn', category='expiry_warning',
            content='Dear {name}, your {package} expires on {expiry_date}.',
        )

        self.service.send_sms_template(
            template, '01711000000', {'name': 'Karim', 'package': '10 Mbps', 'expiry_date': '2025-03-17'}
        )

        self.assertEqual(SMSLog.objects.get().message, 'Dear Karim, your 10 Mbps expires on 2025-03-17.')

    @mock.patch('accounts.sms_service.requests.get')
    def test_retry_reuses_log_and_respects_attempt_limit(self, mock_get):
        mock_get.side_effect = requests.ConnectionError('down')
        self.service.send_sms(self.gateway, '01711000000', 'Hi')

        mock_get.side_effect = None
        mock_get.return_value = http_response(body={'status': 'success'})
        exhausted = SMSLog.objects.create(
            company=self.company, gateway=self.gateway, phone_number='01711000001',
            message='Old', status=SMSLog.STATUS_FAILED, attempts=3,
        )

        self.assertEqual(self.service.retry_failed_sms(), 1)

        log = SMSLog.objects.exclude(pk=exhausted.pk).get()
        self.assertEqual(log.status, SMSLog.STATUS_SENT)
        self.assertEqual(log.attempts, 2)
        exhausted.refresh_from_db()
        self.assertEqual(exhausted.status, SMSLog.STATUS_FAILED)

    def test_retry_skips_disabled_gateways(self):
        SMSLog.objects.create(
            company=self.company, gateway=self.gateway, phone_number='01711000001',
            message='Hi', status=SMSLog.STATUS_FAILED, attempts=1,
        )
        self.gateway.is_enabled = False
        self.gateway.save()

        self.assertEqual(self.service.retry_failed_sms(), 0)

    @mock.patch('accounts.sms_service.requests.get')
    def test_check_balance(self, mock_get):
        self.gateway.balance_check_url = 'https://sms.example.net/balance'
        self.gateway.save()
        mock_get.return_value = http_response(body={'balance': '250.5'})

        self.assertEqual(self.service.check_balance(self.gateway), Decimal('250.5'))

        self.gateway.refresh_from_db()
        self.assertEqual(self.gateway.balance, Decimal('250.50'))
        self.assertIsNotNone(self.gateway.last_balance_check)

    def test_check_balance_without_url(self):
        self.assertIsNone(self.service.check_balance(self.gateway))
