# accounts/sms_service.py
import logging
from decimal import Decimal

import africastalking
import requests
from django.conf import settings
from django.utils import timezone

from .models import SMSGateway, SMSLog

logger = logging.getLogger(__name__)


class SMSService:
    """Outbound SMS through a company's configured gateway.

    Every attempt is written to SMSLog (pending, then sent or failed).
    Provider errors are logged and reported as ``False``.
    """

    def __init__(self, tenant_context):
        self.ctx = tenant_context.require()

    def send_sms(self, gateway, phone_number, message, variables=None, log=None):
        """Send one message; ``log`` is reused when retrying an earlier attempt"""
        message = self.process_variables(message, variables)

        if log is None:
            log = self.ctx.create(
                SMSLog,
                company=gateway.company,
                gateway=gateway,
                phone_number=phone_number,
                message=message,
                status=SMSLog.STATUS_PENDING,
            )

        log.attempts += 1
        try:
            if gateway.provider == SMSGateway.PROVIDER_AFRICASTALKING:
                success, body = self.send_via_africastalking(gateway, phone_number, message)
            else:
                success, body = self.send_via_http(gateway, phone_number, message)
        except Exception as e:
            logger.error(f"Failed to send SMS to {phone_number}: {e}")
            log.status = SMSLog.STATUS_FAILED
            log.response = str(e)
            self.ctx.save(log, update_fields=['status', 'response', 'attempts'])
            return False

        log.status = SMSLog.STATUS_SENT if success else SMSLog.STATUS_FAILED
        log.response = body
        log.sent_at = timezone.now()
        self.ctx.save(log, update_fields=['status', 'response', 'attempts', 'sent_at'])

        if success:
            if gateway.has_sufficient_balance(1):
                gateway.deduct_balance(1)
                self.ctx.save(gateway, update_fields=['balance', 'updated_at'])
        else:
            logger.warning(f"SMS gateway {gateway.name} rejected message to {phone_number}")

        return success

    def send_sms_template(self, template, phone_number, variables=None):
        message = template.render(variables)
        return self.send_sms(template.gateway, phone_number, message, variables)

    def send_via_http(self, gateway, phone_number, message):
        """Generic HTTP gateway: static params plus message/to/from"""
        params = dict(gateway.params or {})
        params['message'] = message
        params['to'] = phone_number
        if gateway.default_sender_id:
            params['from'] = gateway.default_sender_id

        headers = gateway.headers or {}
        timeout = settings.SMS_HTTP_TIMEOUT
        method = (gateway.http_method or 'GET').upper()

        if method == 'GET':
            response = requests.get(gateway.gateway_url, params=params, headers=headers, timeout=timeout)
        elif method == 'POST':
            response = requests.post(gateway.gateway_url, data=params, headers=headers, timeout=timeout)
        elif method == 'JSON':
            response = requests.post(gateway.gateway_url, json=params, headers=headers, timeout=timeout)
        else:
            raise ValueError(f"Invalid HTTP method: {gateway.http_method}")

        return self.is_success_response(response, gateway), response.text

    def send_via_africastalking(self, gateway, phone_number, message):
        """Send SMS via Africa's Talking"""
        africastalking.initialize(username=gateway.api_username, api_key=gateway.api_key)
        kwargs = {}
        if gateway.default_sender_id:
            kwargs['sender_id'] = gateway.default_sender_id

        response = africastalking.SMS.send(message, [phone_number], **kwargs)
        recipients = response.get('SMSMessageData', {}).get('Recipients', [])
        success = bool(recipients) and recipients[0].get('statusCode') == 101
        return success, str(response)

    def is_success_response(self, response, gateway):
        if not response.ok:
            return False

        indicators = gateway.success_indicators or {}
        if not indicators:
            return True

        try:
            body = response.json()
        except ValueError:
            return False
        if not isinstance(body, dict):
            return False

        for key, value in indicators.items():
            if key not in body or str(body[key]) != str(value):
                return False
        return True

    def process_variables(self, message, variables):
        for key, value in (variables or {}).items():
            message = message.replace('{' + key + '}', str(value))
        return message

    def check_balance(self, gateway):
        """Refresh the gateway's balance from its balance endpoint"""
        if not gateway.balance_check_url:
            return None

        try:
            response = requests.get(
                gateway.balance_check_url,
                headers=gateway.headers or {},
                timeout=settings.SMS_HTTP_TIMEOUT,
            )
            response.raise_for_status()
            balance = response.json().get('balance')
        except (requests.RequestException, ValueError) as e:
            logger.error(f"Balance check failed for gateway {gateway.name}: {e}")
            return None

        if balance is None:
            return None

        gateway.balance = Decimal(str(balance))
        gateway.last_balance_check = timezone.now()
        self.ctx.save(gateway, update_fields=['balance', 'last_balance_check', 'updated_at'])
        return gateway.balance

    def retry_failed_sms(self, limit=10):
        """Resend failed messages in place; returns the number that went through"""
        failed = (
            self.ctx.scope(SMSLog)
            .filter(status=SMSLog.STATUS_FAILED, attempts__lt=settings.SMS_MAX_RETRIES)
            .select_related('gateway')
            .order_by('created_at')[:limit]
        )

        retried = 0
        for log in failed:
            gateway = log.gateway
            if gateway is None or not gateway.is_active():
                continue
            if self.send_sms(gateway, log.phone_number, log.message, log=log):
                retried += 1

        logger.info(f"Retried failed SMS: {retried} delivered")
        return retried
