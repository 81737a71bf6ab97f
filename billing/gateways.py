# billing/gateways.py
"""
Mobile-money gateway adapters (bKash, Nagad).

Every call returns the gateway's JSON body as a dict. Transport errors
come back as ``{'ErrorCode': '500', 'ErrorMessage': ...}`` so callers
can log them like any other gateway answer.
"""
import logging

import requests
from django.conf import settings

logger = logging.getLogger(__name__)

SUCCESS_CODE = '200'


class MobileGatewayClient:
    name = None

    def __init__(self, base_url, api_key, timeout=None):
        self.base_url = base_url.rstrip('/')
        self.api_key = api_key
        self.timeout = timeout or settings.PAYMENT_GATEWAY_TIMEOUT

    def _get_headers(self):
        return {
            'Authorization': f'Bearer {self.api_key}',
            'Content-Type': 'application/json',
        }

    def _make_request(self, endpoint, data):
        url = f"{self.base_url}/{endpoint.lstrip('/')}"

        try:
            response = requests.post(url, headers=self._get_headers(), json=data, timeout=self.timeout)
            response.raise_for_status()
            body = response.json()
        except requests.RequestException as e:
            logger.warning(f"{self.name} request to {endpoint} failed: {e}")
            return {'ErrorCode': '500', 'ErrorMessage': str(e)}
        except ValueError:
            logger.warning(f"{self.name} returned a non-JSON body for {endpoint}")
            return {'ErrorCode': '500', 'ErrorMessage': 'Invalid response from gateway'}

        if not isinstance(body, dict):
            return {'ErrorCode': '500', 'ErrorMessage': 'Unexpected response from gateway'}
        body['ErrorCode'] = str(body.get('ErrorCode', ''))
        return body

    def check_bill(self, customer_id):
        return self._make_request('check-bill', {'customer_id': customer_id})

    def process_payment(self, customer_id, amount, mobile_no, trx_id, datetime):
        return self._make_request('payment', {
            'customer_id': customer_id,
            'amount': str(amount),
            'mobile_no': mobile_no,
            'trx_id': trx_id,
            'datetime': datetime,
        })

    def search_transaction(self, trx_id):
        return self._make_request('search', {'trx_id': trx_id})


class BkashGateway(MobileGatewayClient):
    name = 'bkash'

    def __init__(self, timeout=None):
        super().__init__(settings.BKASH_BASE_URL, settings.BKASH_API_KEY, timeout)


class NagadGateway(MobileGatewayClient):
    name = 'nagad'

    def __init__(self, timeout=None):
        super().__init__(settings.NAGAD_BASE_URL, settings.NAGAD_API_KEY, timeout)


GATEWAYS = {
    BkashGateway.name: BkashGateway,
    NagadGateway.name: NagadGateway,
}


def get_gateway(name):
    try:
        return GATEWAYS[name.lower()]()
    except KeyError:
        raise ValueError(f"Unsupported payment gateway: {name}")
