"""
SMS gateway backed by the OpenPhone messages API.

Bound to the app as an extension; credentials are read from the app config
at send time so one gateway instance serves every app.
"""

import logging

import httpx
from flask import current_app

logger = logging.getLogger(__name__)


class MessagingError(Exception):
    """The gateway is unconfigured or the provider rejected the message."""


class SmsGateway:
    """Sends text messages through OpenPhone with httpx."""

    def __init__(self, app=None, transport: httpx.BaseTransport | None = None):
        self.transport = transport
        if app is not None:
            self.init_app(app)

    def init_app(self, app):
        app.extensions['sms'] = self

    @property
    def configured(self) -> bool:
        config = current_app.config
        return bool(config.get('OPENPHONE_API_KEY') and config.get('OPENPHONE_PHONE_NUMBER_ID'))

    def send(self, to: str, content: str) -> dict:
        """
        Send one message.

        Args:
            to: Destination in E.164 (+1XXXXXXXXXX)
            content: Message body

        Returns:
            Provider response payload

        Raises:
            MessagingError: Not configured, transport failure or non-2xx reply
        """
        if not self.configured:
            raise MessagingError('OpenPhone credentials are not configured')

        config = current_app.config
        payload = {
            'to': [to],
            'from': config['OPENPHONE_PHONE_NUMBER_ID'],
            'content': content,
        }
        options = {
            'base_url': config.get('OPENPHONE_BASE_URL', 'https://api.openphone.com'),
            'timeout': config.get('MESSAGING_TIMEOUT', 10.0),
        }
        if self.transport is not None:
            options['transport'] = self.transport

        try:
            with httpx.Client(**options) as client:
                response = client.post(
                    '/v1/messages',
                    json=payload,
                    headers={'Authorization': config['OPENPHONE_API_KEY']},
                )
        except httpx.HTTPError as exc:
            raise MessagingError(f'OpenPhone request failed: {exc}') from exc

        if not response.is_success:
            raise MessagingError(f'OpenPhone returned {response.status_code}: {response.text[:200]}')

        try:
            return response.json() if response.content else {}
        except ValueError:
            logger.warning('OpenPhone returned a non-JSON body for a successful send')
            return {}
