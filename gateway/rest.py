# © 2024–2025 Harnisch LLC. All Rights Reserved.
# Licensed exclusively for use by St. Edward Church & School (Nashville, TN).
# Unauthorized use, distribution, or modification is prohibited.

"""
REST Reminder Gateway - Pushes reminders to a notification service over HTTP
"""
import logging
import urllib.parse
from typing import Dict, Iterable, Optional, Set

import requests

import config
from cal_ops.triggers import Trigger
from gateway.base import PermissionDeniedError, ReminderGateway, TransportError
from utils.circuit_breaker import CircuitBreaker, CircuitBreakerOpenError
from utils.retry import retry_with_backoff

logger = logging.getLogger(__name__)

RETRYABLE_STATUS_CODES = {429, 500, 502, 503, 504}


class RestReminderGateway(ReminderGateway):
    """
    Reminder gateway backed by a JSON/HTTP notification service

    Endpoints (relative to base_url):
        POST   /authorization           -> {"granted": bool}
        GET    /reminders?prefix=...    -> {"identifiers": [...]}
        DELETE /reminders/<identifier>
        PUT    /reminders/<identifier>  <- {"title", "body", "trigger"}
    """

    def __init__(self, base_url: Optional[str] = None, token: Optional[str] = None,
                 timeout: Optional[int] = None, session: Optional[requests.Session] = None,
                 circuit_breaker: Optional[CircuitBreaker] = None):
        self.base_url = (base_url or config.REMINDER_GATEWAY_URL).rstrip('/')
        if not self.base_url:
            raise ValueError("A base URL is required for the REST reminder gateway")

        self.token = token if token is not None else config.REMINDER_GATEWAY_TOKEN
        self.timeout = timeout or config.REQUEST_TIMEOUT
        self.session = session or requests.Session()
        self.circuit_breaker = circuit_breaker or CircuitBreaker(
            failure_threshold=config.CIRCUIT_BREAKER_FAIL_MAX,
            recovery_timeout=config.CIRCUIT_BREAKER_RESET_TIMEOUT,
            expected_exception=TransportError,
            name="reminder-gateway"
        )

    def _headers(self) -> Dict[str, str]:
        headers = {'Accept': 'application/json'}
        if self.token:
            headers['Authorization'] = f"Bearer {self.token}"
        return headers

    def _reminder_path(self, identifier: str) -> str:
        return f"/reminders/{urllib.parse.quote(identifier, safe='')}"

    @retry_with_backoff(max_retries=config.MAX_RETRIES, base_delay=config.BASE_DELAY,
                        retry_on=(TransportError,))
    def _send(self, method: str, path: str, **kwargs) -> requests.Response:
        """Single HTTP exchange; network failures and 5xx/429 raise TransportError"""
        url = f"{self.base_url}{path}"

        try:
            response = self.session.request(method, url, headers=self._headers(),
                                            timeout=self.timeout, **kwargs)
        except requests.exceptions.Timeout as e:
            logger.error(f"Request timeout: {method} {path}")
            raise TransportError(f"Timeout calling {method} {path}") from e
        except requests.exceptions.RequestException as e:
            logger.error(f"Connection error: {method} {path}: {e}")
            raise TransportError(f"Could not reach reminder gateway: {e}") from e

        if response.status_code in RETRYABLE_STATUS_CODES:
            raise TransportError(f"{method} {path} failed with {response.status_code}")
        return response

    def _request(self, method: str, path: str, ok_statuses=(200,), **kwargs) -> requests.Response:
        try:
            response = self.circuit_breaker.call(self._send, method, path, **kwargs)
        except CircuitBreakerOpenError as e:
            raise TransportError(str(e)) from e

        if response.status_code in (401, 403):
            logger.warning(f"Reminder gateway refused {method} {path}: {response.status_code}")
            raise PermissionDeniedError(f"Reminder delivery not authorized ({response.status_code})")
        if response.status_code not in ok_statuses:
            logger.error(f"❌ Reminder gateway {method} {path} returned {response.status_code}")
            logger.error(f"Response: {response.text}")
            raise TransportError(f"{method} {path} returned {response.status_code}")
        return response

    def request_authorization(self) -> bool:
        try:
            response = self._request('POST', '/authorization')
        except PermissionDeniedError:
            return False

        try:
            granted = bool(response.json().get('granted', False))
        except (ValueError, AttributeError) as e:
            raise TransportError("Malformed authorization response") from e

        logger.info(f"🔔 Reminder authorization {'granted' if granted else 'declined'}")
        return granted

    def list_known_identifiers(self, namespace_prefix: str) -> Set[str]:
        response = self._request('GET', '/reminders', params={'prefix': namespace_prefix})
        try:
            identifiers = response.json().get('identifiers', [])
        except (ValueError, AttributeError) as e:
            raise TransportError("Malformed reminder listing") from e

        if not isinstance(identifiers, list) or not all(isinstance(i, str) for i in identifiers):
            raise TransportError(f"Malformed reminder listing: {identifiers!r}")

        return {identifier for identifier in identifiers if identifier.startswith(namespace_prefix)}

    def remove(self, identifiers: Iterable[str]) -> None:
        for identifier in sorted(set(identifiers)):
            # 404 means it is already gone
            self._request('DELETE', self._reminder_path(identifier), ok_statuses=(200, 202, 204, 404))
            logger.debug(f"Removed reminder {identifier}")

    def add(self, identifier: str, title: str, body: str, trigger: Trigger) -> None:
        payload = {
            'title': title,
            'body': body,
            'trigger': trigger.to_dict(),
        }
        self._request('PUT', self._reminder_path(identifier), ok_statuses=(200, 201, 204), json=payload)
        logger.info(f"✅ Scheduled reminder: {title}")
