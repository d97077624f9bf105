"""Push delivery through an FCM-v1-style HTTP endpoint.

Requests are ``POST {endpoint}`` with ``{"message": {...}}`` bodies; the
response's ``name`` is the message id. A token the service reports as
unregistered or invalid raises InvalidPushTokenError.
"""

from __future__ import annotations

import logging

import httpx

from jomla.domain.exceptions import UnavailableError
from jomla.domain.gateway.push_gateway import InvalidPushTokenError, PushGateway
from jomla.domain.model.notification import PushMessage
from jomla.infrastructure.resilience import CircuitBreaker, retry_with_backoff

logger = logging.getLogger(__name__)

DEAD_TOKEN_CODES = frozenset({"UNREGISTERED", "INVALID_ARGUMENT"})


class HttpPushGateway(PushGateway):

    def __init__(
        self,
        endpoint: str | None,
        api_key: str | None,
        client: httpx.Client,
        breaker: CircuitBreaker | None = None,
        max_attempts: int = 3,
        initial_delay: float = 0.5,
        max_delay: float = 5.0,
    ) -> None:
        self._endpoint = endpoint
        self._api_key = api_key
        self._client = client
        self._breaker = breaker or CircuitBreaker("push")
        self._max_attempts = max_attempts
        self._initial_delay = initial_delay
        self._max_delay = max_delay

    def send_to_token(self, token: str, message: PushMessage) -> str:
        return self._send({"token": token}, message, token=token)

    def send_to_topic(self, topic: str, message: PushMessage) -> str:
        return self._send({"topic": topic}, message)

    def _send(self, target: dict, message: PushMessage, token: str | None = None) -> str:
        if not self._endpoint:
            raise UnavailableError("Push endpoint not configured")

        payload = {
            "message": {
                **target,
                "notification": {"title": message.title, "body": message.body},
                "data": dict(message.data),
            }
        }
        headers = {"Authorization": f"Bearer {self._api_key}"} if self._api_key else {}

        def post() -> str:
            response = self._client.post(self._endpoint, json=payload, headers=headers)
            if token is not None and _is_dead_token(response):
                raise InvalidPushTokenError(token)
            response.raise_for_status()
            return response.json()["name"]

        try:
            return retry_with_backoff(
                lambda: self._breaker.call(post),
                max_attempts=self._max_attempts,
                initial_delay=self._initial_delay,
                max_delay=self._max_delay,
            )
        except (InvalidPushTokenError, UnavailableError):
            raise
        except (httpx.HTTPError, KeyError, ValueError) as exc:
            logger.error("Push request failed: %s", exc)
            raise UnavailableError("Push provider request failed") from exc


def _is_dead_token(response: httpx.Response) -> bool:
    if response.status_code == 404:
        return True
    if response.status_code != 400:
        return False
    try:
        error = response.json().get("error", {})
    except ValueError:
        return False
    codes = {d.get("errorCode") for d in error.get("details", []) if isinstance(d, dict)}
    return bool(codes & DEAD_TOKEN_CODES)
