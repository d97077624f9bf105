"""SMS delivery through the Twilio Messages REST API."""

from __future__ import annotations

import logging

import httpx

from jomla.domain.exceptions import UnavailableError
from jomla.domain.gateway.sms_gateway import SmsGateway
from jomla.infrastructure.resilience import CircuitBreaker, retry_with_backoff

logger = logging.getLogger(__name__)


class TwilioSmsGateway(SmsGateway):

    def __init__(
        self,
        account_sid: str | None,
        auth_token: str | None,
        from_number: str | None,
        client: httpx.Client,
        base_url: str = "https://api.twilio.com",
        breaker: CircuitBreaker | None = None,
        max_attempts: int = 3,
        initial_delay: float = 0.5,
        max_delay: float = 5.0,
    ) -> None:
        self._account_sid = account_sid
        self._auth_token = auth_token
        self._from_number = from_number
        self._client = client
        self._base_url = base_url.rstrip("/")
        self._breaker = breaker or CircuitBreaker("twilio")
        self._max_attempts = max_attempts
        self._initial_delay = initial_delay
        self._max_delay = max_delay

    def send(self, to: str, body: str) -> str:
        if not (self._account_sid and self._auth_token and self._from_number):
            raise UnavailableError("SMS provider credentials not configured")

        url = f"{self._base_url}/2010-04-01/Accounts/{self._account_sid}/Messages.json"

        def post() -> str:
            response = self._client.post(
                url,
                data={"To": to, "From": self._from_number, "Body": body},
                auth=(self._account_sid, self._auth_token),
            )
            response.raise_for_status()
            return response.json()["sid"]

        try:
            sid = retry_with_backoff(
                lambda: self._breaker.call(post),
                max_attempts=self._max_attempts,
                initial_delay=self._initial_delay,
                max_delay=self._max_delay,
            )
        except UnavailableError:
            raise
        except (httpx.HTTPError, KeyError, ValueError) as exc:
            logger.error("Twilio request failed for %s: %s", to, exc)
            raise UnavailableError("SMS provider request failed") from exc

        logger.info("SMS %s queued for %s", sid, to)
        return sid
