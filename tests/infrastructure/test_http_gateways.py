"""Tests for the Twilio SMS and HTTP push gateways against a mock transport."""

import json

import httpx
import pytest

from jomla.domain.exceptions import UnavailableError
from jomla.domain.gateway.push_gateway import InvalidPushTokenError
from jomla.domain.model.notification import PushMessage
from jomla.infrastructure.gateways.http_push import HttpPushGateway
from jomla.infrastructure.gateways.twilio_sms import TwilioSmsGateway


def _client(handler):
    return httpx.Client(transport=httpx.MockTransport(handler))


class _Recorder:

    def __init__(self, *responses):
        self.responses = list(responses)
        self.requests: list[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        return self.responses.pop(0)


# --- Twilio ---------------------------------------------------------------------


def _twilio(recorder, **kwargs):
    return TwilioSmsGateway(
        "AC123",
        "secret",
        "+15005550006",
        _client(recorder),
        initial_delay=0,
        **kwargs,
    )


class TestTwilioSmsGateway:

    def test_posts_message_form(self):
        recorder = _Recorder(httpx.Response(201, json={"sid": "SM1"}))
        sid = _twilio(recorder).send("+12025550100", "Your verification code is: 123456.")

        assert sid == "SM1"
        [request] = recorder.requests
        assert request.url.path == "/2010-04-01/Accounts/AC123/Messages.json"
        form = dict(httpx.QueryParams(request.content.decode()))
        assert form == {
            "To": "+12025550100",
            "From": "+15005550006",
            "Body": "Your verification code is: 123456.",
        }
        assert request.headers["authorization"].startswith("Basic ")

    def test_retries_server_errors(self):
        recorder = _Recorder(httpx.Response(503), httpx.Response(201, json={"sid": "SM2"}))
        assert _twilio(recorder).send("+12025550100", "hi") == "SM2"
        assert len(recorder.requests) == 2

    def test_client_error_becomes_unavailable(self):
        recorder = _Recorder(httpx.Response(400, json={"message": "bad number"}))
        with pytest.raises(UnavailableError, match="SMS provider request failed"):
            _twilio(recorder).send("+12025550100", "hi")
        assert len(recorder.requests) == 1

    def test_missing_credentials(self):
        gateway = TwilioSmsGateway(None, None, None, _client(_Recorder()))
        with pytest.raises(UnavailableError, match="credentials not configured"):
            gateway.send("+12025550100", "hi")


# --- Push -----------------------------------------------------------------------


MESSAGE = PushMessage(title="Order ORD-20250314-0001", body="Your order is on the way!", data={"status": "out_for_delivery"})


def _push(recorder, endpoint="https://push.test/v1/messages:send"):
    return HttpPushGateway(endpoint, "key-1", _client(recorder), initial_delay=0)


class TestHttpPushGateway:

    def test_token_payload(self):
        recorder = _Recorder(httpx.Response(200, json={"name": "projects/p/messages/1"}))
        assert _push(recorder).send_to_token("device-token", MESSAGE) == "projects/p/messages/1"

        [request] = recorder.requests
        body = json.loads(request.content)
        assert body == {
            "message": {
                "token": "device-token",
                "notification": {"title": MESSAGE.title, "body": MESSAGE.body},
                "data": {"status": "out_for_delivery"},
            }
        }
        assert request.headers["authorization"] == "Bearer key-1"

    def test_topic_payload(self):
        recorder = _Recorder(httpx.Response(200, json={"name": "m2"}))
        _push(recorder).send_to_topic("all-users", MESSAGE)
        assert json.loads(recorder.requests[0].content)["message"]["topic"] == "all-users"

    def test_unregistered_token(self):
        error = {"error": {"details": [{"errorCode": "UNREGISTERED"}]}}
        recorder = _Recorder(httpx.Response(400, json=error))
        with pytest.raises(InvalidPushTokenError) as info:
            _push(recorder).send_to_token("dead-token", MESSAGE)
        assert info.value.token == "dead-token"

    def test_not_found_token(self):
        recorder = _Recorder(httpx.Response(404))
        with pytest.raises(InvalidPushTokenError):
            _push(recorder).send_to_token("gone-token", MESSAGE)

    def test_other_errors_are_unavailable(self):
        recorder = _Recorder(httpx.Response(500), httpx.Response(500), httpx.Response(500))
        with pytest.raises(UnavailableError, match="Push provider request failed"):
            _push(recorder).send_to_topic("all-users", MESSAGE)
        assert len(recorder.requests) == 3

    def test_missing_endpoint(self):
        with pytest.raises(UnavailableError, match="not configured"):
            _push(_Recorder(), endpoint=None).send_to_topic("all-users", MESSAGE)
