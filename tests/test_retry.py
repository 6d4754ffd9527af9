"""
Tests for the resilient executor

Transports, sleeps and clocks are faked; no test touches the network or
actually sleeps.
"""

import logging
from unittest.mock import patch

import pytest

from las_sdk.classifier import SUCCESS, classify_status
from las_sdk.exceptions import ClientError, ErrorKind, TransportError, ValidationError
from las_sdk.http_client import HttpRequest, HttpResponse, json_request
from las_sdk.retry import (
    AttemptState,
    Fatal,
    ResilientExecutor,
    RetryAfter,
    RetryPolicy,
    Success,
    decide,
    decode_json,
)

URL = "https://api.lucidtech.ai/v1/documents"
TOO_MANY = HttpResponse(429, b'{"message": "Too Many Requests"}')
LIMIT = HttpResponse(429, b'{"message": "Limit Exceeded"}')
FORBIDDEN = HttpResponse(403, b'{"message": "Forbidden"}')
SERVER_ERROR = HttpResponse(500, b'{"message": "Internal Server Error"}')
OK = HttpResponse(200, b'{"documentId": "doc-1"}')


class FakeTransport:
    """Replays scripted outcomes and records what was sent."""

    def __init__(self, outcomes):
        self.outcomes = list(outcomes)
        self.requests = []
        self.timeouts = []

    def send(self, request, timeout):
        self.requests.append(request)
        self.timeouts.append(timeout)
        outcome = self.outcomes.pop(0)
        if isinstance(outcome, Exception):
            raise outcome
        return outcome


class CountingAuthorizer:
    def __init__(self):
        self.calls = 0

    def authorize(self, request):
        self.calls += 1
        return {'Authorization': f'signature-{self.calls}'}


class FakeClock:
    """Monotonic clock advanced by the fake sleep."""

    def __init__(self):
        self.now = 0.0
        self.sleeps = []

    def __call__(self):
        return self.now

    def sleep(self, seconds):
        self.sleeps.append(seconds)
        self.now += seconds


def build_request():
    return json_request('POST', URL, {'consentId': 'abc'})


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def authorizer():
    return CountingAuthorizer()


def make_executor(outcomes, authorizer, clock, policy=None):
    transport = FakeTransport(outcomes)
    executor = ResilientExecutor(
        transport, authorizer, policy, timeout=30.0, sleep=clock.sleep, clock=clock
    )
    return executor, transport


class TestRetryPolicy:
    """Test retry policy validation"""

    def test_defaults(self):
        policy = RetryPolicy()
        assert policy.backoff_schedule == (0.5, 1.0, 2.0, 4.0)
        assert policy.transient_retries == 1
        assert policy.max_total_backoff is None
        assert policy.max_attempts == 5

    def test_schedule_coerced_to_tuple(self):
        assert RetryPolicy(backoff_schedule=[1, 2]).backoff_schedule == (1, 2)

    @pytest.mark.parametrize("kwargs", [
        {"backoff_schedule": (0.5, -1.0)},
        {"transient_retries": -1},
        {"max_total_backoff": -0.1},
    ])
    def test_invalid_values(self, kwargs):
        with pytest.raises(ValidationError):
            RetryPolicy(**kwargs)


class TestDecide:
    """Test the retry decision for single attempts"""

    def test_success(self):
        assert isinstance(decide(classify_status(200), AttemptState(), RetryPolicy()), Success)

    def test_rate_limit_uses_schedule_position(self):
        state = AttemptState(rate_limit_retries=2)
        decision = decide(classify_status(429, "Too Many Requests"), state, RetryPolicy())
        assert isinstance(decision, RetryAfter)
        assert decision.delay == 2.0

    def test_rate_limit_schedule_exhausted(self):
        state = AttemptState(rate_limit_retries=4)
        decision = decide(classify_status(429, "Too Many Requests"), state, RetryPolicy())
        assert isinstance(decision, Fatal)
        assert decision.error.kind is ErrorKind.TOO_MANY_REQUESTS

    def test_transient_retry_is_immediate(self):
        decision = decide(classify_status(503), AttemptState(), RetryPolicy())
        assert isinstance(decision, RetryAfter)
        assert decision.delay == 0.0

    def test_transient_budget_spent(self):
        decision = decide(classify_status(503), AttemptState(transient_retries=1), RetryPolicy())
        assert isinstance(decision, Fatal)

    def test_delay_beyond_deadline_is_fatal(self):
        decision = decide(classify_status(429, "Too Many Requests"), AttemptState(), RetryPolicy(), remaining=0.4)
        assert isinstance(decision, Fatal)

    def test_record_resets_transient_budget_after_backoff(self):
        state = AttemptState(transient_retries=1)
        state.record(RetryAfter(0.5, ClientError.too_many_requests()))
        assert state.transient_retries == 0
        assert state.rate_limit_retries == 1
        assert state.total_backoff == 0.5


class TestResilientExecutor:
    """Test complete logical calls"""

    def test_success_first_attempt(self, authorizer, clock):
        executor, transport = make_executor([OK], authorizer, clock)

        assert executor.execute(build_request) == {"documentId": "doc-1"}
        assert len(transport.requests) == 1
        assert clock.sleeps == []

    def test_rate_limited_then_success(self, authorizer, clock):
        executor, transport = make_executor([TOO_MANY, TOO_MANY, TOO_MANY, OK], authorizer, clock)

        assert executor.execute(build_request) == {"documentId": "doc-1"}
        assert clock.sleeps == [0.5, 1.0, 2.0]
        assert len(transport.requests) == 4

    def test_rate_limit_exhausted(self, authorizer, clock):
        executor, transport = make_executor([TOO_MANY] * 5, authorizer, clock)

        with pytest.raises(ClientError) as exc_info:
            executor.execute(build_request)

        assert exc_info.value.kind is ErrorKind.TOO_MANY_REQUESTS
        assert exc_info.value.status_code == 429
        assert clock.sleeps == [0.5, 1.0, 2.0, 4.0]
        assert len(transport.requests) == 5

    def test_forbidden_is_not_retried(self, authorizer, clock):
        executor, transport = make_executor([FORBIDDEN], authorizer, clock)

        with pytest.raises(ClientError) as exc_info:
            executor.execute(build_request)

        assert exc_info.value.kind is ErrorKind.INVALID_CREDENTIALS
        assert len(transport.requests) == 1
        assert clock.sleeps == []

    def test_limit_exceeded_is_not_retried(self, authorizer, clock):
        executor, transport = make_executor([LIMIT], authorizer, clock)

        with pytest.raises(ClientError) as exc_info:
            executor.execute(build_request)

        assert exc_info.value.kind is ErrorKind.LIMIT_EXCEEDED
        assert len(transport.requests) == 1

    def test_client_error_is_not_retried(self, authorizer, clock):
        executor, transport = make_executor([HttpResponse(404, b"missing")], authorizer, clock)

        with pytest.raises(ClientError) as exc_info:
            executor.execute(build_request)

        assert exc_info.value.kind is ErrorKind.REQUEST_FAILED
        assert exc_info.value.body == "missing"
        assert len(transport.requests) == 1

    def test_server_error_retried_once(self, authorizer, clock):
        executor, transport = make_executor([SERVER_ERROR, OK], authorizer, clock)

        assert executor.execute(build_request) == {"documentId": "doc-1"}
        assert len(transport.requests) == 2
        assert clock.sleeps == []

    def test_server_error_twice_surfaces(self, authorizer, clock):
        executor, transport = make_executor([SERVER_ERROR, SERVER_ERROR, OK], authorizer, clock)

        with pytest.raises(ClientError) as exc_info:
            executor.execute(build_request)

        assert exc_info.value.kind is ErrorKind.REQUEST_FAILED
        assert exc_info.value.status_code == 500
        assert len(transport.requests) == 2

    def test_transient_budget_resets_after_backoff(self, authorizer, clock):
        executor, transport = make_executor([SERVER_ERROR, TOO_MANY, SERVER_ERROR, OK], authorizer, clock)

        assert executor.execute(build_request) == {"documentId": "doc-1"}
        assert len(transport.requests) == 4
        assert clock.sleeps == [0.5]

    def test_transport_error_retried_once(self, authorizer, clock):
        cause = ConnectionError("refused")
        executor, transport = make_executor(
            [TransportError("Connection error", cause), OK], authorizer, clock
        )

        assert executor.execute(build_request) == {"documentId": "doc-1"}
        assert len(transport.requests) == 2

    def test_transport_error_surfaces_with_cause(self, authorizer, clock):
        cause = ConnectionError("refused")
        executor, _ = make_executor(
            [TransportError("Connection error", cause), TransportError("Connection error", cause)],
            authorizer,
            clock
        )

        with pytest.raises(ClientError) as exc_info:
            executor.execute(build_request)

        assert exc_info.value.kind is ErrorKind.REQUEST_FAILED
        assert exc_info.value.status_code is None
        assert exc_info.value.cause is cause
        assert exc_info.value.__cause__ is cause

    def test_success_without_response_is_request_failure(self, authorizer, clock):
        failure = TransportError("Connection error", ConnectionError("reset"))
        executor, _ = make_executor([failure], authorizer, clock)

        with patch("las_sdk.retry.classify", return_value=SUCCESS):
            with pytest.raises(ClientError) as exc_info:
                executor.execute(build_request)

        assert exc_info.value.kind is ErrorKind.REQUEST_FAILED
        assert exc_info.value.cause is failure

    def test_every_attempt_is_reauthorized(self, authorizer, clock):
        executor, transport = make_executor([TOO_MANY, SERVER_ERROR, OK], authorizer, clock)

        executor.execute(build_request)

        assert authorizer.calls == 3
        assert [r.headers['Authorization'] for r in transport.requests] == [
            'signature-1', 'signature-2', 'signature-3'
        ]
        assert all(r.headers['Content-Type'] == 'application/json' for r in transport.requests)

    def test_unauthorized_call(self, authorizer, clock):
        executor, transport = make_executor([OK], authorizer, clock)

        executor.execute(lambda: HttpRequest('PUT', URL + '?sig=abc', {}, b'data'), authorize=False)

        assert authorizer.calls == 0
        assert 'Authorization' not in transport.requests[0].headers

    def test_authorization_failure_is_not_sent(self, clock):
        class RejectingAuthorizer:
            def authorize(self, request):
                raise ClientError.signing_unsupported("Creating canonical query string is not implemented")

        executor, transport = make_executor([OK], RejectingAuthorizer(), clock)

        with pytest.raises(ClientError) as exc_info:
            executor.execute(build_request)

        assert exc_info.value.kind is ErrorKind.SIGNING_UNSUPPORTED
        assert transport.requests == []

    def test_max_total_backoff(self, authorizer, clock):
        policy = RetryPolicy(max_total_backoff=1.0)
        executor, transport = make_executor([TOO_MANY, TOO_MANY, TOO_MANY], authorizer, clock, policy)

        with pytest.raises(ClientError) as exc_info:
            executor.execute(build_request)

        assert exc_info.value.kind is ErrorKind.TOO_MANY_REQUESTS
        assert clock.sleeps == [0.5]
        assert len(transport.requests) == 2

    def test_deadline_stops_backoff(self, authorizer, clock):
        executor, transport = make_executor([TOO_MANY, TOO_MANY, OK], authorizer, clock)

        with pytest.raises(ClientError) as exc_info:
            executor.execute(build_request, deadline=0.75)

        assert exc_info.value.kind is ErrorKind.TOO_MANY_REQUESTS
        assert clock.sleeps == [0.5]
        assert len(transport.requests) == 2

    def test_deadline_caps_transport_timeout(self, authorizer, clock):
        executor, transport = make_executor([TOO_MANY, OK], authorizer, clock)

        executor.execute(build_request, deadline=10.0)

        assert transport.timeouts == [10.0, 9.5]

    def test_default_timeout_without_deadline(self, authorizer, clock):
        executor, transport = make_executor([OK], authorizer, clock)
        executor.execute(build_request)
        assert transport.timeouts == [30.0]

    def test_retry_is_logged(self, authorizer, clock, caplog):
        executor, _ = make_executor([TOO_MANY, OK], authorizer, clock)

        with caplog.at_level(logging.WARNING, logger="las_sdk.retry"):
            executor.execute(build_request)

        assert "TOO_MANY_REQUESTS on attempt 1" in caplog.text
        assert "retrying in 0.5s" in caplog.text

    def test_custom_decoder(self, authorizer, clock):
        executor, _ = make_executor([OK], authorizer, clock)
        assert executor.execute(build_request, decode=lambda r: r.status_code) == 200


class TestDecodeJson:
    """Test response decoding"""

    def test_valid_json(self):
        assert decode_json(HttpResponse(200, b'[1, 2]')) == [1, 2]

    def test_empty_body(self):
        assert decode_json(HttpResponse(200, b'')) is None

    def test_invalid_json(self, caplog):
        with caplog.at_level(logging.ERROR, logger="las_sdk.retry"):
            with pytest.raises(ClientError) as exc_info:
                decode_json(HttpResponse(200, b'<html>'))

        assert exc_info.value.kind is ErrorKind.DECODE_FAILED
        assert exc_info.value.status_code == 200
        assert exc_info.value.body == '<html>'
        assert isinstance(exc_info.value.cause, ValueError)
        assert "Error in response" in caplog.text

    def test_decode_failure_is_not_retried(self, authorizer, clock):
        executor, transport = make_executor([HttpResponse(200, b'not json'), OK], authorizer, clock)

        with pytest.raises(ClientError) as exc_info:
            executor.execute(build_request)

        assert exc_info.value.kind is ErrorKind.DECODE_FAILED
        assert len(transport.requests) == 1
