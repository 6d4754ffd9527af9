"""
Resilient request execution

One logical call is a loop of attempts. Every attempt builds the request,
authorizes it (fresh signature or token each time), sends it and
classifies the outcome. Two retry behaviors compose around the attempt:

* rate-limit backoff: "Too Many Requests" responses are retried after the
  delays of the backoff schedule (0.5s, 1s, 2s, 4s by default);
* transient retry: 5xx responses and transport failures are retried
  immediately, once by default. The budget starts over after every
  rate-limit backoff.

Everything else is fatal and surfaces on the first attempt.
"""

import logging
import time
from dataclasses import dataclass
from typing import Any, Callable, Optional, Tuple, Union

from .auth import Authorizer
from .classifier import Classification, classify
from .exceptions import ClientError, ErrorKind, TransportError, ValidationError
from .http_client import HttpRequest, HttpResponse, Transport

logger = logging.getLogger(__name__)

DEFAULT_BACKOFF_SCHEDULE: Tuple[float, ...] = (0.5, 1.0, 2.0, 4.0)
DEFAULT_TRANSIENT_RETRIES = 1


@dataclass(frozen=True)
class RetryPolicy:
    """
    Retry bounds for one logical call

    Attributes:
        backoff_schedule: Delays before each rate-limit retry, in seconds
        transient_retries: Immediate retries for 5xx and transport failures
        max_total_backoff: Cap on the summed backoff of one call (None for no cap)
    """
    backoff_schedule: Tuple[float, ...] = DEFAULT_BACKOFF_SCHEDULE
    transient_retries: int = DEFAULT_TRANSIENT_RETRIES
    max_total_backoff: Optional[float] = None

    def __post_init__(self):
        """Validate retry policy"""
        object.__setattr__(self, 'backoff_schedule', tuple(self.backoff_schedule))

        if any(delay < 0 for delay in self.backoff_schedule):
            raise ValidationError("Backoff delays must be non-negative")

        if self.transient_retries < 0:
            raise ValidationError("Transient retries must be non-negative")

        if self.max_total_backoff is not None and self.max_total_backoff < 0:
            raise ValidationError("Maximum total backoff must be non-negative")

    @property
    def max_attempts(self) -> int:
        """Most attempts a call can make while rate limited."""
        return len(self.backoff_schedule) + 1


@dataclass(frozen=True)
class Success:
    """The attempt succeeded."""


@dataclass(frozen=True)
class RetryAfter:
    """Retry after sleeping ``delay`` seconds."""
    delay: float
    error: ClientError


@dataclass(frozen=True)
class Fatal:
    """Stop and surface ``error``."""
    error: ClientError


RetryDecision = Union[Success, RetryAfter, Fatal]


@dataclass
class AttemptState:
    """Counters for one logical call"""
    attempts: int = 0
    rate_limit_retries: int = 0
    transient_retries: int = 0
    total_backoff: float = 0.0

    def record(self, decision: RetryAfter) -> None:
        if decision.error.kind is ErrorKind.TOO_MANY_REQUESTS:
            self.rate_limit_retries += 1
            self.transient_retries = 0
        else:
            self.transient_retries += 1
        self.total_backoff += decision.delay


def decide(
    classification: Classification,
    state: AttemptState,
    policy: RetryPolicy,
    remaining: Optional[float] = None
) -> RetryDecision:
    """
    Decide what follows an attempt.

    Args:
        classification: Classified outcome of the attempt
        state: Counters of the call so far
        policy: Retry bounds
        remaining: Seconds left before the call's deadline (None for no deadline)

    Returns:
        RetryDecision: Success, RetryAfter or Fatal
    """
    error = classification.error
    if error is None:
        return Success()

    if not classification.retryable:
        return Fatal(error)

    if error.kind is ErrorKind.TOO_MANY_REQUESTS:
        if state.rate_limit_retries >= len(policy.backoff_schedule):
            return Fatal(error)
        delay = policy.backoff_schedule[state.rate_limit_retries]
    else:
        if state.transient_retries >= policy.transient_retries:
            return Fatal(error)
        delay = 0.0

    if policy.max_total_backoff is not None and state.total_backoff + delay > policy.max_total_backoff:
        return Fatal(error)

    if remaining is not None and delay >= remaining:
        return Fatal(error)

    return RetryAfter(delay, error)


def decode_json(response: HttpResponse) -> Any:
    """
    Decode a successful response body as JSON.

    An empty body decodes to None.

    Raises:
        ClientError: DECODE_FAILED if the body is not valid JSON
    """
    if not response.body.strip():
        return None
    try:
        return response.json()
    except ValueError as e:
        logger.error(f"Error in response. Returned {e}")
        raise ClientError.decode_failed(e, response.status_code, response.text) from e


RequestBuilder = Callable[[], HttpRequest]
Decoder = Callable[[HttpResponse], Any]


class ResilientExecutor:
    """
    Executes logical calls with re-authorization, classification and retry.

    Calls are synchronous: backoff blocks the calling thread. The executor
    holds no per-call state, so one instance can serve several threads.
    """

    def __init__(
        self,
        transport: Transport,
        authorizer: Optional[Authorizer] = None,
        policy: Optional[RetryPolicy] = None,
        timeout: float = 30.0,
        sleep: Callable[[float], None] = time.sleep,
        clock: Callable[[], float] = time.monotonic
    ):
        """
        Initialize the executor.

        Args:
            transport: Performs single HTTP round trips
            authorizer: Produces authorization headers per attempt
            policy: Retry bounds (defaults if None)
            timeout: Transport timeout per attempt, in seconds
            sleep: Blocking sleep used for backoff
            clock: Monotonic clock used for deadlines
        """
        self.transport = transport
        self.authorizer = authorizer
        self.policy = policy or RetryPolicy()
        self.timeout = timeout
        self.sleep = sleep
        self.clock = clock

    def execute(
        self,
        build_request: RequestBuilder,
        authorize: bool = True,
        decode: Optional[Decoder] = None,
        deadline: Optional[float] = None
    ) -> Any:
        """
        Perform one logical call.

        Args:
            build_request: Returns the unsigned request; called once per attempt
            authorize: Whether to add authorization headers to each attempt
            decode: Turns the successful response into the result (JSON by default)
            deadline: Monotonic-clock instant after which no retry is started

        Returns:
            The decoded response of the successful attempt

        Raises:
            ClientError: The terminal error of the call
        """
        decode = decode or decode_json
        state = AttemptState()

        while True:
            request = build_request()
            if authorize:
                if self.authorizer is None:
                    raise ClientError.invalid_credentials("No authorizer configured for signed request")
                request = request.with_headers(self.authorizer.authorize(request))

            state.attempts += 1
            outcome = self._send(request, deadline)
            classification = classify(outcome)

            remaining = deadline - self.clock() if deadline is not None else None
            decision = decide(classification, state, self.policy, remaining)

            if isinstance(decision, Success):
                if not isinstance(outcome, HttpResponse):
                    raise ClientError.request_failed(cause=outcome)
                return decode(outcome)

            if isinstance(decision, Fatal):
                error = decision.error
                logger.debug(f"{request.method} {request.url} failed after {state.attempts} attempt(s): {error}")
                raise error from error.cause

            logger.warning(
                f"{decision.error.kind.value} on attempt {state.attempts} of "
                f"{request.method} {request.url}, retrying in {decision.delay}s"
            )
            state.record(decision)
            if decision.delay > 0:
                self.sleep(decision.delay)

    def _send(self, request: HttpRequest, deadline: Optional[float]) -> Union[HttpResponse, TransportError]:
        timeout = self.timeout
        if deadline is not None:
            timeout = max(min(timeout, deadline - self.clock()), 0.001)

        try:
            return self.transport.send(request, timeout)
        except TransportError as e:
            logger.debug(f"Transport error for {request.method} {request.url}: {e}")
            return e
