"""
Result polling for asynchronously generated analysis reports.

The poller repeatedly asks the backend for the analysis of one result id until
the envelope reports ``completed`` or the attempt budget runs out. Everything
short of an explicit ``completed`` keeps the session alive: the backend gives
no reliable permanent-failure signal.

Waits between attempts follow a banded schedule keyed by attempt number, with
uniform jitter so concurrent clients do not retry in lockstep. Rate-limited
attempts wait for ``Retry-After`` (or a fixed fallback) instead.

Cancel the task running :meth:`ResultPoller.poll` to stop a session; a pending
wait is interrupted and no further request or progress callback happens.
"""

from __future__ import annotations

import asyncio
import logging
import random
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Dict, Optional, Union

from neurosnap.clients import BackendClient, BackendError, BackendHTTPError
from neurosnap.schemas import PollOptions, PollRequest, ProgressCallback

logger = logging.getLogger(__name__)

# (last attempt in band, base wait seconds)
WAIT_BANDS: tuple[tuple[int, float], ...] = (
    (5, 10.0),
    (10, 12.5),
    (15, 15.0),
)
FINAL_BAND_BASE_SECONDS = 17.5
JITTER_SECONDS = 2.0
DEFAULT_RATE_LIMIT_WAIT_SECONDS = 30.0

_PENDING_STATUSES = frozenset({"not_found", "pending"})


@dataclass(frozen=True, slots=True)
class Completed:
    envelope: Dict[str, Any]


@dataclass(frozen=True, slots=True)
class NotReady:
    """The job exists but has no result yet, or the reply was not understood.

    ``confirmed`` is False when the envelope did not match the documented
    contract and was only assumed to mean "not ready".
    """

    status: Optional[str] = None
    confirmed: bool = True


@dataclass(frozen=True, slots=True)
class RateLimited:
    retry_after_seconds: Optional[float] = None


@dataclass(frozen=True, slots=True)
class TransientError:
    message: str
    status_code: Optional[int] = None
    error: Optional[BaseException] = field(default=None, compare=False, repr=False)


AttemptOutcome = Union[Completed, NotReady, RateLimited, TransientError]


class PollExhaustedError(Exception):
    """Raised when a poll session used every attempt without a result."""

    def __init__(
        self,
        message: str,
        *,
        result_id: str,
        attempts: int,
        total_wait_seconds: float,
    ) -> None:
        super().__init__(message)
        self.result_id = result_id
        self.attempts = attempts
        self.total_wait_seconds = total_wait_seconds


class PollTimeoutError(PollExhaustedError):
    """The analysis was still not ready after the last attempt."""


class PollFailedError(PollExhaustedError):
    """The last attempt ended in a backend error."""


@dataclass(slots=True)
class PollResult:
    """Successful end of a poll session."""

    envelope: Dict[str, Any]
    attempts: int
    total_wait_seconds: float

    @property
    def analysis(self) -> Optional[Dict[str, Any]]:
        data = self.envelope.get("data")
        if not isinstance(data, dict):
            return None
        analysis = data.get("analysis")
        return analysis if isinstance(analysis, dict) else None


def staged_delay(attempt: int, *, rand: Callable[[], float] = random.random) -> float:
    """Seconds to wait after ``attempt`` before the next one."""
    base = FINAL_BAND_BASE_SECONDS
    for last_attempt, band_base in WAIT_BANDS:
        if attempt <= last_attempt:
            base = band_base
            break
    return base + rand() * JITTER_SECONDS


def classify_envelope(body: Any) -> AttemptOutcome:
    """Interpret a 2xx ``{success, data: {status, analysis}}`` reply."""
    if not isinstance(body, dict) or body.get("success") is not True:
        return NotReady(status=None, confirmed=False)
    data = body.get("data")
    if not isinstance(data, dict):
        return NotReady(status=None, confirmed=False)
    status = data.get("status")
    if status == "completed":
        return Completed(envelope=body)
    if status in _PENDING_STATUSES:
        return NotReady(status=status)
    return NotReady(status=status if isinstance(status, str) else None, confirmed=False)


class ResultPoller:
    """Poll the analysis-result endpoint until a report is available."""

    def __init__(
        self,
        backend: BackendClient,
        *,
        rate_limit_fallback_seconds: float = DEFAULT_RATE_LIMIT_WAIT_SECONDS,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
        rand: Callable[[], float] = random.random,
    ) -> None:
        self._backend = backend
        self._rate_limit_fallback = rate_limit_fallback_seconds
        self._sleep = sleep
        self._rand = rand

    async def poll(
        self, request: PollRequest, options: PollOptions | None = None
    ) -> PollResult:
        options = options or PollOptions()
        max_attempts = options.max_attempts
        result_id = request.result_id
        total_wait = 0.0
        last_outcome: AttemptOutcome | None = None

        logger.info(
            "Polling analysis result %s (max %d attempts)", result_id, max_attempts
        )
        for attempt in range(1, max_attempts + 1):
            self._notify(options.on_progress, attempt, max_attempts)
            outcome = await self._attempt(result_id)
            self._log_outcome(result_id, attempt, max_attempts, outcome)

            if isinstance(outcome, Completed):
                return PollResult(
                    envelope=outcome.envelope,
                    attempts=attempt,
                    total_wait_seconds=total_wait,
                )

            last_outcome = outcome
            if attempt == max_attempts:
                break

            delay = self._delay_after(attempt, outcome)
            total_wait += delay
            await self._sleep(delay)

        if isinstance(last_outcome, TransientError):
            raise PollFailedError(
                f"Analysis result request failed after {max_attempts} attempts: "
                f"{last_outcome.message}",
                result_id=result_id,
                attempts=max_attempts,
                total_wait_seconds=total_wait,
            ) from last_outcome.error
        raise PollTimeoutError(
            f"Analysis result not ready after {max_attempts} attempts "
            f"({total_wait:.1f}s waited).",
            result_id=result_id,
            attempts=max_attempts,
            total_wait_seconds=total_wait,
        )

    async def _attempt(self, result_id: str) -> AttemptOutcome:
        try:
            body = await self._backend.get_analysis_result(result_id)
        except BackendHTTPError as exc:
            if exc.is_rate_limited:
                return RateLimited(retry_after_seconds=exc.retry_after)
            return TransientError(exc.message, status_code=exc.status_code, error=exc)
        except BackendError as exc:
            return TransientError(str(exc), error=exc)
        return classify_envelope(body)

    def _delay_after(self, attempt: int, outcome: AttemptOutcome) -> float:
        if isinstance(outcome, RateLimited):
            if outcome.retry_after_seconds is not None:
                return outcome.retry_after_seconds
            return self._rate_limit_fallback
        return staged_delay(attempt, rand=self._rand)

    @staticmethod
    def _notify(
        callback: Optional[ProgressCallback], attempt: int, max_attempts: int
    ) -> None:
        if callback is None:
            return
        try:
            callback(attempt, max_attempts)
        except Exception:
            logger.exception("Progress callback raised on attempt %d", attempt)

    @staticmethod
    def _log_outcome(
        result_id: str, attempt: int, max_attempts: int, outcome: AttemptOutcome
    ) -> None:
        if isinstance(outcome, Completed):
            logger.info(
                "Analysis result %s completed on attempt %d/%d",
                result_id,
                attempt,
                max_attempts,
            )
        elif isinstance(outcome, NotReady) and outcome.confirmed:
            logger.info(
                "Analysis result %s still %s (%d/%d)",
                result_id,
                outcome.status,
                attempt,
                max_attempts,
            )
        elif isinstance(outcome, NotReady):
            logger.warning(
                "Unexpected analysis result envelope for %s on attempt %d/%d "
                "(status=%r); treating as not ready",
                result_id,
                attempt,
                max_attempts,
                outcome.status,
            )
        elif isinstance(outcome, RateLimited):
            logger.warning(
                "Rate limited polling %s on attempt %d/%d (Retry-After=%s)",
                result_id,
                attempt,
                max_attempts,
                outcome.retry_after_seconds,
            )
        else:
            logger.warning(
                "Polling %s failed on attempt %d/%d: %s",
                result_id,
                attempt,
                max_attempts,
                outcome.message,
            )


__all__ = [
    "AttemptOutcome",
    "Completed",
    "NotReady",
    "PollExhaustedError",
    "PollFailedError",
    "PollResult",
    "PollTimeoutError",
    "RateLimited",
    "ResultPoller",
    "TransientError",
    "classify_envelope",
    "staged_delay",
]
