"""Presentation adapter that drives the poller on behalf of a view."""

from __future__ import annotations

import asyncio
import logging
from functools import partial
from typing import Any, Callable, Dict, Optional

from pydantic import ValidationError

from neurosnap.schemas import (
    AnalysisReport,
    AssessmentSubmission,
    PollOptions,
    PollRequest,
    ReportViewState,
)
from neurosnap.services.polling import (
    PollExhaustedError,
    PollResult,
    PollTimeoutError,
    ResultPoller,
)
from neurosnap.services.submission import SubmissionService

logger = logging.getLogger(__name__)

TIMEOUT_MESSAGE = (
    "Your analysis is still being prepared. Please check back in a little while."
)
FAILURE_MESSAGE = "We could not retrieve your analysis report. Please try again."
EMPTY_MESSAGE = "No analysis result is available for this submission."
SUBMISSION_FAILURE_MESSAGE = (
    "We could not confirm your submission. Please submit your answers again."
)

StateListener = Callable[[ReportViewState], None]


class AnalysisReportPresenter:
    """Hold the view state for one analysis page and keep it current.

    Each ``load`` starts a fresh poll session. Only the newest session may
    write to the state, so a superseded or closed session cannot overwrite
    the page.
    """

    def __init__(
        self,
        poller: ResultPoller,
        *,
        submission_service: SubmissionService | None = None,
        max_attempts: int = 20,
        listener: StateListener | None = None,
    ) -> None:
        self._poller = poller
        self._submissions = submission_service
        self._max_attempts = max_attempts
        self._listener = listener
        self._state = ReportViewState(max_attempts=max_attempts)
        self._session = 0
        self._task: asyncio.Task | None = None

    @property
    def state(self) -> ReportViewState:
        return self._state.model_copy()

    @property
    def is_running(self) -> bool:
        return self._task is not None and not self._task.done()

    def render(self) -> Dict[str, Any]:
        """JSON-ready view state."""
        return self._state.model_dump(mode="json", by_alias=True)

    async def load(self, result_id: str) -> ReportViewState:
        """Poll for ``result_id`` from attempt 1 and return the final state."""
        session = self._begin(result_id)
        await self._run(session, result_id)
        return self.state

    async def retry(self) -> ReportViewState:
        """Start over for the current result id."""
        if not self._state.result_id:
            raise RuntimeError("Nothing to retry; no result id has been loaded.")
        return await self.load(self._state.result_id)

    async def submit_and_load(self, submission: AssessmentSubmission) -> ReportViewState:
        """Submit once, then poll for the returned identifier."""
        if self._submissions is None:
            raise RuntimeError("Presenter was built without a submission service.")
        try:
            receipt = await self._submissions.submit(submission)
        except Exception:
            logger.exception("Submission could not be confirmed")
            self._session += 1
            self._cancel_task()
            self._set_state(
                ReportViewState(
                    status="submission_error",
                    max_attempts=self._max_attempts,
                    message=SUBMISSION_FAILURE_MESSAGE,
                )
            )
            return self.state
        return await self.load(receipt.result_id)

    def start(self, result_id: str) -> asyncio.Task:
        """Run ``load`` in the background, replacing any running session."""
        session = self._begin(result_id)
        self._task = asyncio.create_task(self._run(session, result_id))
        return self._task

    def restart(self) -> asyncio.Task:
        if not self._state.result_id:
            raise RuntimeError("Nothing to retry; no result id has been loaded.")
        return self.start(self._state.result_id)

    def close(self) -> None:
        """Stop polling and ignore anything a running session still reports."""
        self._session += 1
        self._cancel_task()

    async def aclose(self) -> None:
        """``close`` and wait for the cancelled background task to finish."""
        task = self._task
        self.close()
        if task is not None:
            await asyncio.gather(task, return_exceptions=True)

    def _begin(self, result_id: str) -> int:
        # One poll loop per presenter; a background session never outlives a newer one.
        self._cancel_task()
        self._session += 1
        self._set_state(
            ReportViewState(
                status="loading",
                result_id=result_id,
                current_attempt=0,
                max_attempts=self._max_attempts,
            )
        )
        return self._session

    async def _run(self, session: int, result_id: str) -> None:
        try:
            request = PollRequest(result_id=result_id)
            options = PollOptions(
                max_attempts=self._max_attempts,
                on_progress=partial(self._on_progress, session),
            )
            result = await self._poller.poll(request, options)
        except PollTimeoutError as exc:
            logger.info("Analysis %s timed out: %s", result_id, exc)
            self._update(session, status="timeout", message=TIMEOUT_MESSAGE)
        except PollExhaustedError as exc:
            logger.warning("Analysis %s failed: %s", result_id, exc)
            self._update(session, status="error", message=FAILURE_MESSAGE)
        except asyncio.CancelledError:
            logger.info("Polling for %s cancelled", result_id)
            raise
        except Exception:
            logger.exception("Unexpected error while polling %s", result_id)
            self._update(session, status="error", message=FAILURE_MESSAGE)
        else:
            self._update(session, **self._result_changes(result))

    def _result_changes(self, result: PollResult) -> Dict[str, Any]:
        analysis = result.analysis
        if analysis is None:
            logger.warning(
                "Completed envelope without analysis payload: %r", result.envelope
            )
            return {"status": "empty", "message": EMPTY_MESSAGE}
        try:
            report = AnalysisReport.model_validate(analysis)
        except ValidationError as exc:
            logger.warning("Analysis payload missing expected fields: %s", exc)
            return {"status": "empty", "message": EMPTY_MESSAGE}
        return {"status": "ready", "report": report, "message": None}

    def _on_progress(self, session: int, attempt: int, max_attempts: int) -> None:
        self._update(session, current_attempt=attempt, max_attempts=max_attempts)

    def _update(self, session: int, **changes: Any) -> None:
        if session != self._session:
            logger.debug("Dropping update from stale session %d: %s", session, changes)
            return
        self._set_state(self._state.model_copy(update=changes))

    def _set_state(self, state: ReportViewState) -> None:
        self._state = state
        if self._listener is None:
            return
        try:
            self._listener(self.state)
        except Exception:
            logger.exception("Report view listener raised")

    def _cancel_task(self) -> None:
        if self._task is not None and not self._task.done():
            self._task.cancel()
        self._task = None


class ReportViewRegistry:
    """Presenters keyed by result id, for surfaces serving many viewers.

    At most ``max_sessions`` presenters are kept. Opening one more evicts the
    least recently used presenter, preferring one that is no longer polling.
    """

    def __init__(
        self,
        factory: Callable[[], AnalysisReportPresenter],
        *,
        max_sessions: int = 256,
    ) -> None:
        if max_sessions < 1:
            raise ValueError("max_sessions must be at least 1")
        self._factory = factory
        self._max_sessions = max_sessions
        # Insertion order doubles as recency order.
        self._presenters: Dict[str, AnalysisReportPresenter] = {}

    def __len__(self) -> int:
        return len(self._presenters)

    def get(self, result_id: str) -> Optional[AnalysisReportPresenter]:
        presenter = self._presenters.pop(result_id, None)
        if presenter is not None:
            self._presenters[result_id] = presenter
        return presenter

    def open(self, result_id: str) -> AnalysisReportPresenter:
        presenter = self.get(result_id)
        if presenter is None:
            while len(self._presenters) >= self._max_sessions:
                self._evict_one()
            presenter = self._factory()
            self._presenters[result_id] = presenter
        return presenter

    def discard(self, result_id: str) -> bool:
        presenter = self._presenters.pop(result_id, None)
        if presenter is None:
            return False
        presenter.close()
        return True

    def close_all(self) -> None:
        for result_id in list(self._presenters):
            self.discard(result_id)

    async def aclose(self) -> None:
        """Close every presenter and wait for their poll tasks to wind down."""
        presenters = list(self._presenters.values())
        self._presenters.clear()
        await asyncio.gather(*(presenter.aclose() for presenter in presenters))

    def _evict_one(self) -> None:
        victim = next(
            (
                result_id
                for result_id, presenter in self._presenters.items()
                if not presenter.is_running
            ),
            next(iter(self._presenters)),
        )
        logger.info("Evicting report session %s", victim)
        self.discard(victim)


__all__ = [
    "AnalysisReportPresenter",
    "EMPTY_MESSAGE",
    "FAILURE_MESSAGE",
    "ReportViewRegistry",
    "SUBMISSION_FAILURE_MESSAGE",
    "TIMEOUT_MESSAGE",
]
