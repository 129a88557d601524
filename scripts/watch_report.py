"""Follow an analysis report from the terminal.

Either submits a questionnaire payload (a JSON file with ``userInfo``,
``fiveQuestions``, ``mbti``, ``bigFive``, ``disc``, ``holland`` and
``values``) and then waits for its analysis, or waits for an existing result
id. Progress is printed once per attempt; Ctrl+C cancels the session.

    python -m scripts.watch_report submit answers.json
    python -m scripts.watch_report poll d16f36ea-f9ae-415c-8f97-d39aa96803fc
"""

from __future__ import annotations

import argparse
import asyncio
import json
import sys
from datetime import datetime
from pathlib import Path

import httpx
from pydantic import ValidationError

from neurosnap.clients import BackendClient
from neurosnap.core.config import AppSettings, load_settings
from neurosnap.core.logging import configure_logging
from neurosnap.schemas import AssessmentSubmission, ReportViewState
from neurosnap.services import (
    AnalysisReportPresenter,
    ResultPoller,
    SubmissionService,
)

EXIT_OK = 0
EXIT_VALIDATION_ERROR = 2
EXIT_NOT_READY = 3
EXIT_FAILED = 4
EXIT_SUBMISSION_ERROR = 5
EXIT_INTERRUPTED = 130

_EXIT_CODES = {
    "ready": EXIT_OK,
    "timeout": EXIT_NOT_READY,
    "empty": EXIT_FAILED,
    "error": EXIT_FAILED,
    "submission_error": EXIT_SUBMISSION_ERROR,
}


def _timestamp() -> str:
    return datetime.now().strftime("%H:%M:%S")


class _ProgressPrinter:
    """Print a line whenever the attempt counter or status changes."""

    def __init__(self) -> None:
        self._last: tuple[str, int] | None = None

    def __call__(self, state: ReportViewState) -> None:
        key = (state.status, state.current_attempt)
        if key == self._last:
            return
        self._last = key
        if state.status == "loading" and state.current_attempt:
            print(
                f"[{_timestamp()}] waiting for analysis {state.result_id} "
                f"({state.current_attempt}/{state.max_attempts})"
            )
        elif state.status != "loading":
            print(f"[{_timestamp()}] {state.status.upper()}")


def _print_report(state: ReportViewState) -> None:
    if state.report is None:
        if state.message:
            print(state.message)
        return
    report = state.report
    line = "=" * 24
    print(f"\nAnalysis report\n{line}")
    if report.confidence_score is not None:
        print(f"Confidence: {report.confidence_score}%")
    print(f"\n{report.summary}\n")
    for recommendation in report.recommendations:
        print(f"  - {recommendation}")


def _positive_int(value: str) -> int:
    try:
        number = int(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"{value!r} is not an integer") from None
    if number < 1:
        raise argparse.ArgumentTypeError("must be at least 1")
    return number


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Follow an AI analysis report.")
    parser.add_argument("--env-file", type=Path, default=None)
    parser.add_argument(
        "--max-attempts",
        type=_positive_int,
        default=None,
        help="Override NEUROSNAP_POLL_MAX_ATTEMPTS for this run.",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    submit_parser = subparsers.add_parser("submit", help="Submit answers, then wait.")
    submit_parser.add_argument("payload", type=Path, help="JSON file with all answers.")

    poll_parser = subparsers.add_parser("poll", help="Wait for an existing result id.")
    poll_parser.add_argument("result_id")
    return parser


async def _watch(
    args: argparse.Namespace,
    settings: AppSettings,
    transport: httpx.AsyncBaseTransport | None,
) -> ReportViewState:
    async with BackendClient(settings.backend, transport=transport) as backend:
        presenter = AnalysisReportPresenter(
            ResultPoller(
                backend,
                rate_limit_fallback_seconds=settings.polling.rate_limit_fallback_seconds,
            ),
            submission_service=SubmissionService(backend, settings),
            max_attempts=(
                args.max_attempts
                if args.max_attempts is not None
                else settings.polling.poll_max_attempts
            ),
            listener=_ProgressPrinter(),
        )
        if args.command == "submit":
            raw = json.loads(args.payload.read_text(encoding="utf-8"))
            return await presenter.submit_and_load(
                AssessmentSubmission.model_validate(raw)
            )
        return await presenter.load(args.result_id)


def main(
    argv: list[str] | None = None,
    *,
    transport: httpx.AsyncBaseTransport | None = None,
) -> int:
    args = _build_parser().parse_args(argv)
    try:
        settings = load_settings(args.env_file)
    except ValidationError as exc:
        print(f"Settings validation failed:\n{exc}", file=sys.stderr)
        return EXIT_VALIDATION_ERROR
    configure_logging(settings.app_log_level)

    try:
        state = asyncio.run(_watch(args, settings, transport))
    except KeyboardInterrupt:
        print("Cancelled.", file=sys.stderr)
        return EXIT_INTERRUPTED
    except (OSError, ValueError) as exc:
        print(f"Could not read payload: {exc}", file=sys.stderr)
        return EXIT_VALIDATION_ERROR

    _print_report(state)
    return _EXIT_CODES.get(state.status, EXIT_FAILED)


if __name__ == "__main__":  # pragma: no cover - script entry point
    sys.exit(main())
