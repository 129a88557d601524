"""Tests for the terminal report watcher."""

from __future__ import annotations

try:
    from . import _bootstrap  # noqa: F401
except Exception:  # pragma: no cover - fallback for direct execution
    import _bootstrap  # type: ignore # noqa: F401

import json
from pathlib import Path

import httpx
import pytest

from scripts import watch_report

COMPLETED = {
    "success": True,
    "data": {
        "status": "completed",
        "analysis": {
            "summary": "Independent thinker with strong follow-through.",
            "confidenceScore": 82,
            "recommendations": ["Explore product management"],
        },
    },
}


def test_poll_prints_report_when_ready(capsys: pytest.CaptureFixture[str]) -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        assert request.url.path == "/api/analysis-result/user/survey-5"
        return httpx.Response(200, json=COMPLETED)

    exit_code = watch_report.main(
        ["poll", "survey-5"], transport=httpx.MockTransport(handler)
    )

    assert exit_code == watch_report.EXIT_OK
    output = capsys.readouterr().out
    assert "(1/20)" in output
    assert "Independent thinker" in output
    assert "Explore product management" in output


def test_submit_reads_payload_and_polls_returned_id(
    tmp_path: Path, capsys: pytest.CaptureFixture[str]
) -> None:
    payload_file = tmp_path / "answers.json"
    payload_file.write_text(
        json.dumps({"userInfo": {"name": "Li Hua"}, "mbti": {"mbti_1": "1"}}),
        encoding="utf-8",
    )
    paths: list[str] = []

    def handler(request: httpx.Request) -> httpx.Response:
        paths.append(request.url.path)
        if request.method == "POST":
            return httpx.Response(200, json={"success": True, "data": {"surveyId": "s-77"}})
        return httpx.Response(200, json=COMPLETED)

    exit_code = watch_report.main(
        ["--max-attempts", "2", "submit", str(payload_file)],
        transport=httpx.MockTransport(handler),
    )

    assert exit_code == watch_report.EXIT_OK
    assert paths == ["/api/answer/submit", "/api/analysis-result/user/s-77"]
    assert "(1/2)" in capsys.readouterr().out


def test_submit_without_identifier_exits_with_submission_error(tmp_path: Path) -> None:
    payload_file = tmp_path / "answers.json"
    payload_file.write_text(json.dumps({"userInfo": {}}), encoding="utf-8")

    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json={"success": True})

    exit_code = watch_report.main(
        ["submit", str(payload_file)], transport=httpx.MockTransport(handler)
    )

    assert exit_code == watch_report.EXIT_SUBMISSION_ERROR


def test_unreadable_payload_is_reported(tmp_path: Path) -> None:
    payload_file = tmp_path / "answers.json"
    payload_file.write_text("{not json", encoding="utf-8")

    exit_code = watch_report.main(
        ["submit", str(payload_file)],
        transport=httpx.MockTransport(lambda request: httpx.Response(500)),
    )

    assert exit_code == watch_report.EXIT_VALIDATION_ERROR


@pytest.mark.parametrize("value", ["0", "-3", "many"])
def test_max_attempts_must_be_a_positive_integer(
    value: str, capsys: pytest.CaptureFixture[str]
) -> None:
    requests: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        requests.append(request)
        return httpx.Response(200, json=COMPLETED)

    with pytest.raises(SystemExit) as exc_info:
        watch_report.main(
            ["--max-attempts", value, "poll", "survey-5"],
            transport=httpx.MockTransport(handler),
        )

    assert exc_info.value.code == 2
    assert "--max-attempts" in capsys.readouterr().err
    assert requests == []
