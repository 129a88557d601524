try:
    from . import _bootstrap  # noqa: F401
except Exception:  # pragma: no cover - fallback for direct execution
    import _bootstrap  # type: ignore # noqa: F401

import json
from datetime import datetime, timezone

import httpx
import pytest

from neurosnap.clients import (
    BackendClient,
    BackendError,
    BackendHTTPError,
    BackendResponseError,
    BackendTimeoutError,
    BackendUnreachableError,
)
from neurosnap.core.config import BackendSettings
from neurosnap.utils.http import parse_retry_after

pytestmark = pytest.mark.anyio("asyncio")


def _settings() -> BackendSettings:
    return BackendSettings(
        api_base_url="http://backend.test/api/",
        frontend_api_key="frontend-key",
        request_timeout=5.0,
    )


def _client(handler) -> BackendClient:
    return BackendClient(_settings(), transport=httpx.MockTransport(handler))


async def test_request_sends_credential_and_returns_json():
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, json={"success": True, "data": {"status": "not_found"}})

    async with _client(handler) as backend:
        body = await backend.get_analysis_result("survey-1")

    assert body == {"success": True, "data": {"status": "not_found"}}
    request = seen[0]
    assert request.method == "GET"
    assert str(request.url) == "http://backend.test/api/analysis-result/user/survey-1"
    assert request.headers["X-Frontend-Key"] == "frontend-key"
    assert request.headers["User-Agent"] == "NeuroSnap-Frontend/1.0.0"


async def test_submit_and_catalog_paths():
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, json={"ok": True})

    async with _client(handler) as backend:
        await backend.submit_answers({"userInfo": {"name": "Li"}})
        await backend.get_survey_questions("mbti")
        await backend.get_analysis_history("user-9", limit=5, offset=10)

    assert seen[0].method == "POST"
    assert seen[0].url.path == "/api/answer/submit"
    assert json.loads(seen[0].content) == {"userInfo": {"name": "Li"}}
    assert seen[1].url.path == "/api/survey/model"
    assert seen[1].url.params["code"] == "mbti"
    assert seen[2].url.path == "/api/analysis-result/user/user-9/history"
    assert seen[2].url.params["limit"] == "5"
    assert seen[2].url.params["offset"] == "10"


async def test_profile_and_summary_paths():
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, json={"success": True, "data": {}})

    async with _client(handler) as backend:
        await backend.get_analysis_summary("user-9")
        await backend.get_survey_models()
        await backend.save_user_info({"name": "Li", "age": 25})
        await backend.get_user_info("user-9")

    assert [(request.method, request.url.path) for request in seen] == [
        ("GET", "/api/analysis-result/user/user-9/summary"),
        ("GET", "/api/survey/models"),
        ("POST", "/api/user/info"),
        ("GET", "/api/user/info"),
    ]
    assert json.loads(seen[2].content) == {"name": "Li", "age": 25}
    assert seen[3].url.params["userId"] == "user-9"
    assert all(request.headers["X-Frontend-Key"] == "frontend-key" for request in seen)


async def test_error_message_comes_from_json_body():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(401, json={"message": "Invalid frontend key"})

    async with _client(handler) as backend:
        with pytest.raises(BackendHTTPError) as exc_info:
            await backend.check_health()

    assert exc_info.value.status_code == 401
    assert exc_info.value.message == "Invalid frontend key"
    assert not exc_info.value.is_rate_limited


async def test_error_message_falls_back_to_status_line():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(502, text="<html>Bad gateway</html>")

    async with _client(handler) as backend:
        with pytest.raises(BackendHTTPError) as exc_info:
            await backend.check_ai_status()

    assert exc_info.value.status_code == 502
    assert exc_info.value.message == "HTTP 502: Bad Gateway"


async def test_rate_limit_carries_retry_after():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(429, headers={"Retry-After": "5"}, json={"error": "slow down"})

    async with _client(handler) as backend:
        with pytest.raises(BackendHTTPError) as exc_info:
            await backend.get_analysis_result("survey-1")

    assert exc_info.value.is_rate_limited
    assert exc_info.value.retry_after == 5.0
    assert exc_info.value.message == "slow down"


async def test_connect_failure_is_reported_as_unreachable():
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    async with _client(handler) as backend:
        with pytest.raises(BackendUnreachableError) as exc_info:
            await backend.check_health()

    assert "unreachable" in str(exc_info.value).lower()
    assert isinstance(exc_info.value, BackendError)


async def test_timeout_is_distinct_from_unreachable():
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ReadTimeout("timed out", request=request)

    async with _client(handler) as backend:
        with pytest.raises(BackendTimeoutError):
            await backend.get_analysis_result("survey-1")


async def test_non_json_success_body_raises_response_error():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, text="not json")

    async with _client(handler) as backend:
        with pytest.raises(BackendResponseError):
            await backend.get_analysis_result("survey-1")


def test_parse_retry_after_forms():
    now = datetime(2025, 1, 1, 12, 0, 0, tzinfo=timezone.utc)

    assert parse_retry_after("5") == 5.0
    assert parse_retry_after(" 2.5 ") == 2.5
    assert parse_retry_after(None) is None
    assert parse_retry_after("") is None
    assert parse_retry_after("-3") is None
    assert parse_retry_after("soon") is None
    assert parse_retry_after("Wed, 01 Jan 2025 12:00:30 GMT", now=now) == 30.0
    assert parse_retry_after("Wed, 01 Jan 2025 11:59:00 GMT", now=now) == 0.0
