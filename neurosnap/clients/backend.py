"""
Client wrapper for the assessment backend.

Performs one authenticated request per call and normalizes transport and
status-code failures into ``BackendError`` subclasses. Retry decisions belong
to the callers.
"""

from __future__ import annotations

import logging
from json import JSONDecodeError
from typing import Any, Dict, Optional

import httpx

from neurosnap.core.config import BackendSettings
from neurosnap.utils.http import extract_error_message, parse_retry_after

logger = logging.getLogger(__name__)

USER_AGENT = "NeuroSnap-Frontend/1.0.0"


class BackendError(Exception):
    """Base class for every failure raised by ``BackendClient``."""


class BackendHTTPError(BackendError):
    """Raised when the backend answers with a non-2xx status."""

    def __init__(
        self,
        status_code: int,
        message: str,
        *,
        retry_after: Optional[float] = None,
    ) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.message = message
        self.retry_after = retry_after

    @property
    def is_rate_limited(self) -> bool:
        return self.status_code == httpx.codes.TOO_MANY_REQUESTS


class BackendResponseError(BackendError):
    """Raised when a 2xx response body is not valid JSON."""


class BackendUnreachableError(BackendError):
    """Raised when the backend cannot be reached at all (DNS failure, connection refused)."""


class BackendTimeoutError(BackendError):
    """Raised when the backend accepted the connection but did not answer in time."""


class BackendClient:
    """Issue requests against the assessment backend API."""

    def __init__(
        self,
        settings: BackendSettings,
        *,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._settings = settings
        self._client = httpx.AsyncClient(
            base_url=settings.api_base_url,
            timeout=settings.request_timeout,
            headers={
                "Content-Type": "application/json",
                "X-Frontend-Key": settings.frontend_api_key,
                "User-Agent": USER_AGENT,
            },
            transport=transport,
        )

    @property
    def base_url(self) -> str:
        return self._settings.api_base_url

    async def aclose(self) -> None:
        await self._client.aclose()

    async def __aenter__(self) -> "BackendClient":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.aclose()

    async def request(
        self,
        method: str,
        path: str,
        *,
        json: Any = None,
        params: Optional[Dict[str, Any]] = None,
    ) -> Any:
        """Send one request and return the decoded JSON body of a 2xx reply."""
        logger.debug("Backend request %s %s params=%s", method, path, params)
        try:
            response = await self._client.request(method, path, json=json, params=params)
        except httpx.TimeoutException as exc:
            logger.warning("Backend request %s %s timed out: %s", method, path, exc)
            raise BackendTimeoutError(
                f"Backend did not respond in time ({method} {path})."
            ) from exc
        except httpx.ConnectError as exc:
            logger.warning("Backend unreachable for %s %s: %s", method, path, exc)
            raise BackendUnreachableError(
                f"Server unreachable at {self.base_url}; check that the backend is running."
            ) from exc
        except httpx.HTTPError as exc:
            logger.warning("Backend request %s %s failed: %s", method, path, exc)
            raise BackendError(f"Request {method} {path} failed: {exc}") from exc

        if not response.is_success:
            message = extract_error_message(response)
            retry_after = parse_retry_after(response.headers.get("Retry-After"))
            logger.warning(
                "Backend returned %s for %s %s: %s",
                response.status_code,
                method,
                path,
                message,
            )
            raise BackendHTTPError(
                response.status_code, message, retry_after=retry_after
            )

        try:
            return response.json()
        except (JSONDecodeError, UnicodeDecodeError) as exc:
            raise BackendResponseError(
                f"Backend returned a non-JSON body for {method} {path}."
            ) from exc

    async def submit_answers(self, payload: Dict[str, Any]) -> Any:
        """Submit the complete questionnaire payload."""
        return await self.request("POST", "/answer/submit", json=payload)

    async def get_analysis_result(self, result_id: str) -> Any:
        return await self.request("GET", f"/analysis-result/user/{result_id}")

    async def get_analysis_history(
        self, user_id: str, *, limit: int = 10, offset: int = 0
    ) -> Any:
        return await self.request(
            "GET",
            f"/analysis-result/user/{user_id}/history",
            params={"limit": limit, "offset": offset},
        )

    async def get_analysis_summary(self, user_id: str) -> Any:
        return await self.request("GET", f"/analysis-result/user/{user_id}/summary")

    async def get_survey_questions(self, model_code: str) -> Any:
        """Fetch the question catalog for one instrument."""
        return await self.request("GET", "/survey/model", params={"code": model_code})

    async def get_survey_models(self) -> Any:
        return await self.request("GET", "/survey/models")

    async def save_user_info(self, user_info: Dict[str, Any]) -> Any:
        return await self.request("POST", "/user/info", json=user_info)

    async def get_user_info(self, user_id: str) -> Any:
        return await self.request("GET", "/user/info", params={"userId": user_id})

    async def check_health(self) -> Any:
        return await self.request("GET", "/health")

    async def check_ai_status(self) -> Any:
        return await self.request("GET", "/ai/status")


__all__ = [
    "BackendClient",
    "BackendError",
    "BackendHTTPError",
    "BackendResponseError",
    "BackendTimeoutError",
    "BackendUnreachableError",
]
