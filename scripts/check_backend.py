"""Utility for verifying configuration and backend reachability.

The tool performs two checks:

1. It loads ``AppSettings`` from the provided ``.env`` file, surfacing a
   missing frontend key or malformed values before the app refuses to start.
2. With the ``ping`` command it also calls the backend liveness endpoints
   (``/health`` and ``/ai/status``) using the configured credential.

Example usages::

    python -m scripts.check_backend check --env-file .env
    python -m scripts.check_backend ping --env-file .env
"""

from __future__ import annotations

import argparse
import asyncio
import json
import sys
from pathlib import Path
from typing import Any

import httpx
from pydantic import ValidationError

from neurosnap.clients import BackendClient, BackendError
from neurosnap.core.config import AppSettings, load_settings

EXIT_OK = 0
EXIT_VALIDATION_ERROR = 2
EXIT_UNREACHABLE = 4
EXIT_RUNTIME_ERROR = 5


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Validate settings and check that the assessment backend is alive."
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    for name, help_text in (
        ("check", "Validate settings without contacting the backend."),
        ("ping", "Validate settings and call the backend liveness endpoints."),
    ):
        subparser = subparsers.add_parser(name, help=help_text)
        subparser.add_argument(
            "--env-file",
            default=".env",
            type=Path,
            help="Path to the environment file (default: .env in the repo root).",
        )
    return parser


def _describe(payload: Any) -> str:
    if isinstance(payload, (dict, list)):
        return json.dumps(payload, ensure_ascii=False)
    return str(payload)


async def _ping(
    settings: AppSettings, transport: httpx.AsyncBaseTransport | None
) -> int:
    exit_code = EXIT_OK
    async with BackendClient(settings.backend, transport=transport) as backend:
        for label, probe in (
            ("health", backend.check_health),
            ("ai status", backend.check_ai_status),
        ):
            try:
                payload = await probe()
            except BackendError as exc:
                print(f"{label}: FAILED ({exc})", file=sys.stderr)
                exit_code = EXIT_UNREACHABLE
                continue
            print(f"{label}: OK {_describe(payload)}")
    return exit_code


def main(
    argv: list[str] | None = None,
    *,
    transport: httpx.AsyncBaseTransport | None = None,
) -> int:
    parser = _build_parser()
    args = parser.parse_args(argv)

    env_file: Path = args.env_file
    if not env_file.exists():
        print(
            f"Environment file {env_file} does not exist. "
            "Ensure the path is correct or create it before running this tool.",
            file=sys.stderr,
        )
        return EXIT_RUNTIME_ERROR

    try:
        settings = load_settings(env_file)
    except ValidationError as exc:
        print(
            "Settings validation failed. Missing or invalid values detected:\n"
            f"{exc.json(indent=2)}",
            file=sys.stderr,
        )
        return EXIT_VALIDATION_ERROR

    print(f"Settings OK (backend {settings.backend.api_base_url}).")
    if args.command == "check":
        return EXIT_OK
    return asyncio.run(_ping(settings, transport))


if __name__ == "__main__":  # pragma: no cover - script entry point
    sys.exit(main())
