"""Shared test fixtures for airkit.

Provides reusable fixtures for creating isolated config environments,
managing output state, building a client configuration, standing up an
in-memory record API behind :class:`httpx.MockTransport`, and running CLI
commands.  These fixtures are automatically discovered by pytest and
available to all test modules without explicit imports.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Callable, Optional

import httpx
import pytest

from airkit.client import AsyncClient
from airkit.config import setup
from airkit.models import ClientConfig
from airkit.output import OutputFormat, OutputManager, reset_output, set_output


BASE_ID = "appTEST0000000000"
API_KEY = "keyTEST"
API_PREFIX = f"/v0/{BASE_ID}/"


# ---------------------------------------------------------------------------
# Auto-reset global output state between tests
# ---------------------------------------------------------------------------


@pytest.fixture(autouse=True)
def _reset_output_between_tests() -> None:
    """Reset the global OutputManager after every test.

    The OutputManager caches references to sys.stdout/sys.stderr at
    creation time.  When Typer's CliRunner redirects those streams during
    a test and the test finishes, the cached references become stale
    ("I/O operation on closed file").  Resetting forces a fresh manager
    to be created on next use.
    """
    yield
    reset_output()


# ---------------------------------------------------------------------------
# Config isolation fixture
# ---------------------------------------------------------------------------


@pytest.fixture
def isolated_config(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Isolate configuration to a temporary directory.

    Sets XDG_CONFIG_HOME, XDG_CACHE_HOME, and XDG_DATA_HOME to
    subdirectories of tmp_path so that tests never touch real user
    config. Clears all AIRKIT_* environment variables and changes
    the working directory to tmp_path.

    Returns:
        The tmp_path root directory for additional file creation.
    """
    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path / "config"))
    monkeypatch.setenv("XDG_CACHE_HOME", str(tmp_path / "cache"))
    monkeypatch.setenv("XDG_DATA_HOME", str(tmp_path / "data"))

    for var in ["AIRKIT_BASE_ID", "AIRKIT_API_KEY_SOURCE", "AIRTABLE_API_KEY"]:
        monkeypatch.delenv(var, raising=False)

    monkeypatch.chdir(tmp_path)
    return tmp_path


# ---------------------------------------------------------------------------
# Output fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def quiet_output() -> OutputManager:
    """Set up a quiet output manager for tests that don't care about output.

    Installs a PLAIN-format, quiet OutputManager as the global output
    and resets it after the test completes.
    """
    output = OutputManager(format=OutputFormat.PLAIN, quiet=True)
    set_output(output)
    yield output
    reset_output()


@pytest.fixture
def json_output() -> OutputManager:
    """Set up JSON output for tests that check JSON-formatted output."""
    output = OutputManager(format=OutputFormat.JSON)
    set_output(output)
    yield output
    reset_output()


@pytest.fixture
def verbose_output() -> OutputManager:
    """Set up a verbose, colourless output manager so debug traces reach stderr."""
    output = OutputManager(format=OutputFormat.PLAIN, no_color=True, verbose=True)
    set_output(output)
    yield output
    reset_output()


# ---------------------------------------------------------------------------
# Client fixtures
# ---------------------------------------------------------------------------


class FakeApi:
    """In-memory stand-in for the record API.

    Routes are keyed by ``(method, path)`` where *path* is relative to the
    base (``"Tasks"`` or ``"Tasks/rec1"``).  A route answers with a JSON body,
    raw bytes, or a (sync or async) handler callable.  Unknown routes answer
    404 with the nested error shape.  Every request is recorded.
    """

    def __init__(self) -> None:
        self.routes: dict[tuple[str, str], tuple[int, Any]] = {}
        self.requests: list[httpx.Request] = []

    def add(self, method: str, path: str, body: Any = None, status: int = 200) -> None:
        self.routes[(method, path)] = (status, body)

    def add_record(self, table: str, record: dict[str, Any]) -> None:
        self.add("GET", f"{table}/{record['id']}", record)

    def calls(self, method: Optional[str] = None, path: Optional[str] = None) -> list[httpx.Request]:
        return [
            r for r in self.requests
            if (method is None or r.method == method) and (path is None or _relative(r) == path)
        ]

    async def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        route = self.routes.get((request.method, _relative(request)))
        if route is None:
            return httpx.Response(
                404, json={"error": {"type": "NOT_FOUND", "message": "Could not find what you are looking for"}}
            )
        status, body = route
        if callable(body):
            result = body(request)
            if not isinstance(result, httpx.Response):
                result = await result
            return result
        if isinstance(body, bytes):
            return httpx.Response(status, content=body)
        if body is None:
            return httpx.Response(status, content=b"")
        return httpx.Response(status, json=body)

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handler)


def _relative(request: httpx.Request) -> str:
    path = request.url.path
    return path[len(API_PREFIX):] if path.startswith(API_PREFIX) else path


@pytest.fixture
def client_config(tmp_path: Path) -> ClientConfig:
    """A client configuration with its record cache under tmp_path."""
    return setup(BASE_ID, API_KEY, cache_dir=tmp_path / "records")


@pytest.fixture
def fake_api() -> FakeApi:
    return FakeApi()


@pytest.fixture
def make_client(client_config: ClientConfig, fake_api: FakeApi) -> Callable[[], AsyncClient]:
    """Factory for clients wired to :func:`fake_api`; use as ``async with make_client() as c``."""

    def _make() -> AsyncClient:
        return AsyncClient(client_config, transport=fake_api.transport)

    return _make


def record_payload(
    record_id: Optional[str],
    fields: Optional[dict[str, Any]] = None,
    created: Optional[str] = "2024-03-01T12:30:45.000Z",
) -> dict[str, Any]:
    """Build a record payload as the API returns it."""
    payload: dict[str, Any] = {"fields": fields or {}}
    if record_id is not None:
        payload["id"] = record_id
    if created is not None:
        payload["createdTime"] = created
    return payload


@pytest.fixture
def payload_factory() -> Callable[..., dict[str, Any]]:
    return record_payload


# ---------------------------------------------------------------------------
# CLI runner fixture
# ---------------------------------------------------------------------------


@pytest.fixture
def cli_runner():
    """Typer CLI test runner.

    Returns a CliRunner instance that captures stdout/stderr and
    provides a consistent interface for invoking Typer apps in tests.
    """
    from typer.testing import CliRunner

    return CliRunner()
