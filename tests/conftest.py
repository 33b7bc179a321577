"""Shared fixtures for the depscout test suite."""

import asyncio
import threading
from collections.abc import Generator

import pytest
from aiohttp import web

from depscout.common.request_manager import SyncRequestManager
from depscout.config import ScoutConfig
from tests.mock_server import TOKEN, USERNAME, MockGitHub, create_app
from tests.utils import find_free_port

TARGET_REPO = "acme/widget"


# =============================================================================
# aiohttp test server fixtures
# =============================================================================


class AioHttpTestServer:
    """Wrapper to run aiohttp server in a background thread."""

    def __init__(self, app: web.Application, port: int) -> None:
        self.app = app
        self.port = port
        self.host = "127.0.0.1"
        self._loop: asyncio.AbstractEventLoop | None = None
        self._runner: web.AppRunner | None = None
        self._thread: threading.Thread | None = None
        self._started = threading.Event()

    @property
    def url(self) -> str:
        """Get the base URL of the server."""
        return f"http://{self.host}:{self.port}"

    def start(self) -> None:
        """Start the server in a background thread."""
        self._thread = threading.Thread(target=self._run_server, daemon=True)
        self._thread.start()
        self._started.wait(timeout=5.0)

    def _run_server(self) -> None:
        """Run the server in an asyncio event loop."""
        self._loop = asyncio.new_event_loop()
        asyncio.set_event_loop(self._loop)

        async def start() -> None:
            self._runner = web.AppRunner(self.app)
            await self._runner.setup()
            site = web.TCPSite(self._runner, self.host, self.port)
            await site.start()

        self._loop.run_until_complete(start())
        self._started.set()
        self._loop.run_forever()

    def stop(self) -> None:
        """Stop the server and clean up resources."""
        if self._loop and self._runner:
            runner = self._runner
            future = asyncio.run_coroutine_threadsafe(
                runner.cleanup(), self._loop
            )
            try:
                future.result(timeout=2.0)
            except Exception:
                pass  # Best effort cleanup

        if self._loop:
            self._loop.call_soon_threadsafe(self._loop.stop)

        if self._thread:
            self._thread.join(timeout=2.0)


@pytest.fixture
def github() -> MockGitHub:
    """Empty mock GitHub state. Tests fill it in before running."""
    return MockGitHub()


@pytest.fixture
def github_server(github: MockGitHub) -> Generator[AioHttpTestServer, None, None]:
    """Create and start an aiohttp test server serving the mock GitHub.

    This fixture starts a real HTTP server on a random port that answers
    both the dependents page and the REST API endpoints.

    Yields:
        AioHttpTestServer instance with the mock GitHub app running.
    """
    app = create_app(github)
    port = find_free_port()
    server = AioHttpTestServer(app, port)
    server.start()
    yield server
    server.stop()


@pytest.fixture
def server_url(github_server: AioHttpTestServer) -> str:
    """Get the base URL of the test server.

    Returns:
        The base URL string (e.g., "http://127.0.0.1:8080").
    """
    return github_server.url


@pytest.fixture
def config(server_url: str, tmp_path) -> ScoutConfig:
    """Configuration pointing both web and API URLs at the test server.

    The backoff delay is zero so 429 handling doesn't slow the suite down.
    """
    return ScoutConfig(
        github_username=USERNAME,
        github_token=TOKEN,
        target_repo=TARGET_REPO,
        max_dependents=500,
        rate_limit_delay=0,
        web_url=server_url,
        api_url=server_url,
        timeout=5.0,
        output_path=tmp_path / "contributors.csv",
    )


@pytest.fixture
def request_manager() -> Generator[SyncRequestManager, None, None]:
    """A request manager closed at the end of the test."""
    with SyncRequestManager(timeout=5.0) as manager:
        yield manager


@pytest.fixture
def sleeps() -> list[float]:
    """Record of requested waits; pass ``sleeps.append`` as the sleep hook."""
    return []
