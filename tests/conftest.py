import json
from typing import Any, Dict, List, Optional, Tuple, Union

import pytest
from typer.testing import CliRunner

from mapscli.core.client import MapsClient
from mapscli.domain.interfaces.transport import Transport
from mapscli.domain.models.outcome import TransportResponse
from mapscli.infrastructure.config import settings
from mapscli.infrastructure.resilience.api_retry import ApiRetryService
from mapscli.infrastructure.resilience.backoff import BackoffSchedule
from mapscli.infrastructure.resilience.rate_limiter import RateLimiter


class FakeClock:
    """Monotonic clock whose sleep advances time instantly."""

    def __init__(self, start: float = 1000.0):
        self.now = start
        self.sleeps: List[float] = []

    def __call__(self) -> float:
        return self.now

    async def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        self.now += seconds


class StubTransport(Transport):
    """Replays scripted responses (or raises scripted errors) in order."""

    def __init__(self, responses: Optional[List[Union[TransportResponse, Exception]]] = None):
        self.responses = list(responses or [])
        self.requests: List[Tuple[str, str, Optional[str]]] = []
        self.closed = False

    def queue(self, *responses: Union[TransportResponse, Exception]) -> None:
        self.responses.extend(responses)

    async def send(self, method, url, body=None) -> TransportResponse:
        self.requests.append((method, url, body))
        if not self.responses:
            raise AssertionError(f"Unexpected request: {method} {url}")
        item = self.responses.pop(0)
        if isinstance(item, Exception):
            raise item
        return item

    async def close(self) -> None:
        self.closed = True


def json_response(payload: Dict[str, Any], status_code: int = 200, headers: Optional[Dict[str, str]] = None) -> TransportResponse:
    return TransportResponse(status_code=status_code, body=json.dumps(payload), headers=headers or {})


@pytest.fixture
def fake_clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def stub_transport() -> StubTransport:
    return StubTransport()


@pytest.fixture
def schedule() -> BackoffSchedule:
    return BackoffSchedule(base_interval=0.5, multiplier=1.5, max_interval=60.0, max_elapsed_time=900.0, jitter_factor=0.5)


@pytest.fixture
def client(fake_clock: FakeClock, stub_transport: StubTransport, schedule: BackoffSchedule) -> MapsClient:
    """MapsClient wired to the stub transport and the fake clock; jitter is neutral (rng=0.5)."""
    limiter = RateLimiter(clock=fake_clock, sleep=fake_clock.sleep)
    retry_service = ApiRetryService(
        limiter, stub_transport, schedule,
        sleep=fake_clock.sleep, clock=fake_clock, rng=lambda: 0.5,
    )
    return MapsClient(
        "test-key",
        rate_limiter=limiter,
        transport=stub_transport,
        retry_service=retry_service,
    )


@pytest.fixture(scope="session")
def runner():
    """Provides a Typer CliRunner instance."""
    return CliRunner()


@pytest.fixture(autouse=True)
def isolated_config(monkeypatch, tmp_path):
    """Keeps tests away from the user's real configuration and environment."""
    monkeypatch.delenv("GOOGLE_MAPS_API_KEY", raising=False)
    monkeypatch.chdir(tmp_path)
    settings.reset_configuration()
    settings.clear_test_config()
    yield
    settings.reset_configuration()
    settings.clear_test_config()
