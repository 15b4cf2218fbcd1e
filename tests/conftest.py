# tests/conftest.py
"""
Shared pytest fixtures and test doubles for llm-proxy tests.
"""

from __future__ import annotations

import asyncio

import pytest

from llm_proxy.models import ProxyRequest, ProxyResponse
from llm_proxy.providers.base import BaseProvider


class MockProvider(BaseProvider):
    """
    In-memory provider for testing.

    Parameters
    ----------
    fail_models:
        Models that always raise.
    fail_times:
        The first N generate() calls raise, whatever the model.
    availability:
        Values returned by successive is_available() calls; True once exhausted.
    delay:
        Seconds each generate() call takes (real asyncio.sleep).
    """

    def __init__(
        self,
        name: str = "mock",
        fail_models: tuple[str, ...] = (),
        fail_times: int = 0,
        availability: list[bool] | None = None,
        cost: float = 0.01,
        tokens: int = 30,
        delay: float = 0.0,
    ) -> None:
        super().__init__(name=name)
        self.fail_models = set(fail_models)
        self.fail_times = fail_times
        self.availability = list(availability or [])
        self.cost = cost
        self.tokens = tokens
        self.delay = delay
        self.calls: list[ProxyRequest] = []

    @property
    def called_models(self) -> list[str]:
        return [r.model for r in self.calls]

    def is_available(self) -> bool:
        if self.availability:
            return self.availability.pop(0)
        return True

    async def generate(self, request: ProxyRequest) -> ProxyResponse:
        self.calls.append(request)
        if self.delay:
            await asyncio.sleep(self.delay)
        if request.model in self.fail_models or len(self.calls) <= self.fail_times:
            raise RuntimeError(f"{self.name}/{request.model} failed (call #{len(self.calls)})")
        return ProxyResponse(
            text=f"{request.model}: {request.prompt}",
            tokens_used=self.tokens,
            cost=self.cost,
            model=request.model,
            metadata={"provider": self.name},
        )


class FakeClock:
    """Manually advanced clock for time-travel tests."""

    def __init__(self, start: float = 1_000_000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class RecordingSleep:
    """Drop-in for asyncio.sleep that records delays instead of waiting."""

    def __init__(self) -> None:
        self.delays: list[float] = []

    async def __call__(self, delay: float) -> None:
        self.delays.append(delay)


def make_request(**kwargs) -> ProxyRequest:
    defaults = dict(prompt="Hello", model="m1", provider="mock")
    defaults.update(kwargs)
    return ProxyRequest(**defaults)


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def recording_sleep():
    return RecordingSleep()

