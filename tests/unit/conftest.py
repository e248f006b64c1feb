"""Fixtures for LifecycleEngine unit tests: mocked repo, gateway and session."""

from collections.abc import AsyncIterator, Callable
from contextlib import asynccontextmanager
from unittest.mock import AsyncMock, MagicMock

import pytest

from src.sa_auction.engine.lifecycle import LifecycleEngine


def session_factory_for(db: AsyncMock) -> Callable[[], object]:
    @asynccontextmanager
    async def _factory() -> AsyncIterator[AsyncMock]:
        yield db

    return _factory


@pytest.fixture
def repo() -> AsyncMock:
    return AsyncMock()


@pytest.fixture
def gateway() -> AsyncMock:
    return AsyncMock()


@pytest.fixture
def db() -> AsyncMock:
    return AsyncMock()


@pytest.fixture
def notifier() -> MagicMock:
    n = MagicMock()
    n.emit = AsyncMock()
    return n


@pytest.fixture
def engine(
    repo: AsyncMock, gateway: AsyncMock, db: AsyncMock, notifier: MagicMock
) -> LifecycleEngine:
    return LifecycleEngine(
        gateway=gateway,
        notifier=notifier,
        repo=repo,
        session_factory=session_factory_for(db),
        fee_bps=1200,
        auction_window_hours=24,
    )
