from __future__ import annotations

import json
import logging
from collections.abc import AsyncGenerator, Callable, Iterator
from typing import Any

import httpx
import pytest
from fastapi.testclient import TestClient

from dana_relay.config import Settings, get_settings
from dana_relay.logging_config import configure_logging
from dana_relay.main import app
from dana_relay.telegram_client import get_http_client
from fakes import FakeTelegram


@pytest.fixture
def telegram() -> FakeTelegram:
    return FakeTelegram()


@pytest.fixture
def make_client(telegram: FakeTelegram) -> Iterator[Callable[..., TestClient]]:
    """Build a TestClient with injected settings and a mocked Telegram transport."""

    def _make(
        token: str | None = "123:abc",
        chat_id: str | None = "-1001",
        environment: str = "production",
        raise_server_exceptions: bool = True,
    ) -> TestClient:
        settings = Settings(
            telegram_bot_token=token,
            telegram_chat_id=chat_id,
            environment=environment,
        )

        async def fake_http_client() -> AsyncGenerator[httpx.AsyncClient, None]:
            async with httpx.AsyncClient(transport=httpx.MockTransport(telegram)) as client:
                yield client

        app.dependency_overrides[get_settings] = lambda: settings
        app.dependency_overrides[get_http_client] = fake_http_client
        return TestClient(app, raise_server_exceptions=raise_server_exceptions)

    yield _make
    app.dependency_overrides.clear()


@pytest.fixture
def log_events(caplog: pytest.LogCaptureFixture) -> Callable[[], list[dict[str, Any]]]:
    """
    Configure JSON logging and return a reader for the service's own events.

    Each call parses the records captured so far from dana_relay loggers.
    """
    configure_logging("INFO")
    caplog.set_level(logging.INFO)

    def _read() -> list[dict[str, Any]]:
        return [
            json.loads(record.getMessage())
            for record in caplog.records
            if record.name.startswith("dana_relay")
        ]

    return _read
