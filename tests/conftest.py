"""Pytest configuration and shared fixtures."""

from __future__ import annotations

import asyncio
from collections.abc import Callable
from datetime import datetime, timedelta, timezone
from typing import Any

import pytest

from inbox_rank.inference import InferenceResult

FIXED_NOW = datetime(2026, 10, 19, 12, 0, tzinfo=timezone.utc)


class FakeInferenceClient:
    """In-memory InferenceClient.

    ``handler`` receives the user prompt and returns an InferenceResult, a dict
    (wrapped as a success) or raises.
    """

    def __init__(
        self,
        handler: Callable[[str], Any] | None = None,
        delay: Callable[[str], float] | None = None,
    ) -> None:
        self.handler = handler or (lambda prompt: {"category": "FYI", "confidence": 5})
        self.delay = delay
        self.calls: list[dict[str, Any]] = []
        self.in_flight = 0
        self.max_in_flight = 0

    async def infer(
        self,
        system_prompt: str,
        user_prompt: str,
        *,
        response_format: str = "json",
        timeout: float | None = None,
    ) -> InferenceResult:
        self.calls.append(
            {
                "system_prompt": system_prompt,
                "user_prompt": user_prompt,
                "response_format": response_format,
                "timeout": timeout,
            }
        )
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            if self.delay is not None:
                await asyncio.sleep(self.delay(user_prompt))
            else:
                await asyncio.sleep(0)
            outcome = self.handler(user_prompt)
        finally:
            self.in_flight -= 1

        if isinstance(outcome, InferenceResult):
            return outcome
        return InferenceResult.ok(outcome)


@pytest.fixture
def fixed_now() -> datetime:
    """Reference time used by scoring tests."""
    return FIXED_NOW


@pytest.fixture
def mock_settings(tmp_path):
    """Provide mock settings for testing."""
    from inbox_rank.config import Settings

    return Settings(
        ollama_host="http://test:11434",
        ollama_model="test-model",
        inference_timeout=2.0,
        batch_delay_ms=0,
        store_db_path=tmp_path / "store.sqlite3",
        log_level="DEBUG",
        debug=True,
    )


@pytest.fixture
def make_item() -> Callable[..., Any]:
    """Build Items with sensible defaults; keyword arguments override fields."""
    from inbox_rank.models import Item

    counter = {"n": 0}

    def _make(**overrides: Any) -> Item:
        counter["n"] += 1
        n = counter["n"]
        data: dict[str, Any] = {
            "id": f"email-gmail:msg{n}",
            "source": "email-gmail",
            "source_id": f"msg{n}",
            "item_type": "message",
            "timestamp": FIXED_NOW - timedelta(hours=2),
            "sender": {"name": "Alex Doe", "address": "alex@example.com"},
            "subject": "Status update",
            "body_preview": "Everything is on track for this week, nothing needed from you at the moment. " * 2,
        }
        data.update(overrides)
        return Item.model_validate(data)

    return _make


@pytest.fixture
def fake_inference() -> Callable[..., FakeInferenceClient]:
    """Factory for FakeInferenceClient instances."""
    return FakeInferenceClient
