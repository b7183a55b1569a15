"""Inference collaborator contract.

The categorizer talks to the language model only through ``InferenceClient``.
Implementations must bound every call by ``timeout`` and report failures in
the returned ``InferenceResult`` instead of raising.
"""

from __future__ import annotations

import json
import re
from typing import Any, Protocol, runtime_checkable

from pydantic import BaseModel, Field

_JSON_OBJECT_RE = re.compile(r"\{.*\}", re.S)


class InferenceResult(BaseModel):
    """Outcome of a single inference call."""

    success: bool
    data: dict[str, Any] | None = Field(default=None, description="Parsed JSON object")
    raw: str | None = Field(default=None, description="Raw model output, if any")
    error: str | None = Field(default=None, description="Failure cause when success is False")

    @classmethod
    def ok(cls, data: dict[str, Any], raw: str | None = None) -> InferenceResult:
        return cls(success=True, data=data, raw=raw)

    @classmethod
    def failed(cls, error: str, raw: str | None = None) -> InferenceResult:
        return cls(success=False, error=error, raw=raw)


@runtime_checkable
class InferenceClient(Protocol):
    """Anything that can answer a system/user prompt pair."""

    async def infer(
        self,
        system_prompt: str,
        user_prompt: str,
        *,
        response_format: str = "json",
        timeout: float | None = None,
    ) -> InferenceResult: ...


def extract_json_object(raw: str) -> dict[str, Any]:
    """Extract the first JSON object from a raw model response.

    Raises:
        ValueError: If no JSON object can be recovered.
    """

    raw = (raw or "").strip()
    if not raw:
        raise ValueError("empty model response")

    # Fast path: direct JSON.
    try:
        obj = json.loads(raw)
        if isinstance(obj, dict):
            return obj
    except json.JSONDecodeError:
        pass

    # Tolerant path: find {...} region (models like to wrap JSON in prose or fences).
    m = _JSON_OBJECT_RE.search(raw)
    if not m:
        raise ValueError("model response did not contain a JSON object")

    try:
        obj = json.loads(m.group(0))
    except json.JSONDecodeError as exc:
        raise ValueError(f"model response contained malformed JSON: {exc}") from exc
    if not isinstance(obj, dict):
        raise ValueError("extracted JSON was not an object")
    return obj
