"""Ollama client implementation.

This module provides a client for interacting with a local Ollama instance.

Notes:
    Requests use the blocking ``urllib.request`` API. They run in a worker
    thread via ``asyncio.to_thread`` so callers stay async, and ``infer`` bounds
    each call with ``asyncio.wait_for``.
"""

from __future__ import annotations

import asyncio
import json
import urllib.error
import urllib.request
from typing import Any, Optional

import structlog

from inbox_rank.config import Settings
from inbox_rank.exceptions import OllamaConnectionError, OllamaInferenceError
from inbox_rank.inference import InferenceResult, extract_json_object

logger = structlog.get_logger()


class OllamaClient:
    """Ollama LLM client for AI inference.

    This client handles communication with the Ollama HTTP API
    and implements the InferenceClient contract.
    """

    def __init__(self, settings: Optional[Settings] = None) -> None:
        """Initialize Ollama client.

        Args:
            settings: Application settings. If None, uses default settings.
        """
        from inbox_rank.config import get_settings

        self.settings = settings or get_settings()
        self._host = self.settings.ollama_host.rstrip("/")
        logger.info(
            "ollama_client_initialized",
            host=self._host,
            model=self.settings.ollama_model,
        )

    async def generate(
        self,
        prompt: str,
        model: Optional[str] = None,
        *,
        system: Optional[str] = None,
        response_format: Optional[str] = None,
        timeout: Optional[float] = None,
    ) -> dict[str, Any]:
        """Generate text using Ollama.

        Args:
            prompt: The prompt to send to the model.
            model: Model name to use. If None, uses default from settings.
            system: Optional system instruction.
            response_format: Pass "json" to constrain output to JSON.
            timeout: Request timeout in seconds. Defaults to settings.

        Returns:
            Response dictionary from /api/generate.

        Raises:
            OllamaConnectionError: If unable to connect to Ollama.
            OllamaInferenceError: If inference fails.
        """
        model = model or self.settings.ollama_model
        logger.debug("generating_text", model=model, prompt_length=len(prompt))

        payload: dict[str, Any] = {"model": model, "prompt": prompt, "stream": False}
        if system:
            payload["system"] = system
        if response_format:
            payload["format"] = response_format

        return await asyncio.to_thread(
            self._post, "/api/generate", payload, timeout or self.settings.inference_timeout
        )

    async def chat(
        self,
        messages: list[dict[str, str]],
        model: Optional[str] = None,
        *,
        response_format: Optional[str] = None,
        timeout: Optional[float] = None,
    ) -> dict[str, Any]:
        """Have a chat conversation with Ollama.

        Args:
            messages: List of message dictionaries with 'role' and 'content'.
            model: Model name to use. If None, uses default from settings.
            response_format: Pass "json" to constrain output to JSON.
            timeout: Request timeout in seconds. Defaults to settings.

        Returns:
            Response dictionary from /api/chat.

        Raises:
            OllamaConnectionError: If unable to connect to Ollama.
            OllamaInferenceError: If inference fails.
        """
        model = model or self.settings.ollama_model
        logger.debug("chat_started", model=model, message_count=len(messages))

        payload: dict[str, Any] = {"model": model, "messages": messages, "stream": False}
        if response_format:
            payload["format"] = response_format

        return await asyncio.to_thread(
            self._post, "/api/chat", payload, timeout or self.settings.inference_timeout
        )

    async def infer(
        self,
        system_prompt: str,
        user_prompt: str,
        *,
        response_format: str = "json",
        timeout: Optional[float] = None,
    ) -> InferenceResult:
        """Run one system/user exchange and parse the reply as a JSON object.

        Never raises: timeouts, transport errors and unparsable output are
        reported through ``InferenceResult.failed``.
        """
        timeout = timeout or self.settings.inference_timeout
        messages = [
            {"role": "system", "content": system_prompt},
            {"role": "user", "content": user_prompt},
        ]

        try:
            response = await asyncio.wait_for(
                self.chat(messages, response_format=response_format, timeout=timeout),
                timeout=timeout,
            )
        except asyncio.TimeoutError:
            logger.warning("ollama_infer_timeout", timeout=timeout)
            return InferenceResult.failed(f"inference timed out after {timeout:g}s")
        except Exception as exc:  # noqa: BLE001
            logger.warning("ollama_infer_failed", error=str(exc))
            return InferenceResult.failed(str(exc))

        raw = ((response.get("message") or {}).get("content") or "").strip()
        if response_format != "json":
            return InferenceResult.ok({"content": raw}, raw=raw)

        try:
            return InferenceResult.ok(extract_json_object(raw), raw=raw)
        except ValueError as exc:
            logger.warning("ollama_infer_unparsable", error=str(exc), raw_length=len(raw))
            return InferenceResult.failed(str(exc), raw=raw)

    def _post(self, path: str, payload: dict[str, Any], timeout: float) -> dict[str, Any]:
        req = urllib.request.Request(
            url=f"{self._host}{path}",
            data=json.dumps(payload).encode("utf-8"),
            headers={"Content-Type": "application/json"},
            method="POST",
        )

        try:
            with urllib.request.urlopen(req, timeout=timeout) as resp:  # noqa: S310
                body = resp.read().decode("utf-8")
        except urllib.error.HTTPError as exc:
            raise OllamaInferenceError(f"Ollama returned HTTP {exc.code} for {path}") from exc
        except (urllib.error.URLError, TimeoutError, OSError) as exc:
            raise OllamaConnectionError(f"Unable to reach Ollama at {self._host}: {exc}") from exc

        try:
            data = json.loads(body)
        except json.JSONDecodeError as exc:
            raise OllamaInferenceError(f"Ollama returned invalid JSON for {path}") from exc
        if not isinstance(data, dict):
            raise OllamaInferenceError(f"Ollama returned unexpected payload for {path}")
        if data.get("error"):
            raise OllamaInferenceError(str(data["error"]))
        return data
