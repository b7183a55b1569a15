"""Ollama-backed inference."""

from .client import OllamaClient

__all__ = ["OllamaClient"]
