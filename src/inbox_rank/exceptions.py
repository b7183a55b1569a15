"""Custom exceptions for InboxRank."""


class InboxRankError(Exception):
    """Base exception for all InboxRank errors."""


class OllamaConnectionError(InboxRankError):
    """Exception raised when unable to connect to Ollama."""


class OllamaInferenceError(InboxRankError):
    """Exception raised when Ollama inference fails or returns unusable output."""


class StoreError(InboxRankError):
    """Exception raised for item store failures."""
