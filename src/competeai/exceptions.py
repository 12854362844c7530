"""Exceptions raised across CompeteAI components."""

from __future__ import annotations


class CompeteAIError(Exception):
    """Base exception for CompeteAI errors."""

    def __init__(self, message: str = "CompeteAI error"):
        self.message = message
        super().__init__(self.message)


class InvalidQueryError(CompeteAIError):
    """Raised for empty queries or malformed search parameters."""

    def __init__(self, message: str = "Query is required"):
        super().__init__(message)


class ConfigurationMissingError(CompeteAIError):
    """Raised when a required provider credential is not configured."""

    def __init__(self, setting: str, message: str | None = None):
        self.setting = setting
        super().__init__(message or f"{setting.upper()} is not configured")


class ProviderCallError(CompeteAIError):
    """Raised when a hosted model call fails (network, auth or rate limit)."""

    def __init__(self, provider: str, message: str):
        self.provider = provider
        self.provider_message = message
        super().__init__(f"{provider}: {message}")


class EmbeddingGenerationFailed(ProviderCallError):
    """Raised when the embedding provider fails."""

    pass


class CompletionFailed(ProviderCallError):
    """Raised when the completion provider fails."""

    pass


class ProviderTimeoutError(ProviderCallError):
    """Raised when a provider call exceeds the configured timeout."""

    def __init__(self, provider: str, timeout: float):
        self.timeout = timeout
        super().__init__(provider, f"upstream timed out after {timeout:.1f}s")


class ItemProcessingError(CompeteAIError):
    """Raised when a single record cannot be formatted, embedded or stored."""

    def __init__(self, content_type: str, content_id: str, message: str):
        self.content_type = content_type
        self.content_id = content_id
        super().__init__(f"{content_type}/{content_id}: {message}")


class StoreUnavailableError(CompeteAIError):
    """Raised when the embedding store cannot be reached."""

    def __init__(self, message: str = "Embedding store unavailable"):
        super().__init__(message)
