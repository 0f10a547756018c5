"""Error kinds raised by the study assistant services."""

from typing import Optional


class ConfigurationError(Exception):
    """A required provider setting is missing or invalid."""


class ProviderHTTPError(Exception):
    """An LLM provider answered with a non-success status."""

    def __init__(self, provider: str, status_code: int, body: str = ""):
        self.provider = provider
        self.status_code = status_code
        self.body = body
        super().__init__(f"API Error ({provider}): {status_code} {body}".rstrip())


class ProviderRateLimitError(ProviderHTTPError):
    """The provider rejected the call for rate-limit or quota reasons."""

    def __init__(
        self,
        provider: str,
        status_code: int = 429,
        body: str = "",
        retry_after: Optional[float] = None,
    ):
        super().__init__(provider, status_code, body)
        self.retry_after = retry_after

    def user_hint(self) -> str:
        if self.retry_after is not None:
            return (
                f"{self.provider} quota exceeded. Retry in about "
                f"{int(round(self.retry_after))}s or switch provider."
            )
        return f"{self.provider} quota exceeded. Wait a moment or switch provider."


class DocumentParseError(ValueError):
    """Text could not be extracted from an uploaded file."""


class EmptyMessageError(ValueError):
    """A chat submission contained no text."""


class SessionBusyError(Exception):
    """A chat session already has a request in flight."""
