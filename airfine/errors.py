"""Exceptions raised by airfine."""


class AirfineError(Exception):
    """Base exception for airfine errors."""

    pass


class ConfigurationError(AirfineError):
    """Raised when credentials or provider configuration are missing or invalid."""

    pass


class InvalidInputError(AirfineError):
    """Raised when the transformation input is unusable (e.g. empty prompt)."""

    pass


class ProviderError(AirfineError):
    """Raised when a vendor call fails or returns a malformed response.

    The message is the vendor's own error message where one was returned.
    """

    def __init__(self, message: str, provider: str | None = None, status_code: int | None = None):
        super().__init__(message)
        self.provider = provider
        self.status_code = status_code


class AuthenticationError(ProviderError):
    """Raised when the vendor rejects the credential (401/403)."""

    pass
