"""Source-adapter exceptions."""


class ProviderError(Exception):
    """Base exception for source adapter errors."""

    pass


class SourceUnavailableError(ProviderError):
    """Raised when a source call fails or times out."""

    pass


class AuthenticationError(SourceUnavailableError):
    """Raised when the external platform rejects or lacks an API key."""

    pass


class MalformedRecordError(ProviderError):
    """Raised when a raw record cannot be normalized."""

    pass
