"""Exception types raised by the review pipeline."""


class ConfigurationError(ValueError):
    """Missing or invalid client configuration (credential, provider, relay)."""


class ProviderRequestError(RuntimeError):
    """A provider or relay request failed (network error or non-success status)."""

    def __init__(self, message: str, url: str = "", status: int | None = None):
        super().__init__(message)
        self.url = url
        self.status = status


class SessionCancelled(RuntimeError):
    """The caller cancelled a running review session."""


class SessionStateError(RuntimeError):
    """An orchestrator was asked to run outside the idle state."""
