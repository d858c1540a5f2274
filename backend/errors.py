"""Exceptions raised by the roster/conditions engine and provider clients."""


class InvalidArgument(ValueError):
    """A caller broke a function's input contract (programming error)."""


class ProviderError(Exception):
    """An external provider (weather, places) failed; safe to retry later."""

    def __init__(self, provider: str, message: str):
        super().__init__(f"{provider}: {message}")
        self.provider = provider
        self.message = message


class ProviderNotConfigured(ProviderError):
    """The provider needs credentials that are not configured."""
