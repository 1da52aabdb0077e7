"""
Exceptions shared by the mini-apps.
"""


class MiniAppError(Exception):
    """Base class for all mini-app errors."""


class ConfigurationError(MiniAppError):
    """Required configuration (API key, base URL) is missing or invalid.

    Raised while building a provider; the apps report it once and exit.
    """


class ProviderRequestError(MiniAppError):
    """A call to an LLM backend failed.

    Covers transport failures, non-2xx statuses and malformed payloads.
    The message is prefixed with the backend name and carries the
    backend's own diagnostic text.
    """

    def __init__(self, provider: str, message: str):
        self.provider = provider
        self.detail = message
        super().__init__(f"{provider} API request failed: {message}")
