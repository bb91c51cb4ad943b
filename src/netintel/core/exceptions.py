"""
Custom exceptions for the network intel system
"""

from typing import Optional


class NetworkIntelException(Exception):
    def __init__(self, message: str, provider: Optional[str] = None):
        self.message = message
        self.provider = provider
        super().__init__(self.message)


class ProviderError(NetworkIntelException):
    """A single provider could not deliver a usable response"""

    reason = "request-failed"


class ProviderHTTPError(ProviderError):
    def __init__(self, status: int, provider: Optional[str] = None):
        super().__init__(f"Provider responded with HTTP {status}", provider)
        self.status = status
        self.reason = f"http-{status}"


class ProviderTimeoutError(ProviderError):
    reason = "timeout"


class ProviderNetworkError(ProviderError):
    reason = "network-error"


class ProviderDecodeError(ProviderError):
    reason = "decode-error"


class ValidationError(NetworkIntelException):
    pass


class ConfigurationError(NetworkIntelException):
    pass
