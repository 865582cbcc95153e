"""
Provider error types.

Mandatory upstream steps (the completion call) raise these; optional
enrichment providers catch their own failures and return None.
"""

from typing import Optional


class ProviderError(Exception):
    """An upstream provider call failed (network error or non-2xx status)."""

    def __init__(self, message: str, provider_name: str = "", status: Optional[int] = None):
        super().__init__(message)
        self.message = message
        self.provider_name = provider_name
        self.status = status

    def __str__(self) -> str:
        if self.provider_name:
            return f"[{self.provider_name}] {self.message}"
        return self.message


class ConfigurationError(Exception):
    """A required setting (such as the completion API key) is missing."""

    def __init__(self, setting: str, message: Optional[str] = None):
        self.setting = setting
        super().__init__(message or f"{setting} is not configured on the server")
