"""Deskbridge exception hierarchy."""

from __future__ import annotations


class DeskbridgeError(Exception):
    """Base class for all Deskbridge errors."""


class ConfigError(DeskbridgeError):
    """Startup configuration is unusable."""


class HelpdeskError(DeskbridgeError):
    """The helpdesk API rejected or failed a request."""

    def __init__(self, message: str, *, status_code: int | None = None, body: str = "") -> None:
        super().__init__(message)
        self.status_code = status_code
        self.body = body


class ModelError(DeskbridgeError):
    """The language model returned no usable reply."""


class WidgetScopeError(DeskbridgeError):
    """Widget capability was requested outside of a widget scope."""
