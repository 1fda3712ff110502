"""Chatwoot website widget loader.

Models the page-side lifecycle of the Chatwoot SDK: inject the script once,
start the widget when it loads, and let the page toggle it open or closed.
"""

from __future__ import annotations

from collections.abc import Iterator
from contextlib import contextmanager
from contextvars import ContextVar
from dataclasses import dataclass
from enum import Enum
from typing import Any, Protocol

import structlog

from deskbridge.config import WidgetConfig
from deskbridge.errors import WidgetScopeError

logger = structlog.get_logger()


class WidgetSDK(Protocol):
    """The ``window.chatwootSDK`` object exposed by the widget script."""

    def run(self, config: dict[str, Any]) -> None: ...

    def toggle(self) -> None: ...


class LoadState(str, Enum):
    UNLOADED = "unloaded"
    LOADING = "loading"
    LOADED = "loaded"


@dataclass(frozen=True)
class ScriptTag:
    src: str
    async_: bool = True
    defer: bool = True


class WidgetLoader:
    """One page lifetime of the widget: unloaded → loading → loaded."""

    def __init__(self, config: WidgetConfig) -> None:
        self.config = config
        self.state = LoadState.UNLOADED
        self.is_open = False
        self._sdk: WidgetSDK | None = None

    @property
    def is_loaded(self) -> bool:
        return self.state is LoadState.LOADED

    def run_options(self) -> dict[str, Any]:
        return {
            "websiteToken": self.config.website_token,
            "baseUrl": self.config.base_url,
            "launcherTitle": self.config.launcher_title,
        }

    def mount(self, existing_sdk: WidgetSDK | None = None) -> ScriptTag | None:
        """Return the script tag to inject, or None if nothing needs injecting."""
        if self.state is not LoadState.UNLOADED:
            return None

        if existing_sdk is not None:
            self._sdk = existing_sdk
            self.state = LoadState.LOADED
            logger.info("widget.reused")
            return None

        self.state = LoadState.LOADING
        logger.info("widget.loading", src=self.config.sdk_url)
        return ScriptTag(src=self.config.sdk_url)

    def on_script_load(self, sdk: WidgetSDK | None) -> None:
        """Start the widget once the injected script has executed."""
        if self.state is not LoadState.LOADING or sdk is None:
            return
        sdk.run(self.run_options())
        self._sdk = sdk
        self.state = LoadState.LOADED
        logger.info("widget.loaded", base_url=self.config.base_url)

    def toggle(self) -> None:
        if self._sdk is None or not self.is_loaded:
            return
        self._sdk.toggle()
        self.is_open = not self.is_open

    def capability(self) -> WidgetState:
        return WidgetState(self)


class WidgetState:
    """What a page component may read from and do with the widget.

    Reads go through to the loader, so a capability obtained before the
    script loads still reports the current state afterwards.
    """

    def __init__(self, loader: WidgetLoader) -> None:
        self.loader = loader

    @property
    def is_loaded(self) -> bool:
        return self.loader.is_loaded

    @property
    def is_open(self) -> bool:
        return self.loader.is_open

    def toggle(self) -> None:
        self.loader.toggle()


_current_loader: ContextVar[WidgetLoader | None] = ContextVar("deskbridge_widget", default=None)


@contextmanager
def widget_scope(loader: WidgetLoader) -> Iterator[WidgetLoader]:
    """Make ``loader`` available to use_widget() for the duration of the block."""
    token = _current_loader.set(loader)
    try:
        yield loader
    finally:
        _current_loader.reset(token)


def use_widget() -> WidgetState:
    loader = _current_loader.get()
    if loader is None:
        raise WidgetScopeError("use_widget must be called within a widget_scope")
    return loader.capability()
