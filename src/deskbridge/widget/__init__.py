"""Chatwoot website widget embedding."""

from deskbridge.widget.loader import (
    LoadState,
    ScriptTag,
    WidgetLoader,
    WidgetSDK,
    WidgetState,
    use_widget,
    widget_scope,
)
from deskbridge.widget.page import create_widget_app, render_embed_snippet, render_page

__all__ = [
    "LoadState",
    "ScriptTag",
    "WidgetLoader",
    "WidgetSDK",
    "WidgetState",
    "create_widget_app",
    "render_embed_snippet",
    "render_page",
    "use_widget",
    "widget_scope",
]
