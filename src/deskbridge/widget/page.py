"""Landing page that embeds the Chatwoot widget."""

from __future__ import annotations

import html
import json
from datetime import UTC, datetime

from fastapi import FastAPI
from fastapi.responses import HTMLResponse, Response

from deskbridge.config import WidgetConfig
from deskbridge.widget.loader import ScriptTag, WidgetLoader

_SNIPPET = """(function () {{
  var options = {options};
  var state = {{ isLoaded: false, isOpen: false }};
  function markLoaded() {{ state.isLoaded = true; }}
  window.deskbridgeWidget = {{
    get isLoaded() {{ return state.isLoaded; }},
    get isOpen() {{ return state.isOpen; }},
    toggle: function () {{
      if (!state.isLoaded || !window.chatwootSDK) {{ return; }}
      window.chatwootSDK.toggle();
      state.isOpen = !state.isOpen;
    }}
  }};
  if (window.chatwootSDK) {{
    markLoaded();
    return;
  }}
  var script = document.createElement("script");
  script.src = {src};
  script.async = {async_};
  script.defer = {defer};
  script.onload = function () {{
    if (window.chatwootSDK) {{
      window.chatwootSDK.run(options);
      markLoaded();
    }}
  }};
  document.head.appendChild(script);
}})();"""

_PAGE = """<!DOCTYPE html>
<html lang="en">
<head>
<meta charset="utf-8">
<meta name="viewport" content="width=device-width, initial-scale=1">
<title>{title}</title>
</head>
<body>
<div class="App">
  <header class="App-header">
    <h1>{title}</h1>
    <p>{tagline}</p>
  </header>
</div>
<script>
{snippet}
</script>
</body>
</html>
"""


def _js(value: object) -> str:
    # "</" would end the surrounding <script> element.
    return json.dumps(value).replace("</", "<\\/")


def render_embed_snippet(config: WidgetConfig) -> str:
    """JavaScript that injects the widget script once and exposes a toggle."""
    loader = WidgetLoader(config)
    tag = ScriptTag(src=config.sdk_url)
    return _SNIPPET.format(
        options=_js(loader.run_options()),
        src=_js(tag.src),
        async_=_js(tag.async_),
        defer=_js(tag.defer),
    )


def render_page(config: WidgetConfig) -> str:
    return _PAGE.format(
        title=html.escape(config.page_title),
        tagline=html.escape(config.page_tagline),
        snippet=render_embed_snippet(config),
    )


def create_widget_app(config: WidgetConfig) -> FastAPI:
    """Standalone app serving the widget page; shares nothing with the relay."""
    app = FastAPI(title=config.page_title, version="1.0.0")
    page = render_page(config)
    snippet = render_embed_snippet(config)

    @app.get("/", response_class=HTMLResponse)
    async def index() -> HTMLResponse:
        return HTMLResponse(page)

    @app.get("/widget.js")
    async def widget_script() -> Response:
        return Response(snippet, media_type="application/javascript")

    @app.get("/health")
    async def health() -> dict:
        return {
            "status": "healthy",
            "timestamp": datetime.now(UTC).isoformat(),
            "service": "widget",
        }

    return app
