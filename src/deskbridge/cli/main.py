"""Deskbridge CLI — run the relay and widget page, and poke a running relay."""

from __future__ import annotations

import json
from datetime import UTC, datetime
from typing import Any

import httpx
import typer
from rich.console import Console
from rich.table import Table

from deskbridge.config import DeskbridgeConfig

app = typer.Typer(
    name="deskbridge",
    help="Deskbridge — Chatwoot AI relay",
    no_args_is_help=True,
    add_completion=False,
)

console = Console()

DEFAULT_URL = "http://localhost:3001"


def _sample_event(content: str, conversation_id: int, sender_name: str) -> dict[str, Any]:
    """A message_created webhook shaped like the ones Chatwoot delivers."""
    now = datetime.now(UTC).isoformat()
    sender = {
        "id": 400615803,
        "name": sender_name,
        "email": "user@example.com",
        "type": "contact",
    }
    return {
        "event": "message_created",
        "account": {"id": 1, "name": "Test Account"},
        "content_type": "text",
        "content": content,
        "message_type": "incoming",
        "private": False,
        "conversation": {
            "id": conversation_id,
            "channel": "Channel::WebWidget",
            "can_reply": True,
            "status": "open",
            "created_at": now,
        },
        "message": {
            "id": 67890,
            "content": content,
            "content_type": "text",
            "private": False,
            "message_type": 0,
            "sender": sender,
            "created_at": now,
        },
        "sender": sender,
        "created_at": now,
    }


@app.command()
def serve(
    host: str = typer.Option("", "--host", help="Bind host (default from config)"),
    port: int = typer.Option(0, "--port", "-p", help="Bind port (default from config)"),
) -> None:
    """Run the webhook relay server."""
    from deskbridge.main import run

    config = DeskbridgeConfig.load()
    bind_port = port or config.port
    console.print(f"[bold cyan]Deskbridge relay[/bold cyan] on http://localhost:{bind_port}")
    console.print(f"  webhook: http://localhost:{bind_port}/webhook")
    console.print(f"  health:  http://localhost:{bind_port}/health")
    run(config, host=host or None, port=bind_port)


@app.command()
def widget(
    host: str = typer.Option("", "--host", help="Bind host (default from config)"),
    port: int = typer.Option(0, "--port", "-p", help="Bind port (default from config)"),
) -> None:
    """Serve the page that embeds the Chatwoot widget."""
    import uvicorn

    from deskbridge.logging import setup_logging
    from deskbridge.widget import create_widget_app

    config = DeskbridgeConfig.load()
    setup_logging(level=config.log_level, fmt=config.log_format, service="deskbridge-widget")
    if not config.widget.website_token:
        console.print("[yellow]DESKBRIDGE_WIDGET_WEBSITE_TOKEN is not set; the widget will not start.[/yellow]")
    bind_port = port or config.widget.port
    console.print(f"[bold cyan]Widget page[/bold cyan] on http://localhost:{bind_port}")
    uvicorn.run(
        create_widget_app(config.widget),
        host=host or config.widget.host,
        port=bind_port,
        log_level="warning",
    )


@app.command("send-test")
def send_test(
    base_url: str = typer.Option(DEFAULT_URL, "--url", "-u", envvar="DESKBRIDGE_URL"),
    content: str = typer.Option("what about the session management", "--content", "-c"),
    conversation_id: int = typer.Option(12345, "--conversation-id"),
    sender_name: str = typer.Option("Test User", "--sender"),
) -> None:
    """Post a sample message_created event to a running relay."""
    payload = _sample_event(content, conversation_id, sender_name)
    console.print(f"Sending webhook event to [cyan]{base_url}/webhook[/cyan]")
    console.print(f"  content: {content}")
    console.print(f"  sender: {sender_name}")
    console.print(f"  conversation: {conversation_id}")

    try:
        resp = httpx.post(f"{base_url.rstrip('/')}/webhook", json=payload, timeout=30.0)
    except httpx.ConnectError:
        console.print(f"[red]✗[/red] Deskbridge is not running at {base_url}")
        console.print("Start it with: deskbridge serve")
        raise typer.Exit(1)

    if resp.status_code >= 400:
        console.print(f"[red]✗ Webhook test failed ({resp.status_code}):[/red] {resp.text}")
        raise typer.Exit(1)

    console.print("[green]✓[/green] Webhook accepted")
    console.print_json(json.dumps(resp.json()))


@app.command()
def health(
    base_url: str = typer.Option(DEFAULT_URL, "--url", "-u", envvar="DESKBRIDGE_URL"),
) -> None:
    """Check a running relay's health endpoint."""
    try:
        resp = httpx.get(f"{base_url.rstrip('/')}/health", timeout=10.0)
        resp.raise_for_status()
    except httpx.ConnectError:
        console.print(f"[red]✗[/red] Deskbridge is not running at {base_url}")
        raise typer.Exit(1)
    except httpx.HTTPStatusError as e:
        console.print(f"[red]Error {e.response.status_code}:[/red] {e.response.text}")
        raise typer.Exit(1)

    data = resp.json()
    table = Table(title="Deskbridge Status", show_header=False, border_style="blue")
    table.add_column("Key", style="bold")
    table.add_column("Value")
    table.add_row("Status", f"[green]{data.get('status', '?')}[/green]")
    table.add_row("Service", str(data.get("service", "?")))
    table.add_row("Timestamp", str(data.get("timestamp", "?")))

    console.print()
    console.print(table)
    console.print()


@app.command("config")
def show_config() -> None:
    """Print the effective configuration with secrets masked."""
    console.print_json(json.dumps(DeskbridgeConfig.load().masked()))


if __name__ == "__main__":
    app()
