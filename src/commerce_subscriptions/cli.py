"""Typer CLI for managing platform subscriptions."""

from __future__ import annotations

import json
from pathlib import Path

import typer
from rich.console import Console
from rich.table import Table

from commerce_subscriptions.client.api import PlatformClient
from commerce_subscriptions.config.loader import (
    load_provider_config,
    load_subscription_config,
    load_yaml,
)
from commerce_subscriptions.config.models import ProviderConfig, SubscriptionConfig
from commerce_subscriptions.destinations.errors import DestinationError
from commerce_subscriptions.destinations.validator import validate_destination
from commerce_subscriptions.lifecycle.destroy import (
    Inconclusive,
    ResourceHandle,
    StillExists,
)
from commerce_subscriptions.observability.log_setup import configure_logging
from commerce_subscriptions.resources.subscription import (
    SubscriptionService,
    build_draft,
)

console = Console()
app = typer.Typer(name="ctsub", help="Platform subscription management CLI")


@app.callback()
def main(
    log_level: str = typer.Option(
        "WARNING", "--log-level", envvar="CTSUB_LOG_LEVEL", help="Log level"
    ),
    log_json: bool = typer.Option(False, "--log-json", help="Emit JSON logs"),
) -> None:
    configure_logging(log_level, json=log_json)


def _load_subscription(config_path: str) -> SubscriptionConfig:
    path = Path(config_path)
    if not path.exists():
        console.print(f"[red]Config file not found: {path}[/red]")
        raise typer.Exit(1)
    return load_subscription_config(path)


def _service(provider_config: str | None) -> tuple[SubscriptionService, PlatformClient]:
    provider: ProviderConfig = load_provider_config(
        Path(provider_config) if provider_config else None
    )
    client = PlatformClient(provider.client)
    return SubscriptionService(client, provider.destroy_wait), client


@app.command()
def validate(
    config_path: str = typer.Argument(..., help="Path to subscription YAML"),
) -> None:
    """Validate a subscription configuration file."""
    path = Path(config_path)
    try:
        raw = load_yaml(path)
    except Exception as exc:
        console.print(f"[red]Validation error:[/red] {exc}")
        raise typer.Exit(1) from exc

    # Report destination problems on their own first; they are the common case.
    destination = raw.get("destination")
    error = (
        validate_destination(destination) if isinstance(destination, dict) else None
    )
    if error is not None:
        console.print("[red]Invalid destination:[/red]")
        for line in error.messages():
            console.print(f"  - {line}")
        raise typer.Exit(1)

    try:
        cfg = load_subscription_config(path)
    except Exception as exc:
        console.print(f"[red]Validation error:[/red] {exc}")
        raise typer.Exit(1) from exc

    console.print(f"[green]Valid[/green] — key={cfg.key or '(none)'}")
    console.print(f"  destination: {cfg.destination['type']}")
    console.print(f"  format:      {cfg.format.type}")
    console.print(f"  changes:     {len(cfg.changes)}")
    console.print(f"  messages:    {len(cfg.messages)}")


@app.command()
def plan(
    config_path: str = typer.Argument(..., help="Path to subscription YAML"),
) -> None:
    """Print the subscription draft that would be sent (secrets masked)."""
    try:
        cfg = _load_subscription(config_path)
        draft = build_draft(cfg, reveal_secrets=False)
    except (DestinationError, ValueError) as exc:
        console.print(f"[red]Validation error:[/red] {exc}")
        raise typer.Exit(1) from exc
    console.print_json(json.dumps(draft))


@app.command()
def apply(
    config_path: str = typer.Argument(..., help="Path to subscription YAML"),
    provider_config: str | None = typer.Option(
        None, "--provider-config", help="Provider YAML"
    ),
) -> None:
    """Validate the config and create the subscription."""
    try:
        cfg = _load_subscription(config_path)
    except ValueError as exc:
        console.print(f"[red]Validation error:[/red] {exc}")
        raise typer.Exit(1) from exc

    try:
        service, client = _service(provider_config)
        with client:
            handle = service.create(cfg)
    except Exception as exc:
        console.print(f"[red]Error creating subscription:[/red] {exc}")
        raise typer.Exit(1) from exc
    console.print(
        f"[green]Subscription created:[/green] id={handle.id} version={handle.version}"
    )


@app.command()
def show(
    subscription_id: str = typer.Argument(..., help="Subscription ID"),
    provider_config: str | None = typer.Option(
        None, "--provider-config", help="Provider YAML"
    ),
) -> None:
    """Show a subscription as stored on the platform."""
    try:
        service, client = _service(provider_config)
        with client:
            remote = service.read(ResourceHandle(id=subscription_id))
    except Exception as exc:
        console.print(f"[red]Error reading subscription:[/red] {exc}")
        raise typer.Exit(1) from exc
    if remote is None:
        console.print(f"[yellow]Subscription {subscription_id} not found[/yellow]")
        raise typer.Exit(1)

    table = Table(title=f"Subscription — {remote.id}")
    table.add_column("Field", style="cyan")
    table.add_column("Value")
    table.add_row("key", remote.key or "")
    table.add_row("version", str(remote.version))
    table.add_row("status", remote.status or "")
    table.add_row("destination", str(remote.destination.get("type", "")))
    table.add_row("changes", str(len(remote.changes)))
    table.add_row("messages", str(len(remote.messages)))
    console.print(table)


def _report_destroy(subscription_id: str, result: object) -> None:
    if result is None:
        console.print(f"[green]Subscription {subscription_id} destroyed[/green]")
        return
    if isinstance(result, StillExists):
        console.print(f"[red]{result}[/red]")
        raise typer.Exit(1)
    if isinstance(result, Inconclusive):
        console.print(f"[yellow]{result}[/yellow]")
        raise typer.Exit(2)


@app.command()
def destroy(
    subscription_id: str = typer.Argument(..., help="Subscription ID"),
    version: int | None = typer.Option(
        None, "--version", help="Expected version (looked up when omitted)"
    ),
    wait: bool = typer.Option(False, "--wait", help="Poll until the delete is visible"),
    yes: bool = typer.Option(False, "--yes", "-y", help="Skip confirmation"),
    provider_config: str | None = typer.Option(
        None, "--provider-config", help="Provider YAML"
    ),
) -> None:
    """Delete a subscription and confirm it is gone."""
    if not yes:
        confirm = typer.confirm(f"Delete subscription '{subscription_id}'?")
        if not confirm:
            console.print("[yellow]Cancelled[/yellow]")
            raise typer.Exit(0)

    try:
        service, client = _service(provider_config)
        with client:
            service.delete(ResourceHandle(id=subscription_id, version=version))
            if wait:
                result = service.wait_until_destroyed(subscription_id)
            else:
                result = service.confirm_destroyed(subscription_id)
    except Exception as exc:
        console.print(f"[red]Error deleting subscription:[/red] {exc}")
        raise typer.Exit(1) from exc
    _report_destroy(subscription_id, result)


@app.command("check-destroyed")
def check_destroyed(
    subscription_id: str = typer.Argument(..., help="Subscription ID"),
    provider_config: str | None = typer.Option(
        None, "--provider-config", help="Provider YAML"
    ),
) -> None:
    """Check once whether a subscription is gone (exit 1: exists, 2: unknown)."""
    try:
        service, client = _service(provider_config)
    except Exception as exc:
        console.print(f"[red]Error loading provider config:[/red] {exc}")
        raise typer.Exit(1) from exc
    with client:
        result = service.confirm_destroyed(subscription_id)
    _report_destroy(subscription_id, result)
