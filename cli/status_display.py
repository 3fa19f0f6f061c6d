"""Status display functionality for CLI"""

from datetime import datetime
from typing import Any, Dict, Optional

from rich.table import Table

from oauth import AuthBroker


def format_expiry(expires_at_ms: Optional[int]) -> str:
    """Human readable remaining lifetime of a stored OAuth token"""
    if not expires_at_ms:
        return "-"

    remaining = int(expires_at_ms / 1000 - datetime.now().timestamp())
    if remaining <= 0:
        return "[red]expired[/red]"

    hours = remaining // 3600
    minutes = (remaining % 3600) // 60
    days = hours // 24
    if days > 0:
        return f"{days}d {hours % 24}h"
    if hours > 0:
        return f"{hours}h {minutes}m"
    return f"{minutes}m"


def show_auth_status(broker: AuthBroker, console):
    """
    Display connection status of every provider

    Args:
        broker: AuthBroker instance
        console: Rich console for output
    """
    document = broker.store.load()
    models: Dict[str, Any] = document.get("models") if isinstance(document.get("models"), dict) else {}

    table = Table(title="Provider Authentication")
    table.add_column("Provider", style="cyan")
    table.add_column("Connected")
    table.add_column("Method")
    table.add_column("Token Expires")

    for manager in broker.managers.values():
        status = manager.get_status()
        record = models.get(manager.provider.settings_key) or {}
        expires = format_expiry(record.get("oauth_expires_at")) if status.method == "oauth" else "-"
        table.add_row(
            manager.provider.display_name,
            "[green]Yes[/green]" if status.connected else "[red]No[/red]",
            status.method or "-",
            expires,
        )

    console.print(table)
    console.print(f"Settings file: {broker.store.settings_file}")
    console.print(f"Default provider: {models.get('provider') or 'anthropic'}")
