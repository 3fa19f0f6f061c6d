"""CLI entry point and argument parsing"""

import argparse
import sys
from rich.console import Console

from oauth import AuthBroker, UnknownProviderError
from utils.storage import SettingsStore
from cli.status_display import show_auth_status


console = Console()


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="TinyClaw auth broker")
    parser.add_argument("--debug", "-d", action="store_true", help="Enable debug logging")
    parser.add_argument("--bind", "-b", default=None, help="Override bind address (default: from config)")
    parser.add_argument("--port", "-p", type=int, default=None, help="Override port (default: from config)")
    parser.add_argument(
        "--settings-file",
        default=None,
        help="Settings document to operate on (default: SETTINGS_FILE from config)"
    )

    subparsers = parser.add_subparsers(dest="command")
    subparsers.add_parser("serve", help="Run the gateway HTTP server (default)")
    subparsers.add_parser("status", help="Show provider connection status")

    set_key = subparsers.add_parser("set-key", help="Store a static API key for a provider")
    set_key.add_argument("provider", help="Provider tag (claude, openai)")
    set_key.add_argument("api_key", help="API key to store")

    disconnect = subparsers.add_parser("disconnect", help="Remove all stored credentials for a provider")
    disconnect.add_argument("provider", help="Provider tag (claude, openai)")

    return parser


def run_command(args: argparse.Namespace) -> int:
    """Run a non-server command against the settings document

    Returns:
        Process exit code
    """
    broker = AuthBroker(store=SettingsStore(args.settings_file))

    if args.command == "status":
        show_auth_status(broker, console)
        return 0

    try:
        manager = broker.get(args.provider)
        if args.command == "set-key":
            manager.save_api_key(args.api_key)
            console.print(f"[green]✓ {manager.provider.display_name} API key saved[/green]")
        else:
            manager.disconnect()
            console.print(f"[green]✓ {manager.provider.display_name} disconnected[/green]")
    except (UnknownProviderError, ValueError) as e:
        console.print(f"[red]ERROR:[/red] {e}")
        return 1
    return 0


def main(argv=None):
    """Entry point for the CLI"""
    args = build_parser().parse_args(argv)

    try:
        if args.command in (None, "serve"):
            from gateway import GatewayServer

            GatewayServer(
                debug=args.debug,
                bind_address=args.bind,
                port=args.port,
                settings_file=args.settings_file,
            ).run()
            return

        sys.exit(run_command(args))

    except KeyboardInterrupt:
        console.print("\n[yellow]Interrupted by user[/yellow]")
        console.print("Goodbye!")


if __name__ == "__main__":
    main()
