#!/usr/bin/env python3
"""
Polo Bridge CLI

Command-line front end for the Marco bridge client: vibe check, one-shot
send/poll, and a long-running relay for standalone use.
"""

import argparse
import logging
import os
import signal
import sys
import time
import uuid
from dataclasses import replace
from pathlib import Path
from typing import Iterable, List, Optional

from rich.console import Console
from rich.markup import escape
from rich.table import Table

from utils.env_config import load_env_file
from utils.logging_config import setup_logging
from utils.paths import PoloPaths

from .client import ChatBridgeClient
from .config import BridgeConfig, ENV_FIELDS
from .host import ThreadedHost
from .relay import ChatRelay
from .types import Player
from .version import __version__

logger = logging.getLogger('polo.cli')

console = Console()

STATUS_INTERVAL = 30  # seconds between status prints in `run`


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog='polo-bridge',
        description='Relay chat between a game server and a Marco bridge',
    )
    parser.add_argument('--version', action='version', version=f'%(prog)s {__version__}')
    parser.add_argument('--config', type=Path, help='Path to bridge.json')
    parser.add_argument('--host', help='Bridge host (overrides config)')
    parser.add_argument('--port', type=int, help='Bridge port (overrides config)')
    parser.add_argument('--token', help='Bearer token (overrides config)')
    parser.add_argument('--debug', action='store_true', help='Enable debug logging')
    parser.add_argument('--log-file', nargs='?', const=PoloPaths.get_log_file(), type=Path,
                        help='Also write a rotating log (default location if no path given)')

    sub = parser.add_subparsers(dest='command', required=True)

    sub.add_parser('check', help='Run the vibe check against the bridge')

    send = sub.add_parser('send', help='Send one chat message to the room')
    send.add_argument('text', help='Message text')
    send.add_argument('--name', default='Console', help='Player display name')
    send.add_argument('--uuid', dest='player_uuid', help='Player UUID (random if omitted)')

    sub.add_parser('poll', help='Fetch new room messages once and print them')

    run = sub.add_parser('run', help='Relay room messages until interrupted')
    run.add_argument('--interval', type=float, help='Seconds between polls')

    sub.add_parser('config', help='Show the effective configuration')

    return parser


def resolve_config(args: argparse.Namespace) -> BridgeConfig:
    """Config file, then POLO_* environment, then command-line flags."""
    load_env_file()
    config = BridgeConfig.from_env(BridgeConfig.load(args.config))
    overrides = cli_overrides(args)
    return replace(config, **overrides) if overrides else config


def cli_overrides(args: argparse.Namespace) -> dict:
    """Config fields set explicitly on the command line"""
    overrides = {}
    if args.host:
        overrides['host'] = args.host
    if args.port is not None:
        overrides['port'] = args.port
    if args.token is not None:
        overrides['token'] = args.token
    if args.debug:
        overrides['log_level'] = 'DEBUG'
    return overrides


def cmd_check(client: ChatBridgeClient) -> int:
    if client.check_health():
        console.print(f"[green]Vibe check passed[/green] ({client.config.base_url})")
        return 0
    console.print(f"[red]Vibe check failed[/red] ({client.config.base_url})")
    return 1


def cmd_send(client: ChatBridgeClient, args: argparse.Namespace) -> int:
    player = Player(uuid=args.player_uuid or str(uuid.uuid4()), name=args.name)
    result = client.send_outbound(player, args.text)
    if result.ok:
        console.print("[green]Message sent[/green]")
        return 0
    console.print(f"[red]Send failed:[/red] {escape(str(result.failure))}")
    return 1


def cmd_poll(client: ChatBridgeClient) -> int:
    count = client.poll_once()
    if count == 0:
        console.print("[dim]No new messages[/dim]")
    return 0


def print_status(status: dict):
    stats = status.get('statistics', {})
    state = "[green]RUNNING[/green]" if status.get('running') else "[red]STOPPED[/red]"
    console.rule("Polo relay")
    console.print(f"Status: {state}  Bridge: {status.get('bridge')}")
    console.print(
        f"Polls: {stats.get('polls', 0)}  "
        f"Relayed: {stats.get('messages_relayed', 0)}  "
        f"Errors: {stats.get('errors', 0)}"
    )


def cmd_run(client: ChatBridgeClient, args: argparse.Namespace) -> int:
    relay = ChatRelay(client, interval=args.interval)

    if not client.check_health():
        console.print("[yellow]Bridge not answering yet; relay will keep polling[/yellow]")

    running = True

    def signal_handler(sig, frame):
        nonlocal running
        logger.info(f"Received signal {sig}, shutting down relay")
        running = False

    signal.signal(signal.SIGINT, signal_handler)
    signal.signal(signal.SIGTERM, signal_handler)

    if not relay.start():
        console.print("[red]Failed to start relay[/red]")
        return 1

    console.print("Relay started. Press Ctrl+C to stop.")
    try:
        last_status = time.monotonic()
        while running:
            time.sleep(0.5)
            if time.monotonic() - last_status > STATUS_INTERVAL:
                print_status(relay.get_status())
                last_status = time.monotonic()
    finally:
        relay.stop()
        print_status(relay.get_status())

    return 0


def cmd_config(
    config: BridgeConfig,
    config_path: Optional[Path],
    cli_fields: Iterable[str] = ()
) -> int:
    table = Table(title="Bridge Configuration", show_header=True, header_style="bold cyan")
    table.add_column("Setting", style="cyan")
    table.add_column("Value", style="green")
    table.add_column("Source", style="yellow")

    path = config_path or BridgeConfig.get_config_path()
    file_source = str(path) if path.exists() else "default"
    env_sources = {name: env for env, name in ENV_FIELDS if env in os.environ}
    cli_fields = set(cli_fields)

    for key, value in config.redacted().items():
        if key in cli_fields:
            source = "cli"
        else:
            source = env_sources.get(key, file_source)
        table.add_row(key, escape(str(value)), source)

    console.print(table)

    problems = config.validate()
    for problem in problems:
        console.print(f"[yellow]Warning:[/yellow] {problem}")
    return 1 if problems else 0


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    config = resolve_config(args)
    setup_logging(level=config.log_level, log_file=args.log_file)

    if args.command == 'config':
        return cmd_config(config, args.config, cli_overrides(args))

    host = ThreadedHost(sink=lambda text: console.print(f"[bold]>[/bold] {escape(text)}"))
    client = ChatBridgeClient(config, host)

    if args.command == 'check':
        return cmd_check(client)
    if args.command == 'send':
        return cmd_send(client, args)
    if args.command == 'poll':
        return cmd_poll(client)
    if args.command == 'run':
        return cmd_run(client, args)

    return 2


if __name__ == '__main__':
    sys.exit(main())
