#!/usr/bin/env python3
"""
Relay Service Admin CLI - credential bootstrap and API key lifecycle.

Usage:
  python scripts/admin_cli.py admin                 # Create the initial admin account
  python scripts/admin_cli.py keys                  # API key management menu
  python scripts/admin_cli.py keys list             # List API keys with expiry status
  python scripts/admin_cli.py keys expiry           # Change an API key's expiry
  python scripts/admin_cli.py keys renew            # Renew keys expiring within 7 days
  python scripts/admin_cli.py keys delete           # Delete API keys
  python scripts/admin_cli.py status                # System status overview

Environment:
  REDIS_URL / REDIS_HOST / REDIS_PORT / REDIS_PASSWORD - Redis connection
  DATA_DIR - Directory holding init.json (default: data)
"""

import argparse
import asyncio
import sys
from datetime import datetime
from pathlib import Path
from typing import Dict, List, Optional

# Add project root to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

# Load .env file if it exists
from dotenv import load_dotenv
load_dotenv(Path(__file__).parent.parent / ".env")

from rich.console import Console
from rich.table import Table
from rich.panel import Panel
from rich.text import Text
from rich.prompt import Prompt, Confirm
from rich import box

from relay_admin.config import settings
from relay_admin.core.pool import RedisPool, redis_session
from relay_admin.models import (
    ApiKey,
    BatchResult,
    BootstrapStatus,
    ExpiryStatus,
    PolicyError,
    RelayAdminException,
    ServiceUnavailableError,
)
from relay_admin.services.accounts import AccountStoreService
from relay_admin.services.api_key_store import ApiKeyStoreService
from relay_admin.services.credentials import AdminCredentialRepository, CredentialBootstrapManager
from relay_admin.services.duration import DURATION_LABELS, DurationToken, days_until
from relay_admin.services.lifecycle import ApiKeyLifecycleService, describe_expiry
from relay_admin.services.status import StatusAggregator
from relay_admin.utils.logging import setup_logging
from relay_admin.utils.timestamps import utcnow

console = Console()


# ============================================================================
# Service Initialization
# ============================================================================

def get_lifecycle_service(pool: RedisPool) -> ApiKeyLifecycleService:
    """Get API key lifecycle service bound to the session connection."""
    return ApiKeyLifecycleService(ApiKeyStoreService(pool.get_client()))


# ============================================================================
# Formatting Helpers
# ============================================================================

def format_local(value: Optional[datetime], with_time: bool = True) -> str:
    """Format an instant in the operator's local time."""
    if value is None:
        return "never"
    fmt = "%Y-%m-%d %H:%M" if with_time else "%Y-%m-%d"
    return value.astimezone().strftime(fmt)


def format_expiry(key: ApiKey, status: ExpiryStatus, now: datetime) -> Text:
    """Format expiry with color coding."""
    if status is ExpiryStatus.NEVER:
        return Text(describe_expiry(status), style="dim")
    date = format_local(key.expires_at, with_time=False)
    if status is ExpiryStatus.EXPIRED:
        return Text(f"Expired ({date})", style="red")
    if status is ExpiryStatus.EXPIRING_SOON:
        return Text(f"{days_until(key.expires_at, now)}d left ({date})", style="yellow")
    return Text(date, style="green")


def format_limit(value: Optional[int]) -> str:
    """Format token limit value."""
    return f"{value:,}" if value else "unlimited"


def print_error(error: Exception) -> None:
    console.print(f"[red]Error:[/red] {error}")


def print_batch_result(result: BatchResult, verb: str) -> None:
    """Print success/total and every failed item."""
    if result.cancelled:
        console.print("[yellow]Cancelled[/yellow]")
        return

    style = "green" if result.all_succeeded else "yellow"
    console.print(f"[{style}]{verb} {result.success_count}/{result.total} API keys[/{style}]")
    for failure in result.failures:
        console.print(f"  [red]✗[/red] {failure.label}: {failure.message}")


def build_keys_table(keys: List[ApiKey], now: datetime, lifecycle: ApiKeyLifecycleService) -> Table:
    """Build API keys table."""
    table = Table(title="API Keys", box=box.ROUNDED)
    table.add_column("#", justify="right", style="dim")
    table.add_column("Name", style="cyan")
    table.add_column("API Key", style="dim")
    table.add_column("Status", justify="center")
    table.add_column("Expires")
    table.add_column("Tokens Used", justify="right")
    table.add_column("Token Limit", justify="right")

    for index, key in enumerate(keys, start=1):
        status = Text("Active", style="green") if key.is_active else Text("Disabled", style="red")
        table.add_row(
            str(index),
            key.name,
            key.display_token,
            status,
            format_expiry(key, lifecycle.expiry_status(key, now), now),
            f"{key.usage.tokens:,}",
            format_limit(key.token_limit),
        )

    return table


def choose_key(keys: List[ApiKey], prompt: str) -> ApiKey:
    """Let the operator pick one key by its table number."""
    choices = [str(i) for i in range(1, len(keys) + 1)]
    choice = Prompt.ask(prompt, choices=choices, show_choices=False)
    return keys[int(choice) - 1]


def choose_keys(keys: List[ApiKey], prompt: str) -> List[ApiKey]:
    """Let the operator pick several keys as comma-separated table numbers."""
    while True:
        raw = Prompt.ask(prompt, default="")
        if not raw.strip():
            return []
        try:
            indexes = [int(part) for part in raw.replace(" ", "").split(",") if part]
        except ValueError:
            console.print("[red]Enter numbers separated by commas[/red]")
            continue
        if all(1 <= i <= len(keys) for i in indexes):
            return [keys[i - 1] for i in dict.fromkeys(indexes)]
        console.print(f"[red]Numbers must be between 1 and {len(keys)}[/red]")


# ============================================================================
# Admin Account
# ============================================================================

async def create_initial_admin(pool: RedisPool) -> None:
    """Create the initial admin account."""
    console.print(Panel.fit("[bold blue]Create Initial Admin Account[/bold blue]", border_style="blue"))

    manager = CredentialBootstrapManager(repository=AdminCredentialRepository(pool))
    overwrite = False

    try:
        existing = manager.existing_record()
    except RelayAdminException as e:
        print_error(e)
        return

    if existing:
        console.print("[yellow]An admin account already exists![/yellow]")
        console.print(f"  Username: {existing.admin_username}")
        console.print(f"  Created:  {format_local(existing.initialized_at)}")
        overwrite = Confirm.ask("Overwrite the existing admin account?", default=False)
        if not overwrite:
            console.print("[cyan]Cancelled[/cyan]")
            return

    username = Prompt.ask("Username", default="admin")
    while len(username) < settings.security.min_username_length:
        console.print(f"[red]Username must be at least {settings.security.min_username_length} characters[/red]")
        username = Prompt.ask("Username", default="admin")

    password = Prompt.ask("Password", password=True)
    while len(password) < settings.security.min_password_length:
        console.print(f"[red]Password must be at least {settings.security.min_password_length} characters[/red]")
        password = Prompt.ask("Password", password=True)

    confirm_password = Prompt.ask("Confirm password", password=True)
    while confirm_password != password:
        console.print("[red]Passwords do not match[/red]")
        confirm_password = Prompt.ask("Confirm password", password=True)

    try:
        with console.status("Creating admin account..."):
            result = await manager.bootstrap(username, password, confirm_password, overwrite=overwrite)
    except RelayAdminException as e:
        console.print("[red]Failed to create admin account[/red]")
        print_error(e)
        return

    if result.status is BootstrapStatus.CANCELLED:
        console.print("[cyan]Cancelled[/cyan]")
        return

    if result.status is BootstrapStatus.DEGRADED:
        console.print("[yellow]Admin account saved, but the cache could not be updated[/yellow]")
    else:
        console.print("[green]Admin account created[/green]")

    console.print(f"[green]✓[/green] Username: {username}")
    console.print(f"[green]✓[/green] Password: {result.password}")
    console.print("[cyan]i[/cyan] Keep these credentials somewhere safe")
    console.print(f"[cyan]i[/cyan] Credentials saved to: {result.record_path}")
    console.print(f"[yellow]![/yellow] {result.warning}")


# ============================================================================
# API Key Flows
# ============================================================================

async def list_keys_flow(lifecycle: ApiKeyLifecycleService) -> None:
    """List all API keys with expiry status."""
    with console.status("Fetching API keys..."):
        keys = await lifecycle.list_keys()

    if not keys:
        console.print("[yellow]No API keys found[/yellow]")
        return

    now = utcnow()
    console.print(build_keys_table(keys, now, lifecycle))

    classification = lifecycle.classify(keys, now)
    console.print(
        f"[dim]{len(classification.active)} active, "
        f"{len(classification.expiring_soon)} expiring soon, "
        f"{len(classification.expired)} expired, "
        f"{len(classification.never)} never expire[/dim]"
    )


async def update_expiry_flow(lifecycle: ApiKeyLifecycleService) -> None:
    """Change one key's expiry."""
    keys = await lifecycle.list_keys()
    if not keys:
        console.print("[yellow]No API keys found[/yellow]")
        return

    now = utcnow()
    console.print(build_keys_table(keys, now, lifecycle))
    key = choose_key(keys, "Select API key")

    console.print()
    console.print(f"Current API key:    {key.name}")
    console.print(f"Current expiration: {format_local(key.expires_at)}")
    console.print()

    tokens = list(DurationToken)
    for index, token in enumerate(tokens, start=1):
        console.print(f"  [cyan]{index}[/cyan]  {DURATION_LABELS[token]}")
    choice = Prompt.ask("Select new expiration", choices=[str(i) for i in range(1, len(tokens) + 1)])
    token = tokens[int(choice) - 1]

    custom_date = custom_time = None
    if token is DurationToken.CUSTOM:
        custom_date = Prompt.ask("Date (YYYY-MM-DD)", default=datetime.now().strftime("%Y-%m-%d"))
        custom_time = Prompt.ask("Time (HH:MM)", default="00:00")

    try:
        target = lifecycle.resolve_target(token, utcnow(), custom_date, custom_time)
    except PolicyError as e:
        print_error(e)
        return

    message = (
        f"Set expiration to {format_local(target)}?" if target else "Set to never expire?"
    )
    confirmed = Confirm.ask(message, default=True)

    try:
        updated = await lifecycle.set_expiry(key.id, target, confirmed)
    except RelayAdminException as e:
        console.print("[red]Update failed[/red]")
        print_error(e)
        return

    if updated is None:
        console.print("[cyan]Cancelled[/cyan]")
        return

    console.print(f"[green]✓ Expiration of \"{updated.name}\" updated[/green]")
    console.print(f"New expiration: {format_local(updated.expires_at)}")


async def renew_flow(lifecycle: ApiKeyLifecycleService) -> None:
    """Renew keys that expire within the lookahead window."""
    with console.status("Looking for expiring API keys..."):
        keys = await lifecycle.list_keys()
    now = utcnow()
    expiring = lifecycle.classify(keys, now).expiring_soon

    if not expiring:
        console.print(f"[cyan]No API keys expire within {settings.expiring_window_days} days[/cyan]")
        return

    console.print(f"[yellow]{len(expiring)} API keys expire soon:[/yellow]")
    for index, key in enumerate(expiring, start=1):
        console.print(
            f"  {index}. {key.name} - {days_until(key.expires_at, now)}d left "
            f"({format_local(key.expires_at, with_time=False)})"
        )
    console.print()

    options = settings.renewal_day_options
    choices = {str(i): days for i, days in enumerate(options, start=1)}
    for number, days in choices.items():
        console.print(f"  [cyan]{number}[/cyan]  Renew all by {days} days")
    console.print("  [cyan]i[/cyan]  Choose per key")
    choice = Prompt.ask("Select", choices=[*choices, "i"], default="1")

    if choice != "i":
        days = choices[choice]
        confirmed = Confirm.ask(f"Renew {len(expiring)} API keys by {days} days?", default=True)
        with console.status(f"Renewing all expiring API keys by {days} days..."):
            result = await lifecycle.renew_expiring(days, confirmed, now=now, keys=keys)
        print_batch_result(result, "Renewed")
        return

    plan: Dict[str, Optional[int]] = {}
    for key in expiring:
        console.print(f"\n[bold]{key.name}[/bold]")
        answer = Prompt.ask(
            "Renew by how many days (s to skip)",
            choices=[*(str(days) for days in options), "s"],
            default="s",
        )
        plan[key.id] = None if answer == "s" else int(answer)

    selected = sum(1 for days in plan.values() if days)
    if selected == 0:
        console.print("[cyan]No API keys renewed[/cyan]")
        return
    confirmed = Confirm.ask(f"Renew {selected} API keys?", default=True)

    result = await lifecycle.renew_selected(plan, confirmed, now=now, keys=keys)
    if result.total == 0:
        console.print("[cyan]No API keys renewed[/cyan]")
        return
    print_batch_result(result, "Renewed")


async def delete_flow(lifecycle: ApiKeyLifecycleService) -> None:
    """Delete one or more API keys."""
    keys = await lifecycle.list_keys()
    if not keys:
        console.print("[yellow]No API keys found[/yellow]")
        return

    console.print(build_keys_table(keys, utcnow(), lifecycle))
    selected = choose_keys(keys, "Keys to delete (e.g. 1,3)")
    if not selected:
        console.print("[cyan]No API keys selected[/cyan]")
        return

    names = {key.id: key.name for key in selected}
    console.print("[bold red]WARNING:[/bold red] This permanently deletes:")
    for key in selected:
        console.print(f"  {key.name} ({key.display_token})")
    confirmed = Confirm.ask(f"Delete {len(selected)} API keys?", default=False)

    with console.status("Deleting API keys..."):
        result = await lifecycle.delete_many(list(names), confirmed)
    for failure in result.failures:
        failure.label = names.get(failure.item, failure.label)
    print_batch_result(result, "Deleted")


KEY_ACTIONS = {
    "list": ("List API keys", list_keys_flow),
    "expiry": ("Change API key expiration", update_expiry_flow),
    "renew": ("Renew expiring API keys", renew_flow),
    "delete": ("Delete API keys", delete_flow),
}


async def keys_menu(lifecycle: ApiKeyLifecycleService) -> None:
    """API Keys menu."""
    console.print(Panel.fit("[bold green]API Key Management[/bold green]", border_style="green"))
    actions = list(KEY_ACTIONS)
    for index, action in enumerate(actions, start=1):
        console.print(f"  [cyan]{index}[/cyan]  {KEY_ACTIONS[action][0]}")
    console.print()

    choice = Prompt.ask("Select", choices=[str(i) for i in range(1, len(actions) + 1)], default="1")
    await KEY_ACTIONS[actions[int(choice) - 1]][1](lifecycle)


# ============================================================================
# CLI Commands
# ============================================================================

async def cmd_admin(args, pool: RedisPool):
    await create_initial_admin(pool)


async def cmd_keys(args, pool: RedisPool):
    lifecycle = get_lifecycle_service(pool)
    if args.action:
        await KEY_ACTIONS[args.action][1](lifecycle)
    else:
        await keys_menu(lifecycle)


async def cmd_status(args, pool: RedisPool):
    """Show system status overview."""
    client = pool.get_client()
    aggregator = StatusAggregator(
        api_key_store=ApiKeyStoreService(client),
        account_store=AccountStoreService(client),
        pool=pool,
    )

    try:
        with console.status("Fetching system status..."):
            summary = await aggregator.summarize()
    except RelayAdminException as e:
        console.print("[red]Failed to fetch system status[/red]")
        print_error(e)
        return

    table = Table(title="System Status", box=box.ROUNDED)
    table.add_column("Item", style="cyan")
    table.add_column("Count", justify="right")
    table.add_column("Status")
    table.add_row("API Keys", str(summary.api_key_count), f"{summary.active_api_key_count} active")
    table.add_row("Accounts", str(summary.account_count), f"{summary.active_account_count} active")
    table.add_row(
        "Redis",
        "connected" if summary.store_connected else "disconnected",
        Text("●", style="green" if summary.store_connected else "red"),
    )
    console.print(table)

    console.print()
    console.print("[bold]Usage[/bold]")
    console.print(f"  Total tokens:   [green]{summary.total_tokens:,}[/green]")
    console.print(f"  Total requests: [green]{summary.total_requests:,}[/green]")


async def run(handler, args) -> int:
    """Run a command inside one Redis session."""
    try:
        async with redis_session() as pool:
            await handler(args, pool)
    except ServiceUnavailableError as e:
        print_error(e)
        console.print("\nEnsure Redis is running and REDIS_URL/REDIS_HOST is configured correctly.")
        return 1
    except RelayAdminException as e:
        print_error(e)
        return 1
    return 0


def main():
    parser = argparse.ArgumentParser(
        description="Relay Service Admin CLI",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  %(prog)s admin           # Create the initial admin account
  %(prog)s keys            # API key management (list/expiry/renew/delete)
  %(prog)s keys renew      # Renew keys expiring soon
  %(prog)s status          # System status overview
"""
    )
    subparsers = parser.add_subparsers(dest="command")

    # admin
    subparsers.add_parser("admin", help="Create the initial admin account")

    # keys
    keys_p = subparsers.add_parser("keys", help="API key management")
    keys_p.add_argument("action", nargs="?", choices=list(KEY_ACTIONS), help="Run one action directly")

    # status
    subparsers.add_parser("status", help="System status overview")

    args = parser.parse_args()

    if args.command is None:
        parser.print_help()
        return

    setup_logging()

    handlers = {
        "admin": cmd_admin,
        "keys": cmd_keys,
        "status": cmd_status,
    }

    try:
        exit_code = asyncio.run(run(handlers[args.command], args))
    except KeyboardInterrupt:
        console.print("\n[yellow]Cancelled.[/yellow]")
        sys.exit(0)
    sys.exit(exit_code)


if __name__ == "__main__":
    main()
