"""Bridge auth CLI - a local admin room for linking GitHub accounts."""

from __future__ import annotations

import asyncio
import logging

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.panel import Panel
from rich.table import Table

from .auth.store import UserTokenStore
from .commands.admin_room import build_router, handle_admin_command
from .commands.context import AdminRoomContext
from .config import BridgeSettings
from .errors import StateNotFoundError
from .oauth.callback import complete_oauth_flow
from .oauth.client import GitHubOAuthClient, OAuthError

app = typer.Typer(
    name="bridge-auth",
    help="Link GitHub accounts to the bridge from an admin room",
    no_args_is_help=True,
)
console = Console()

EXIT_WORDS = {"quit", "exit"}


def _setup_logging(level: str) -> None:
    logging.basicConfig(
        level=level.upper(),
        format="%(message)s",
        handlers=[RichHandler(console=console, show_path=False)],
    )


# ============================================================================
# Commands
# ============================================================================


@app.command("commands")
def list_commands():
    """List the commands available in the admin room."""
    router = build_router()

    table = Table(title="Admin Room Commands")
    table.add_column("Command", style="cyan")
    table.add_column("Category", style="yellow")
    table.add_column("Help", style="white")

    for descriptor in router.commands():
        table.add_row(descriptor.usage, descriptor.category.value, descriptor.help)

    console.print(table)


@app.command("console")
def admin_console(
    user: str = typer.Option(..., "--user", "-u", help="User id to run commands as"),
):
    """Open an interactive admin room session.

    Type admin commands such as 'github status'. To finish an OAuth login,
    enter 'callback <state> <code>' with the values from the redirect URL.
    """
    settings = BridgeSettings()
    _setup_logging(settings.log_level)
    asyncio.run(_run_console(settings, user))


async def _print_notice(text: str) -> None:
    console.print(Panel(text, title="Notice", border_style="green"))


async def _complete_callback(settings: BridgeSettings, token_store: UserTokenStore, args: list[str]) -> None:
    if len(args) != 2:
        console.print("[red]Usage: callback <state> <code>[/red]")
        return
    try:
        oauth_client = GitHubOAuthClient.from_settings(settings.github)
        user_id = await complete_oauth_flow(token_store, oauth_client, args[0], args[1])
    except StateNotFoundError as e:
        console.print(f"[red]{e.message}[/red]")
        return
    except OAuthError as e:
        console.print(f"[red]OAuth failed:[/red] {e}")
        return
    console.print(f"[green]Linked GitHub account for {user_id}[/green]")


async def _run_console(settings: BridgeSettings, user_id: str) -> None:
    router = build_router()
    token_store = UserTokenStore.from_settings(settings)
    ctx = AdminRoomContext(
        user_id=user_id,
        config=settings,
        token_store=token_store,
        notice_sender=_print_notice,
    )

    console.print(f"[dim]Admin room for {user_id}. Type 'help' for commands, 'quit' to leave.[/dim]")
    while True:
        try:
            line = (await asyncio.to_thread(console.input, "[bold cyan]> [/bold cyan]")).strip()
        except EOFError:
            break
        if not line:
            continue
        if line in EXIT_WORDS:
            break
        if line == "help":
            await _print_notice(router.help_text())
            continue
        if line.split()[0] == "callback":
            await _complete_callback(settings, token_store, line.split()[1:])
            continue
        await handle_admin_command(router, line, ctx)


def main():
    app()


if __name__ == "__main__":
    main()
