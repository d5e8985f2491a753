"""
CLI entry point for telegram-mcp.

Commands:
    serve          Run the MCP server over stdio
    cache-stats    Show cache statistics
    cache-cleanup  Delete expired cache entries
    logs           Query persisted tool-call logs
    logs-trim      Keep only the newest log entries
    accounts       List Telegram accounts
    doctor         Check environment, configuration and database

Every command accepts --config (YAML file) and --db (database path); both
override TELEGRAM_MCP_* environment variables.

Architecture Note:
    The CLI is intentionally thin - it loads settings, opens the database and
    delegates to the stores and the server. Rich output goes to stdout, except
    for `serve`, where stdout carries the MCP protocol and nothing else.
"""

import asyncio
import json
import sys
from datetime import UTC, datetime
from pathlib import Path
from typing import Annotated, Optional

import typer
from rich.console import Console
from rich.table import Table

from telegram_mcp import __version__
from telegram_mcp.config import Settings, ensure_database_directory, load_settings
from telegram_mcp.errors import ConfigError, TelegramMCPError
from telegram_mcp.log import configure_logging
from telegram_mcp.schema import LogFilter
from telegram_mcp.server import TelegramMCPServer
from telegram_mcp.store import AccountRegistry, CacheStore, Database, LogStore
from telegram_mcp.store.db import MEMORY_PATH
from telegram_mcp.telegram import MockTelegramProvider
from telegram_mcp.tools import build_default_registry

app = typer.Typer(
    name="telegram-mcp",
    help="Telegram integration for AI assistants over the Model Context Protocol.",
    add_completion=False,
    no_args_is_help=True,
)

console = Console()

ConfigOption = Annotated[
    Optional[Path],
    typer.Option(
        "--config",
        "-c",
        help="YAML config file.",
        exists=True,
        readable=True,
        resolve_path=True,
    ),
]
DbOption = Annotated[
    Optional[str],
    typer.Option("--db", help="Path to the SQLite database."),
]
JsonOption = Annotated[
    bool,
    typer.Option("--json", help="Output results in JSON format."),
]


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        console.print(f"[bold]telegram-mcp[/bold] version {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: Annotated[
        Optional[bool],
        typer.Option(
            "--version",
            "-v",
            help="Show version and exit.",
            callback=version_callback,
            is_eager=True,
        ),
    ] = None,
) -> None:
    """
    telegram-mcp - Telegram tools for MCP clients.

    Serves Telegram chats and messages to AI assistants, with a local
    SQLite cache, structured logs and account tracking.
    """
    # stdout carries command output (or the MCP protocol under `serve`).
    configure_logging("warn")


def _settings(config: Path | None, db: str | None) -> Settings:
    """Load settings or exit with a readable error."""
    try:
        return load_settings(config, db_path=db)
    except ConfigError as e:
        console.print(f"[red]Configuration error: {e.message}[/red]")
        raise typer.Exit(code=1) from e


def _open_existing(settings: Settings) -> Database:
    """Open the configured database, exiting if a file database is missing."""
    path = settings.db_path
    if path != MEMORY_PATH and not Path(path).expanduser().exists():
        console.print(f"[yellow]No database found at {path}[/yellow]")
        raise typer.Exit(code=0)
    return Database(path)


def _fmt_ms(ms: int | None) -> str:
    if ms is None:
        return ""
    return datetime.fromtimestamp(ms / 1000, UTC).strftime("%Y-%m-%d %H:%M:%S")


def _truncate(value: object, width: int = 50) -> str:
    text = value if isinstance(value, str) else json.dumps(value, default=str)
    return text if len(text) <= width else text[: width - 3] + "..."


# =============================================================================
# Server
# =============================================================================


@app.command()
def serve(
    config: ConfigOption = None,
    db: DbOption = None,
    json_logs: Annotated[
        bool,
        typer.Option("--json-logs", help="Emit process logs to stderr as JSON."),
    ] = False,
    mock_delay: Annotated[
        int,
        typer.Option("--mock-delay", help="Latency (ms) of the mock Telegram provider.", min=0),
    ] = 50,
) -> None:
    """
    Run the MCP server over stdio.

    Example:
        $ TELEGRAM_MCP_LOG_LEVEL=debug telegram-mcp serve
    """
    settings = _settings(config, db)
    configure_logging(settings.log_level.value, json_output=json_logs)
    ensure_database_directory(settings.db_path)

    try:
        with Database(settings.db_path) as database:
            server = TelegramMCPServer(
                settings,
                database,
                provider=MockTelegramProvider(delay_ms=mock_delay),
            )
            asyncio.run(server.run_stdio())
    except TelegramMCPError as e:
        print(str(e), file=sys.stderr)
        raise typer.Exit(code=1) from e


# =============================================================================
# Cache
# =============================================================================


@app.command("cache-stats")
def cache_stats(
    config: ConfigOption = None,
    db: DbOption = None,
    json_output: JsonOption = False,
) -> None:
    """
    Show cache statistics.

    Hit and miss counters belong to a running server and read as zero here.
    """
    settings = _settings(config, db)
    with _open_existing(settings) as database:
        stats = CacheStore(database).stats()

    if json_output:
        print(json.dumps(stats.model_dump(), indent=2))
        return

    table = Table(show_header=True, header_style="bold")
    table.add_column("Metric", style="cyan")
    table.add_column("Value", justify="right")
    table.add_row("Entries", str(stats.total_entries))
    table.add_row("Expired", str(stats.expired_entries))
    table.add_row("Size (bytes)", str(stats.size))
    console.print(table)


@app.command("cache-cleanup")
def cache_cleanup(
    config: ConfigOption = None,
    db: DbOption = None,
) -> None:
    """Delete expired cache entries."""
    settings = _settings(config, db)
    with _open_existing(settings) as database:
        removed = CacheStore(database).cleanup()
    console.print(f"[green]Removed {removed} expired cache entr{'y' if removed == 1 else 'ies'}[/green]")


# =============================================================================
# Logs
# =============================================================================


@app.command("logs")
def logs(
    config: ConfigOption = None,
    db: DbOption = None,
    level: Annotated[
        Optional[str],
        typer.Option("--level", "-l", help="Only entries at this level."),
    ] = None,
    tool: Annotated[
        Optional[str],
        typer.Option("--tool", "-t", help="Only entries for this tool namespace."),
    ] = None,
    session: Annotated[
        Optional[str],
        typer.Option("--session", "-s", help="Only entries for this session id."),
    ] = None,
    limit: Annotated[
        int,
        typer.Option("--limit", "-n", help="Maximum number of entries to show.", min=1),
    ] = 20,
    offset: Annotated[
        int,
        typer.Option("--offset", help="Entries to skip.", min=0),
    ] = 0,
    json_output: JsonOption = False,
) -> None:
    """
    Query persisted logs, newest first.

    Example:
        $ telegram-mcp logs --level error --tool telegram
    """
    settings = _settings(config, db)
    log_filter = LogFilter(
        level=level,
        tool=tool,
        session_id=session,
        limit=limit,
        offset=offset,
    )
    with _open_existing(settings) as database:
        store = LogStore(database)
        entries = store.query(log_filter)
        total = store.count(log_filter)

    if json_output:
        output = {
            "total": total,
            "entries": [e.model_dump(mode="json") for e in entries],
        }
        print(json.dumps(output, indent=2))
        return

    if not entries:
        console.print("[dim]No log entries found.[/dim]")
        return

    table = Table(show_header=True, header_style="bold")
    table.add_column("Time")
    table.add_column("Level", width=6)
    table.add_column("Tool", style="cyan")
    table.add_column("Action")
    table.add_column("ms", justify="right")
    table.add_column("Details")

    level_styles = {"error": "red", "warn": "yellow", "debug": "dim"}
    for entry in entries:
        style = level_styles.get(entry.level.value)
        level_display = f"[{style}]{entry.level.value}[/{style}]" if style else entry.level.value
        if entry.error:
            details = f"[red]{_truncate(entry.error)}[/red]"
        elif entry.result is not None:
            details = _truncate(entry.result)
        else:
            details = ""
        table.add_row(
            _fmt_ms(entry.timestamp),
            level_display,
            entry.tool or "",
            entry.action or "",
            "" if entry.duration is None else str(entry.duration),
            details,
        )

    console.print(table)
    console.print(f"[dim]Showing {len(entries)} of {total}[/dim]")


@app.command("logs-trim")
def logs_trim(
    config: ConfigOption = None,
    db: DbOption = None,
    keep: Annotated[
        Optional[int],
        typer.Option("--keep", "-k", help="Entries to keep. Defaults to max_logs.", min=0),
    ] = None,
) -> None:
    """Delete all but the newest log entries."""
    settings = _settings(config, db)
    max_entries = settings.max_logs if keep is None else keep
    with _open_existing(settings) as database:
        removed = LogStore(database).trim(max_entries)
    console.print(f"[green]Removed {removed} log entries (kept at most {max_entries})[/green]")


# =============================================================================
# Accounts
# =============================================================================


@app.command()
def accounts(
    config: ConfigOption = None,
    db: DbOption = None,
    active: Annotated[
        bool,
        typer.Option("--active", help="Only active accounts."),
    ] = False,
    json_output: JsonOption = False,
) -> None:
    """List Telegram accounts."""
    settings = _settings(config, db)
    with _open_existing(settings) as database:
        registry = AccountRegistry(database)
        rows = registry.get_active_accounts() if active else registry.get_all_accounts()

    if json_output:
        print(json.dumps([a.model_dump(mode="json") for a in rows], indent=2))
        return

    if not rows:
        console.print("[dim]No accounts found.[/dim]")
        return

    table = Table(show_header=True, header_style="bold")
    table.add_column("Account ID", style="cyan")
    table.add_column("Phone")
    table.add_column("Status", width=10)
    table.add_column("Username")
    table.add_column("Created")
    table.add_column("Last Active")

    for account in rows:
        status = account.status.value
        status_display = f"[green]{status}[/green]" if status == "active" else f"[dim]{status}[/dim]"
        table.add_row(
            account.id,
            account.phone,
            status_display,
            (account.session.username or "") if account.session else "",
            _fmt_ms(account.created_at),
            _fmt_ms(account.updated_at),
        )

    console.print(table)


# =============================================================================
# Doctor
# =============================================================================


@app.command()
def doctor(
    config: ConfigOption = None,
    db: DbOption = None,
    json_output: JsonOption = False,
) -> None:
    """
    Check system environment and configuration.

    Verifies:
    - Python version (3.11+)
    - Configuration (file and TELEGRAM_MCP_* variables)
    - Database accessibility and schema
    - Tool registry

    Example:
        $ telegram-mcp doctor
    """
    checks = []

    py_version = sys.version_info
    py_ok = py_version >= (3, 11)
    checks.append({
        "name": "Python version",
        "ok": py_ok,
        "value": f"{py_version.major}.{py_version.minor}.{py_version.micro}",
        "message": "OK" if py_ok else "Requires Python 3.11+",
    })

    settings: Settings | None = None
    try:
        settings = load_settings(config, db_path=db)
        checks.append({
            "name": "Configuration",
            "ok": True,
            "value": str(config) if config else "environment",
            "message": f"log_level={settings.log_level.value}, cache_ttl={settings.cache_ttl}ms, "
                       f"max_logs={settings.max_logs}",
        })
    except ConfigError as e:
        checks.append({
            "name": "Configuration",
            "ok": False,
            "value": e.source,
            "message": e.details,
        })

    if settings is not None:
        try:
            ensure_database_directory(settings.db_path)
            with Database(settings.db_path) as database:
                version = database.schema_version()
                n_accounts = AccountRegistry(database).count()
                n_logs = LogStore(database).count()
            checks.append({
                "name": "Database",
                "ok": True,
                "value": settings.db_path,
                "message": f"schema v{version}, {n_accounts} account(s), {n_logs} log entries",
            })
        except (TelegramMCPError, OSError) as e:
            checks.append({
                "name": "Database",
                "ok": False,
                "value": settings.db_path,
                "message": str(e),
            })

    registry = build_default_registry()
    checks.append({
        "name": "Tools",
        "ok": len(registry) > 0,
        "value": str(len(registry)),
        "message": ", ".join(registry.list_tools()),
    })

    all_ok = all(check["ok"] for check in checks)

    if json_output:
        output = {
            "ok": all_ok,
            "version": __version__,
            "checks": checks,
        }
        print(json.dumps(output, indent=2))
    else:
        console.print(f"[bold]telegram-mcp doctor[/bold] v{__version__}")
        console.print()

        for check in checks:
            icon = "[green]✓[/green]" if check["ok"] else "[red]✗[/red]"
            if check["ok"]:
                console.print(f"{icon} {check['name']}: [dim]{check['value']}[/dim] - {check['message']}")
            else:
                console.print(f"{icon} {check['name']}: [dim]{check['value']}[/dim]")
                console.print(f"    [red]{check['message']}[/red]")

        console.print()
        if all_ok:
            console.print("[green]All checks passed![/green]")
        else:
            console.print("[yellow]Some checks failed. See above for details.[/yellow]")

    raise typer.Exit(code=0 if all_ok else 1)


if __name__ == "__main__":
    app()
