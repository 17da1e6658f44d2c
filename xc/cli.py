"""XC CLI: Typer + Rich terminal interface.

Commands: explain, serve, history (list, show, export, delete).
"""

from __future__ import annotations

import asyncio
import logging
import sys
from pathlib import Path

import typer
from rich.console import Console
from rich.markup import escape
from rich.table import Table
from rich.text import Text

from xc import __version__
from xc.config import load_config
from xc.errors import TransportError
from xc.schemas.config import XCConfig

console = Console()

# ── App and sub-apps ─────────────────────────────────────────────

app = typer.Typer(
    name="xc",
    help="Explain code with a streaming LLM and keep a local history.",
    no_args_is_help=True,
    rich_markup_mode="rich",
)

history_app = typer.Typer(
    name="history",
    help="Browse saved explanations.",
    no_args_is_help=True,
)
app.add_typer(history_app, name="history")


# ── Version callback ───────────────────────────────────────────


def _version_callback(value: bool) -> None:
    if value:
        console.print(f"xc {__version__}")
        raise typer.Exit()


# ── App Callback ────────────────────────────────────────────────


@app.callback()
def main(
    ctx: typer.Context,
    version: bool = typer.Option(
        False, "--version", "-V",
        help="Show version and exit.",
        callback=_version_callback,
        is_eager=True,
    ),
    config_path: str = typer.Option(
        None, "--config", "-c",
        help="Path to a TOML file overriding the default configuration.",
    ),
    verbose: bool = typer.Option(
        False, "--verbose", "-v",
        help="Show informational log output.",
    ),
) -> None:
    """XC: explain code with live streaming previews."""
    logging.basicConfig(
        level=logging.INFO if verbose else logging.WARNING,
        format="%(levelname)s:%(name)s:%(message)s",
    )
    if not verbose:
        logging.getLogger("httpx").setLevel(logging.WARNING)
        logging.getLogger("LiteLLM").setLevel(logging.WARNING)

    ctx.ensure_object(dict)
    ctx.obj["config_path"] = config_path


# ── Helpers ──────────────────────────────────────────────────────


def _load_config(ctx: typer.Context) -> XCConfig:
    """Load configuration, exit on error."""
    path = (ctx.obj or {}).get("config_path")
    try:
        return load_config(Path(path) if path else None)
    except (FileNotFoundError, ValueError) as e:
        console.print(f"[red]Error loading config:[/red] {e}")
        raise typer.Exit(1) from None


def _read_code(file: str | None) -> str:
    if file is None:
        if sys.stdin.isatty():
            console.print("[red]Error:[/red] pass a FILE or pipe code on stdin.")
            raise typer.Exit(1)
        return sys.stdin.read()
    path = Path(file)
    if not path.is_file():
        console.print(f"[red]File not found:[/red] {file}")
        raise typer.Exit(1)
    return path.read_text(encoding="utf-8", errors="replace")


# ── xc explain ───────────────────────────────────────────────────


@app.command()
def explain(
    ctx: typer.Context,
    file: str = typer.Argument(None, help="File to explain (reads stdin when omitted)"),
    language: str = typer.Option(
        None, "--language", "-l",
        help="Language of the code (guessed when omitted)",
    ),
    url: str = typer.Option(None, "--url", help="Explain server URL"),
    save: bool = typer.Option(
        True, "--save/--no-save",
        help="Save the finished explanation to history",
    ),
    as_json: bool = typer.Option(
        False, "--json",
        help="Print the final explanation as JSON instead of a live view",
    ),
) -> None:
    """Explain a code snippet with a live streaming preview."""
    from xc.cli_display import LiveExplanationView
    from xc.client import ExplainClient
    from xc.language import guess_language
    from xc.persistence.database import close_db, init_db
    from xc.persistence.export import export_json
    from xc.persistence.history import HistoryStore
    from xc.session import ExplainSession
    from xc.store import ExplanationStore

    config = _load_config(ctx)
    code = _read_code(file)
    if not code.strip():
        console.print("[red]Error:[/red] no code to explain.")
        raise typer.Exit(1)
    language = language or guess_language(file, code)
    completed: list[str] = []

    async def _run():
        store = ExplanationStore()
        db = None
        history = None
        if save and config.history.persist:
            db = await init_db(config.history.db_path)
            history = HistoryStore(db)
        try:
            async with ExplainClient(
                url or config.client.base_url,
                timeout=config.client.timeout,
            ) as client:
                session = ExplainSession(
                    client,
                    store,
                    history=history,
                    max_accumulated_chars=config.client.max_accumulated_chars,
                )
                if as_json:
                    return await session.run(code, language, on_complete=completed.append)
                with LiveExplanationView(store, console) as view:
                    store.emitter.add_listener(view.on_event)
                    return await session.run(code, language, on_complete=completed.append)
        finally:
            if db is not None:
                await close_db(db)

    try:
        entry = asyncio.run(_run())
    except TransportError as e:
        console.print(f"[red]Error:[/red] {escape(str(e))}")
        raise typer.Exit(1) from None

    if as_json:
        console.print_json(export_json(entry))
    elif completed and save and config.history.persist:
        console.print(f"[dim]Saved as[/dim] [cyan]{completed[0][:8]}[/cyan]")


# ── xc serve ─────────────────────────────────────────────────────


@app.command()
def serve(
    ctx: typer.Context,
    host: str = typer.Option(None, "--host", help="Bind address"),
    port: int = typer.Option(None, "--port", "-p", help="Bind port"),
) -> None:
    """Run the explain proxy server."""
    import uvicorn

    from xc.server import create_app

    config = _load_config(ctx)
    server_config = config.server
    bind_host = host or server_config.host
    bind_port = port or server_config.port

    console.print(
        f"[bold]XC server[/bold] on http://{bind_host}:{bind_port} "
        f"[dim]({server_config.model})[/dim]"
    )
    uvicorn.run(create_app(server_config), host=bind_host, port=bind_port)


# ── xc history ───────────────────────────────────────────────────


async def _with_history(config: XCConfig, action):
    from xc.persistence.database import close_db, init_db
    from xc.persistence.history import HistoryStore

    db = await init_db(config.history.db_path)
    try:
        return await action(HistoryStore(db))
    finally:
        await close_db(db)


@history_app.command("list")
def history_list(
    ctx: typer.Context,
    limit: int = typer.Option(20, "--limit", "-n", help="Max entries to show"),
    language: str = typer.Option(None, "--language", "-l", help="Filter by language"),
) -> None:
    """Show recent explanations."""
    from xc.cli_display import code_preview, format_timestamp

    config = _load_config(ctx)
    entries = asyncio.run(_with_history(
        config,
        lambda store: store.list_explanations(limit=limit, language=language),
    ))

    if not entries:
        console.print("[dim]No explanations yet.[/dim]")
        return

    table = Table(title=f"History ({len(entries)} shown)")
    table.add_column("ID", style="cyan", no_wrap=True)
    table.add_column("Title", max_width=40)
    table.add_column("Language", style="magenta")
    table.add_column("Code", style="dim", max_width=44)
    table.add_column("When", justify="right")

    for e in entries:
        table.add_row(
            e.id[:8],
            Text(e.title) if e.title else Text("untitled", style="dim"),
            Text(e.language),
            Text(code_preview(e.code)),
            format_timestamp(e.timestamp),
        )

    console.print(table)


@history_app.command("show")
def history_show(
    ctx: typer.Context,
    entry_id: str = typer.Argument(..., help="Explanation ID or prefix (min 4 chars)"),
) -> None:
    """Show a saved explanation."""
    from xc.cli_display import render_explanation

    config = _load_config(ctx)
    entry = asyncio.run(_with_history(config, lambda store: store.get(entry_id)))

    if not entry:
        console.print(f"[red]Explanation not found:[/red] {entry_id}")
        raise typer.Exit(1) from None

    console.print(render_explanation(entry))


@history_app.command("export")
def history_export(
    ctx: typer.Context,
    entry_id: str = typer.Argument(..., help="Explanation ID or prefix (min 4 chars)"),
    fmt: str = typer.Option(
        "markdown", "--format", "-f",
        help="Export format: json or markdown",
    ),
) -> None:
    """Export a saved explanation as JSON or Markdown."""
    from xc.persistence.export import export_json, export_markdown

    if fmt not in ("json", "markdown"):
        console.print(f"[red]Invalid format:[/red] '{fmt}'. Choose json or markdown.")
        raise typer.Exit(1) from None

    config = _load_config(ctx)
    entry = asyncio.run(_with_history(config, lambda store: store.get(entry_id)))

    if not entry:
        console.print(f"[red]Explanation not found:[/red] {entry_id}")
        raise typer.Exit(1) from None

    text = export_json(entry) if fmt == "json" else export_markdown(entry)
    console.print(text, markup=False, highlight=False)


@history_app.command("delete")
def history_delete(
    ctx: typer.Context,
    entry_id: str = typer.Argument(..., help="Explanation ID or prefix (min 4 chars)"),
    yes: bool = typer.Option(
        False, "--yes", "-y",
        help="Skip confirmation prompt",
    ),
) -> None:
    """Delete a saved explanation."""
    if not yes:
        confirm = typer.confirm(f"Delete explanation {entry_id}? This cannot be undone.")
        if not confirm:
            console.print("[dim]Cancelled.[/dim]")
            return

    config = _load_config(ctx)
    deleted = asyncio.run(_with_history(config, lambda store: store.delete(entry_id)))

    if deleted:
        console.print(f"[green]Explanation deleted:[/green] {entry_id}")
    else:
        console.print(f"[red]Explanation not found:[/red] {entry_id}")
        raise typer.Exit(1) from None
