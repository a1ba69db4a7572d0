"""
Command-line interface for lokma-i18n.

Provides one subcommand per pipeline stage:
- scan / extract: find untranslated strings and add keys to the source catalog
- inject: fan placeholders out to target languages
- translate: best-effort machine translation of placeholders
- sync: reconcile catalogs with the remote document store
- missing: t('key') lookups whose key is not in the source catalog
- rewrite / clean / lookup / doctor: maintenance helpers

Exit codes:
    0  success
    1  partial failure (details logged)
    2  fatal configuration error, nothing was run

Usage:
    lokma-i18n extract
    lokma-i18n -c admin_portal/i18n.json translate --lang en --lang de
    lokma-i18n sync --remote-dir backup/
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import List, Optional

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape
from rich.table import Table

from lokma_i18n import __version__
from lokma_i18n.config import DEFAULT_CONFIG_FILE, SyncConfig
from lokma_i18n.errors import CatalogError, ConfigError
from lokma_i18n.pipeline import StageResult, SyncPipeline
from lokma_i18n.remote import FirestoreStore, JsonDirStore, RemoteStore

app = typer.Typer(
    name="lokma-i18n",
    help="lokma-i18n: translation key extraction and synchronization",
    add_completion=False,
)
console = Console()

EXIT_PARTIAL = 1
EXIT_CONFIG = 2


def version_callback(value: bool):
    if value:
        console.print(f"lokma-i18n v{__version__}")
        raise typer.Exit()


def setup_logging(verbose: bool = False) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=console, show_path=False, markup=False)],
        force=True,
    )


@app.callback()
def main(
    ctx: typer.Context,
    config_file: Path = typer.Option(
        DEFAULT_CONFIG_FILE, "--config", "-c",
        help="Project config file (JSON)",
    ),
    verbose: bool = typer.Option(
        False, "--verbose",
        help="Debug logging",
    ),
    version: bool = typer.Option(
        False, "--version", "-v",
        callback=version_callback,
        is_eager=True,
        help="Show version and exit",
    ),
):
    """lokma-i18n: translation key extraction and synchronization."""
    setup_logging(verbose)
    ctx.obj = {"config_file": config_file}


def _fatal(message: str) -> None:
    console.print(f"[red]Error:[/] {escape(message)}", style="bold")
    raise typer.Exit(EXIT_CONFIG)


def _load_config(ctx: typer.Context) -> SyncConfig:
    try:
        return SyncConfig.load(ctx.obj["config_file"])
    except ConfigError as e:
        _fatal(str(e))


def _run(stage) -> StageResult:
    try:
        return stage()
    except (ConfigError, CatalogError) as e:
        _fatal(str(e))


def _finish(result: StageResult) -> None:
    """Print a stage summary and exit 1 on partial failure."""
    table = Table(title=f"{result.stage} summary")
    table.add_column("Item", style="cyan")
    table.add_column("Value", style="green")
    for name, value in result.stats.items():
        if isinstance(value, dict):
            value = ", ".join(f"{k}={v}" for k, v in value.items())
        table.add_row(escape(str(name)), escape(str(value)))
    console.print(table)

    if not result.success:
        console.print(f"[yellow]{len(result.errors)} problem(s):[/]")
        for err in result.errors:
            console.print(f"  • {escape(err)}")
        raise typer.Exit(EXIT_PARTIAL)
    console.print(f"[green]✓ {result.stage} complete[/]")


def _remote(config: SyncConfig, remote_dir: Optional[Path]) -> RemoteStore:
    if remote_dir is not None:
        return JsonDirStore(remote_dir)
    from lokma_i18n.credentials import resolve_credentials
    credentials = resolve_credentials(config.secrets_file)
    return FirestoreStore(credentials, collection=config.remote_collection)


@app.command()
def scan(
    ctx: typer.Context,
    limit: int = typer.Option(
        50, "--limit", "-n",
        help="Maximum number of strings to list (0 = all)",
    ),
):
    """List untranslated strings without changing anything."""
    config = _load_config(ctx)
    result = _run(SyncPipeline(config).scan)

    shown = result.occurrences if limit == 0 else result.occurrences[:limit]
    if shown:
        table = Table(title=f"Untranslated strings ({len(result.occurrences)})")
        table.add_column("Location", style="dim")
        table.add_column("Namespace", style="cyan")
        table.add_column("Text", style="green")
        for occ in shown:
            table.add_row(
                escape(f"{occ.path}:{occ.line}:{occ.column}"), occ.namespace or "", escape(occ.text)
            )
        console.print(table)
    _finish(result)


@app.command()
def extract(ctx: typer.Context):
    """Derive keys for new strings and add them to the source catalog."""
    config = _load_config(ctx)
    _finish(_run(SyncPipeline(config).extract))


@app.command()
def inject(ctx: typer.Context):
    """Create placeholders for new keys in every target language."""
    config = _load_config(ctx)
    _finish(_run(SyncPipeline(config).inject))


@app.command()
def translate(
    ctx: typer.Context,
    backend: Optional[str] = typer.Option(
        None, "--backend", "-b",
        help="Translation backend (google-free, mymemory, dummy)",
    ),
    langs: Optional[List[str]] = typer.Option(
        None, "--lang", "-l",
        help="Only these target languages (repeatable)",
    ),
):
    """Replace placeholders with machine translations (best effort)."""
    config = _load_config(ctx)
    if backend:
        config.translator_backend = backend
    if langs:
        config.target_langs = list(langs)
    pipeline = SyncPipeline(config)
    try:
        pipeline.translator
    except ValueError as e:
        _fatal(str(e))
    _finish(_run(pipeline.translate))


@app.command()
def sync(
    ctx: typer.Context,
    remote_dir: Optional[Path] = typer.Option(
        None, "--remote-dir",
        help="Use a directory of JSON documents as the remote store",
    ),
    policy: Optional[str] = typer.Option(
        None, "--policy",
        help="Conflict policy for differing values: local-wins or remote-wins",
    ),
    langs: Optional[List[str]] = typer.Option(
        None, "--lang", "-l",
        help="Only these languages (repeatable)",
    ),
):
    """Merge local catalogs with the remote store and write both sides."""
    config = _load_config(ctx)
    if policy:
        config.conflict_policy = policy
    try:
        config.validate()
        remote = _remote(config, remote_dir)
    except ConfigError as e:
        _fatal(str(e))
    pipeline = SyncPipeline(config, remote=remote)
    _finish(_run(lambda: pipeline.sync(langs=list(langs) if langs else None)))


@app.command()
def rewrite(ctx: typer.Context):
    """Replace extracted literals in source files with t('key') calls."""
    config = _load_config(ctx)
    _finish(_run(SyncPipeline(config).rewrite))


@app.command()
def clean(ctx: typer.Context):
    """Remove placeholder values and empty namespaces from target catalogs."""
    config = _load_config(ctx)
    _finish(_run(SyncPipeline(config).clean))


@app.command()
def missing(ctx: typer.Context):
    """List t('key') lookups whose key is missing from the source catalog."""
    config = _load_config(ctx)
    result = _run(SyncPipeline(config).missing)

    if result.missing:
        table = Table(title=f"Missing translations ({len(result.missing)})")
        table.add_column("Location", style="dim")
        table.add_column("Namespace", style="cyan")
        table.add_column("Key", style="red")
        for item in result.missing:
            table.add_row(escape(f"{item.path}:{item.line}"), escape(item.namespace), escape(item.key))
        console.print(table)
    _finish(result)


@app.command()
def lookup(
    ctx: typer.Context,
    lang: str = typer.Argument(..., help="Language code"),
    namespace: str = typer.Argument(..., help="Namespace, e.g. PushNotifications"),
    remote_dir: Optional[Path] = typer.Option(
        None, "--remote-dir",
        help="Use a directory of JSON documents as the remote store",
    ),
):
    """Show one namespace as the notification sender would resolve it."""
    from lokma_i18n.lookup import TTLCache, get_namespace_translations

    config = _load_config(ctx)
    try:
        remote = _remote(config, remote_dir)
    except ConfigError as e:
        _fatal(str(e))

    values = get_namespace_translations(
        remote, lang, namespace, TTLCache(), fallback_lang=config.source_lang
    )
    if not values:
        console.print(f"[yellow]No translations for {namespace} in {lang}[/]")
        raise typer.Exit(EXIT_PARTIAL)

    table = Table(title=escape(f"{namespace} [{lang}]"))
    table.add_column("Key", style="cyan")
    table.add_column("Value", style="green")
    for key in sorted(values):
        table.add_row(escape(key), escape(str(values[key])))
    console.print(table)


@app.command()
def doctor(ctx: typer.Context):
    """Check dependencies, config, catalogs and credentials."""
    from lokma_i18n.diagnostics import run_diagnostics, summarize

    results = run_diagnostics(ctx.obj["config_file"])
    styles = {"ok": "green", "warn": "yellow", "error": "red"}

    table = Table(title="lokma-i18n diagnostics")
    table.add_column("Check", style="cyan")
    table.add_column("Status")
    table.add_column("Detail", style="dim")
    for r in results:
        table.add_row(r.name, f"[{styles[r.status]}]{r.status}[/]", escape(r.detail))
    console.print(table)
    console.print(summarize(results))

    if any(r.status == "error" for r in results):
        raise typer.Exit(EXIT_CONFIG)


if __name__ == "__main__":
    app()
