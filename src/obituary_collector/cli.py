"""CLI interface for the obituary collector."""

import asyncio
import json
from pathlib import Path

import typer
from rich.console import Console
from rich.panel import Panel
from rich.progress import Progress, SpinnerColumn, TextColumn
from rich.table import Table

from .adapters import default_registry
from .collector import SourceCollector
from .config import CollectorSettings
from .exceptions import SourceNotFoundError
from .logging import configure_logging
from .models.run import RunSummary
from .net import HttpFetcher
from .storage import Database, ObituaryStore, SourceRegistry, SuppressionList

app = typer.Typer(
    name="obit-collector",
    help="Multi-source obituary collection with cross-source dedup",
    add_completion=False,
)
console = Console()


def get_settings(**overrides) -> CollectorSettings:
    """Load settings from the environment (and a local .env file)."""
    from dotenv import load_dotenv

    load_dotenv()
    return CollectorSettings.from_env(**overrides)


def _open_storage(settings: CollectorSettings):
    db = Database(settings.db_path)
    return SourceRegistry(db), ObituaryStore(db), SuppressionList(db)


async def _run_collection(settings: CollectorSettings, source_id: int | None, region, city) -> RunSummary:
    registry, store, suppressions = _open_storage(settings)
    async with HttpFetcher(settings) as fetcher:
        collector = SourceCollector(
            registry,
            store,
            suppressions,
            default_registry(fetcher, settings),
            settings,
            fetcher,
        )
        if source_id is not None:
            return await collector.collect_source(source_id)
        return await collector.collect(region=region, city=city)


def _display_summary(summary: RunSummary, verbose: bool) -> None:
    table = Table(title="Collection Summary")
    table.add_column("Source", style="cyan")
    table.add_column("Pages", justify="right")
    table.add_column("Found", justify="right")
    table.add_column("Added", justify="right", style="green")
    table.add_column("Merged", justify="right")
    table.add_column("Rejected", justify="right")
    table.add_column("Errors", justify="right", style="red")

    for result in summary.per_source:
        table.add_row(
            result.domain,
            f"{result.pages}/{result.pages + result.pages_failed}",
            str(result.found),
            str(result.added),
            str(result.merged),
            str(result.rejected),
            str(len(result.errors)),
        )
    console.print(table)

    console.print(
        Panel(
            f"Found: {summary.obituaries_found}  Added: {summary.obituaries_added}  "
            f"Merged: {summary.obituaries_merged}\n"
            f"Sources processed: {summary.sources_processed}  skipped: {summary.sources_skipped}  "
            f"deferred: {summary.sources_deferred}",
            title="Run",
        )
    )

    if summary.errors:
        console.print("[red]Errors:[/red]")
        for domain, message in summary.errors.items():
            console.print(f"  [red]{domain}[/red]: {message}")

    if verbose:
        console.print_json(summary.model_dump_json())


@app.command()
def collect(
    region: str = typer.Option(None, "--region", "-r", help="Only sources in this region"),
    city: str = typer.Option(None, "--city", "-c", help="Only sources with this city hint"),
    listing_only: bool = typer.Option(None, "--listing-only/--with-details", help="Skip detail-page fetches"),
    budget: float = typer.Option(None, "--budget", "-b", help="Soft wall-clock budget in seconds"),
    output: Path = typer.Option(None, "--output", "-o", help="Write the run summary as JSON"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Show detailed output"),
):
    """Collect from every active source."""
    configure_logging("DEBUG" if verbose else "INFO")
    settings = get_settings(listing_only=listing_only, run_budget_seconds=budget)

    with Progress(
        SpinnerColumn(),
        TextColumn("[progress.description]{task.description}"),
        console=console,
    ) as progress:
        task = progress.add_task("Collecting...", total=None)
        summary = asyncio.run(_run_collection(settings, None, region, city))
        progress.update(task, completed=True)

    _display_summary(summary, verbose)
    if output:
        output.write_text(summary.model_dump_json(indent=2))
        console.print(f"[green]Summary saved to {output}[/green]")


@app.command("collect-source")
def collect_source(
    source_id: int = typer.Argument(..., help="Registry id of the source"),
    listing_only: bool = typer.Option(None, "--listing-only/--with-details", help="Skip detail-page fetches"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Show detailed output"),
):
    """Collect from a single source, even if it is disabled."""
    configure_logging("DEBUG" if verbose else "INFO")
    settings = get_settings(listing_only=listing_only)
    try:
        summary = asyncio.run(_run_collection(settings, source_id, None, None))
    except SourceNotFoundError as e:
        console.print(f"[red]{e}[/red]")
        raise typer.Exit(1)
    _display_summary(summary, verbose)


@app.command()
def seed(
    file: Path = typer.Option(None, "--file", "-f", help="YAML file of sources (defaults to the packaged list)"),
):
    """Register seed sources that are not in the registry yet."""
    settings = get_settings()
    registry, _, _ = _open_storage(settings)
    added = registry.seed_defaults(file)
    console.print(f"[green]Seeded {added} new source(s)[/green]")


@app.command()
def sources(
    show_all: bool = typer.Option(True, "--all/--active", help="Include disabled and circuit-open sources"),
):
    """List registered sources and their health."""
    settings = get_settings()
    registry, _, _ = _open_storage(settings)
    rows = registry.list_sources() if show_all else registry.get_active_sources()

    table = Table(title="Sources")
    table.add_column("ID", justify="right")
    table.add_column("Domain", style="cyan")
    table.add_column("Adapter")
    table.add_column("Region")
    table.add_column("Enabled")
    table.add_column("Failures", justify="right")
    table.add_column("Last success")
    table.add_column("Collected", justify="right")

    for src in rows:
        if not src.enabled:
            status = "[red]no[/red]"
        elif src.is_circuit_open():
            status = "[yellow]circuit open[/yellow]"
        else:
            status = "[green]yes[/green]"
        table.add_row(
            str(src.id),
            src.domain,
            src.adapter_type,
            src.region,
            status,
            str(src.consecutive_failures),
            src.last_success.isoformat(timespec="minutes") if src.last_success else "-",
            str(src.total_collected),
        )
    console.print(table)


@app.command()
def stats():
    """Show registry and obituary counts."""
    settings = get_settings()
    registry, store, suppressions = _open_storage(settings)
    source_stats = registry.get_stats()
    console.print(
        Panel(
            json.dumps(
                {
                    "sources": source_stats,
                    "obituaries": store.count(),
                    "live_obituaries": store.count(include_suppressed=False),
                    "suppressions": suppressions.count(),
                },
                indent=2,
            ),
            title="Stats",
        )
    )


@app.command()
def suppress(
    obituary_id: int = typer.Argument(..., help="Obituary id to suppress"),
    reason: str = typer.Option("", "--reason", help="Why the record is blocked"),
):
    """Suppress an obituary and block it from being collected again."""
    settings = get_settings()
    _, store, suppressions = _open_storage(settings)
    obituary = store.suppress(obituary_id, reason)
    if obituary is None:
        console.print(f"[red]No obituary with id {obituary_id}[/red]")
        raise typer.Exit(1)
    suppressions.block(
        obituary.provenance_hash,
        name=obituary.name,
        date_of_death=obituary.date_of_death,
        reason=reason,
        obituary_id=obituary.id,
    )
    console.print(f"[green]Suppressed {obituary.name} ({obituary.date_of_death})[/green]")


@app.command("test-source")
def test_source(
    domain: str = typer.Argument(..., help="Source domain slug"),
):
    """Fetch a source's first listing page and report how many cards parse."""
    settings = get_settings()
    registry, _, _ = _open_storage(settings)
    source = registry.get_source_by_domain(domain)
    if source is None:
        console.print(f"[red]Unknown source: {domain}[/red]")
        raise typer.Exit(1)

    async def run():
        async with HttpFetcher(settings) as fetcher:
            adapter = default_registry(fetcher, settings).get(source.adapter_type, source.domain)
            return await adapter.test_connection(source)

    result = asyncio.run(run())
    colour = "green" if result.success else "red"
    console.print(f"[{colour}]{result.message}[/{colour}]")
    if not result.success:
        raise typer.Exit(1)


def main():
    app()


if __name__ == "__main__":
    main()
