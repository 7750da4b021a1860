"""CLI entry point for the Token Holder Export Service.

Usage:
    holder-export serve --port 8080
    holder-export export <MINT> --save holders.csv
    holder-export export <MINT> --airdrop --min-amount 1500 --exclude <OWNER>
"""

import logging
import sys
from pathlib import Path
from typing import Optional

import typer
import uvicorn
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape
from rich.table import Table

from .core.config import AppConfig
from .core.exceptions import HolderExportError
from .core.types import ExportVariant
from .orchestrator import HolderExportOrchestrator

app = typer.Typer(
    name="holder-export",
    help="Export token holders of a mint as CSV",
    add_completion=False,
)

console = Console(stderr=True)


def setup_logging(verbose: bool = False) -> None:
    """Configure logging."""
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(message)s",
        handlers=[RichHandler(console=console, show_time=False, show_path=False)],
        force=True,
    )
    # httpx logs every request at INFO, which would leak the api-key query string
    logging.getLogger("httpx").setLevel(logging.WARNING)


def _load_config(env_file: Optional[Path], distribution_file: Optional[Path]) -> AppConfig:
    try:
        return AppConfig.load(env_file=env_file, distribution_file=distribution_file)
    except HolderExportError as e:
        console.print(f"[red]Error:[/red] {escape(e.message)}")
        raise typer.Exit(code=1)


@app.command()
def serve(
    host: Optional[str] = typer.Option(None, "--host", help="Bind address (default: HOST or 0.0.0.0)"),
    port: Optional[int] = typer.Option(None, "--port", "-p", help="Port (default: PORT or 8080)"),
    env_file: Optional[Path] = typer.Option(None, "--env-file", help="Path to .env file"),
    distribution_file: Optional[Path] = typer.Option(
        None,
        "--distribution-config",
        help="YAML file with airdrop pool, min_amount and excluded_owners",
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging"),
) -> None:
    """Run the HTTP service."""
    setup_logging(verbose)
    config = _load_config(env_file, distribution_file)

    if not config.has_helius():
        console.print(
            "[yellow]Warning:[/yellow] HELIUS_API_KEY is not set; "
            "/holders requests will fail until it is configured"
        )

    from .api.app import create_app

    uvicorn.run(
        create_app(config),
        host=host or config.host,
        port=port or config.port,
        log_config=None,
    )


@app.command()
def export(
    mint: str = typer.Argument(..., help="Token mint address"),
    airdrop: bool = typer.Option(False, "--airdrop", "-a", help="Export airdrop shares instead of balances"),
    min_amount: Optional[float] = typer.Option(
        None, "--min-amount", help="Minimum balance to qualify for the airdrop"
    ),
    pool: Optional[float] = typer.Option(None, "--pool", help="Airdrop pool size"),
    exclude: Optional[list[str]] = typer.Option(
        None, "--exclude", "-x", help="Owner to exclude from the airdrop (repeatable)"
    ),
    save: Optional[Path] = typer.Option(None, "--save", "-s", help="Write CSV to file instead of stdout"),
    summary: bool = typer.Option(False, "--summary", help="Print a summary table to stderr"),
    env_file: Optional[Path] = typer.Option(None, "--env-file", help="Path to .env file"),
    distribution_file: Optional[Path] = typer.Option(
        None, "--distribution-config", help="YAML file with airdrop settings"
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging"),
) -> None:
    """Aggregate the holders of MINT and write the CSV."""
    setup_logging(verbose)
    config = _load_config(env_file, distribution_file)
    orchestrator = HolderExportOrchestrator(config)

    variant = ExportVariant.AIRDROP if airdrop else ExportVariant.HOLDERS
    distribution = None
    if airdrop:
        try:
            distribution = orchestrator.resolve_distribution(
                min_amount=min_amount, pool_size=pool, excluded_owners=exclude
            )
        except ValueError as e:
            console.print(f"[red]Invalid airdrop settings:[/red] {escape(str(e))}")
            raise typer.Exit(code=2)

    try:
        with console.status(f"Fetching holders for {mint}..."):
            snapshot = orchestrator.run(mint, variant, distribution)
    except HolderExportError as e:
        console.print(f"[red]Error:[/red] {escape(e.message)}")
        raise typer.Exit(code=1)

    formatter = orchestrator.formatter
    if save:
        formatter.format_to_file(snapshot, save)
        console.print(f"[green]Saved {snapshot.holder_count} rows to {save}[/green]")
    else:
        sys.stdout.write(formatter.format(snapshot))

    if summary:
        console.print(_summary_table(snapshot, variant))


def _summary_table(snapshot, variant: ExportVariant) -> Table:
    table = Table(title=f"{variant.value.title()} export: {snapshot.mint}")
    table.add_column("Metric")
    table.add_column("Value", justify="right")
    table.add_row("Holders", f"{snapshot.holder_count:,}")
    table.add_row("Page requests", f"{snapshot.pages_fetched:,}")
    table.add_row("Retained total", f"{snapshot.total_amount:,.6f}")
    table.add_row("Audited requests", f"{len(snapshot.audit_trail):,}")
    table.add_row("Upstream time", f"{snapshot.upstream_ms:,} ms")
    if snapshot.distribution is not None:
        table.add_row("Pool", f"{snapshot.distribution.pool_size:,.0f}")
        table.add_row("Min amount", f"{snapshot.distribution.min_amount:,.0f}")
        table.add_row("Excluded owners", f"{len(snapshot.distribution.excluded_owners):,}")
    return table


def main() -> None:
    """Main entry point."""
    app()


if __name__ == "__main__":
    main()
