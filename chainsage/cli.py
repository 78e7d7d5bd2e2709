"""
ChainSage CLI

Command-line interface for interacting with ChainSage.

Usage:
    chainsage ask "What's the ETH balance of 0xABC?"   # Ask a running API server
    chainsage run "What's the ETH balance of 0xABC?"   # Run the pipeline in-process
    chainsage status                                   # Show configuration status
    chainsage serve                                    # Start the API server
"""

import asyncio
import logging
import os
import sys

import click
import httpx
from rich.console import Console
from rich.markdown import Markdown
from rich.panel import Panel
from rich.table import Table

from chainsage import __version__
from chainsage.config import get_settings
from chainsage.gateway import ServiceGateway
from chainsage.models.agent import PipelineError
from chainsage.models.query import EndpointSelection, SQLQuery
from chainsage.pipeline import create_pipeline

console = Console()
API_BASE_URL = os.getenv("CHAINSAGE_API_URL", "http://localhost:8000")


def configure_cli_logging(verbose: bool) -> None:
    if verbose:
        return
    for logger_name in ("chainsage", "httpx", "httpcore"):
        logging.getLogger(logger_name).setLevel(logging.WARNING)


def format_insight(insight: str, ok: bool = True) -> None:
    """Render an insight, or a tagged error, in a panel."""
    if ok:
        console.print(Panel(Markdown(insight), title="[bold green]Insight[/bold green]"))
    else:
        console.print(Panel(insight, title="[bold red]Error[/bold red]", border_style="red"))


def _print_query(query) -> None:
    if isinstance(query, SQLQuery):
        console.print("\n[bold cyan]Generated SQL:[/bold cyan]")
        console.print(Panel(query.sql, border_style="cyan"))
    elif isinstance(query, EndpointSelection):
        table = Table(title="Selected Endpoints", show_header=True, header_style="bold cyan")
        table.add_column("Path", style="cyan")
        table.add_column("Parameters")
        table.add_column("Missing", style="yellow")
        for endpoint in query.endpoints:
            params = ", ".join(f"{k}={v}" for k, v in endpoint.extracted_parameters.items())
            table.add_row(endpoint.path, params or "-", ", ".join(endpoint.missing_parameters) or "-")
        console.print(table)


def _print_timings(timings: dict[str, float]) -> None:
    table = Table(show_header=False, box=None)
    for stage, duration in timings.items():
        table.add_row(f"[dim]{stage}[/dim]", f"[dim]{duration:.1f} ms[/dim]")
    console.print(table)


@click.group()
@click.version_option(version=__version__, prog_name="ChainSage")
def cli():
    """ChainSage: ask questions about on-chain data in plain English."""


@cli.command()
@click.argument("question")
@click.option(
    "--api-url",
    default=API_BASE_URL,
    show_default=True,
    help="Base URL of a running ChainSage API server.",
)
@click.option("--timeout", default=120.0, show_default=True, type=float)
def ask(question: str, api_url: str, timeout: float):
    """Ask a question through a running API server."""
    url = f"{api_url.rstrip('/')}/api/v1/ask"
    try:
        with console.status("[cyan]Thinking...[/cyan]", spinner="dots"):
            response = httpx.post(url, json={"question": question}, timeout=timeout)
    except httpx.HTTPError as e:
        console.print(f"[red]Could not reach {url}: {e}[/red]")
        console.print("[yellow]Hint: start the server with 'chainsage serve'[/yellow]")
        sys.exit(1)

    try:
        payload = response.json()
    except ValueError:
        format_insight(response.text or response.reason_phrase, ok=False)
        sys.exit(1)

    if response.status_code == 200:
        format_insight(payload.get("insight", ""))
        return
    format_insight(payload.get("insight") or payload.get("error") or str(payload), ok=False)
    sys.exit(1)


@cli.command()
@click.argument("question")
@click.option("--show-query", is_flag=True, help="Print the generated query.")
@click.option("--verbose", is_flag=True, help="Show pipeline logs and stage timings.")
def run(question: str, show_query: bool, verbose: bool):
    """Run the pipeline in-process for one question."""
    configure_cli_logging(verbose)
    settings = get_settings()

    async def run_question():
        async with ServiceGateway(timeout=settings.llm.timeout) as gateway:
            pipeline = create_pipeline(settings, gateway)
            with console.status("[cyan]Processing question...[/cyan]", spinner="dots"):
                return await pipeline.run(question)

    try:
        state = asyncio.run(run_question())
    except PipelineError as e:
        format_insight(f"{settings.pipeline.product_tag}: {e.message}", ok=False)
        sys.exit(1)

    if show_query and state.get("generated_query") is not None:
        _print_query(state["generated_query"])
    format_insight(state["insight"] or "")
    if state.get("sampled"):
        console.print(
            f"[dim]Summarized a sample of {state.get('total_rows', 0)} rows.[/dim]"
        )
    if verbose:
        _print_timings(state.get("stage_timings") or {})


@cli.command()
def status():
    """Show configuration and credential status."""
    settings = get_settings()
    missing = settings.missing_credentials()

    table = Table(title="ChainSage Status", show_header=True, header_style="bold cyan")
    table.add_column("Component", style="cyan")
    table.add_column("Status", style="green")
    table.add_column("Details")

    table.add_row("Configuration", "✓", f"Environment: {settings.environment}")
    table.add_row(
        "LLM",
        "✗" if "GEMINI_API" in missing else "✓",
        f"{settings.llm.google_model}"
        + (" (GEMINI_API not set)" if "GEMINI_API" in missing else ""),
    )
    env_var = settings.provider.api_key_env
    table.add_row(
        "Data Provider",
        "✗" if env_var in missing else "✓",
        f"{settings.provider.name}" + (f" ({env_var} not set)" if env_var in missing else ""),
    )
    table.add_row(
        "Polling",
        "✓",
        f"every {settings.polling.interval_seconds:g}s, "
        f"up to {settings.polling.max_wait_seconds:g}s",
    )
    console.print(table)

    if missing:
        sys.exit(1)


@cli.command()
@click.option("--host", default=None, help="Bind host (defaults to API_HOST).")
@click.option("--port", default=None, type=int, help="Bind port (defaults to API_PORT).")
@click.option("--reload", is_flag=True, help="Reload on code changes.")
def serve(host: str | None, port: int | None, reload: bool):
    """Start the ChainSage API server."""
    import uvicorn

    settings = get_settings()
    host = host or settings.api_host
    port = port or settings.api_port
    console.print(f"[cyan]Starting ChainSage API on {host}:{port}[/cyan]")
    uvicorn.run("chainsage.api.main:app", host=host, port=port, reload=reload)


# ============================================================================
# Entry Point
# ============================================================================


def main():
    """Main entry point for CLI."""
    cli()


if __name__ == "__main__":
    main()
