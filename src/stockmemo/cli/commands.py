"""CLI command definitions for the investment memo generator."""
from __future__ import annotations

import json
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

import numpy as np
import typer
from rich.console import Console
from rich.table import Table

from stockmemo.config import Config
from stockmemo.domain.errors import MemoError
from stockmemo.domain.services.chart_series import POINTS_PER_PERIOD
from stockmemo.domain.services.structuring import parse_price_summary
from stockmemo.infrastructure.data_providers.fmp_client import FMPClient
from stockmemo.reports.charts import NO_DATA_MESSAGE, PriceChartManager, draw_segments, save_figure
from stockmemo.settings.loader import load_settings
from stockmemo.utils.logging import configure_logging
from stockmemo.workflows.graph import ReportWorkflow, describe_stages
from stockmemo.workflows.state import ReportState

console = Console()
app = typer.Typer(help="Generate analytical investment memos from public financial data.")


@dataclass
class AppContext:
    """Holds reusable process-wide objects for CLI commands."""

    config: Config

    def workflow(self) -> ReportWorkflow:
        return ReportWorkflow(config=self.config)


def _init_context(debug_override: Optional[bool] = None) -> AppContext:
    """Create a context with configuration and logging."""
    config = load_settings(debug_override)
    configure_logging(debug=config.debug)
    return AppContext(config=config)


def _fail(exc: MemoError) -> None:
    console.print(f"[bold red]{exc.status_code}[/bold red] {exc}")
    suggestion = getattr(exc, "suggestion", None)
    if suggestion:
        console.print(f"[yellow]{suggestion}[/yellow]")
    raise typer.Exit(code=1)


@app.callback()
def main_callback(
    ctx: typer.Context,
    debug: Optional[bool] = typer.Option(
        None,
        "--debug/--no-debug",
        help="Temporarily toggle verbose logging without touching environment variables.",
    ),
) -> None:
    """Attach the application context to Typer."""
    ctx.obj = _init_context(debug_override=debug)


@app.command()
def generate(
    ctx: typer.Context,
    name: str = typer.Argument(..., help="Company name or ticker, e.g. 'Apple' or 'TCS'"),
    exchange: Optional[str] = typer.Option(None, "--exchange", help="Exchange hint, e.g. NSE."),
    emit_json: bool = typer.Option(False, "--json", help="Also write the {company, research} payload as JSON."),
    markdown_path: Optional[Path] = typer.Option(
        None,
        "--markdown",
        help="Optional custom path for the rendered Markdown memo.",
    ),
    html_path: Optional[Path] = typer.Option(None, "--html", help="Optional custom path for the HTML memo."),
) -> None:
    """Run the LangGraph workflow for a single company and present the outcome."""
    context: AppContext = ctx.obj
    console.rule(f"Generating memo for {name}")

    try:
        with context.workflow() as workflow:
            with console.status("[bold cyan]Running workflow..."):
                result: ReportState = workflow.run(name, exchange)
    except MemoError as exc:
        _fail(exc)
        return

    if context.config.debug:
        for line in result.get("logs", []):
            console.print(f"[dim]{line}[/dim]")

    _print_run_summary(result)
    symbol = result.get("symbol") or name
    output_dir = context.config.output_dir

    output_md = markdown_path or output_dir / f"{symbol}.md"
    workflow.persist_markdown(result["markdown_report"], output_md)
    console.print(f"Markdown memo available at {output_md}")

    output_html = html_path or output_dir / f"{symbol}.html"
    workflow.persist_html(result["html_report"], output_html)
    console.print(f"HTML memo available at {output_html}")

    if emit_json:
        target = output_dir / f"{symbol}.json"
        target.parent.mkdir(parents=True, exist_ok=True)
        payload = json.dumps(result["report_model"].to_dict(), indent=2, ensure_ascii=False)
        target.write_text(payload, encoding="utf-8")
        console.print(f"JSON payload saved to {target}")

    narrative = result.get("narrative")
    segments = narrative.financial_structure.segments if narrative is not None else ()
    figure = draw_segments(segments, symbol=symbol)
    if figure is not None:
        segment_path = save_figure(figure, output_dir / "charts" / f"{symbol}_segments.png")
        console.print(f"Segment chart available at {segment_path}")


@app.command()
def chart(
    ctx: typer.Context,
    symbol: str = typer.Argument(..., help="Provider ticker, e.g. AAPL or TCS.NS"),
    period: str = typer.Option("1Y", "--period", help="One of 1Y, 3Y, 5Y."),
    output: Optional[Path] = typer.Option(None, "--output", help="PNG path for the chart."),
    seed: Optional[int] = typer.Option(None, "--seed", help="Seed the noise for a reproducible path."),
) -> None:
    """Draw the synthetic monthly price path for one period."""
    context: AppContext = ctx.obj
    period = period.upper()
    if period not in POINTS_PER_PERIOD:
        console.print(f"[red]Unsupported period {period}; choose from {', '.join(POINTS_PER_PERIOD)}[/red]")
        raise typer.Exit(code=2)

    try:
        client = FMPClient(
            context.config.fmp_api_key,
            base_url=context.config.fmp_base_url,
            proxy_url=context.config.proxy_url,
            timeout=context.config.http_timeout,
        )
        try:
            summary = parse_price_summary(client.fetch_price_summary(symbol))
        finally:
            client.close()
    except MemoError as exc:
        _fail(exc)
        return

    manager = PriceChartManager(summary, symbol=symbol, rng=np.random.default_rng(seed))
    try:
        manager.switch_period(period)
        stats = manager.stats()
        if stats:
            table = Table(title=f"{symbol} {period}")
            table.add_column("Metric", style="cyan")
            table.add_column("Value")
            for label, value in stats:
                table.add_row(label, value)
            console.print(table)
        else:
            console.print(f"[yellow]{NO_DATA_MESSAGE}[/yellow]")
        target = output or context.config.output_dir / "charts" / f"{symbol}_{period}.png"
        manager.save(target)
        console.print(f"Chart available at {target}")
    finally:
        manager.close()


@app.command()
def plan() -> None:
    """Display the high-level workflow path for quick operator reference."""
    table = Table(title="Workflow Stages")
    table.add_column("Step", style="cyan")
    table.add_column("Description")

    for idx, step in enumerate(describe_stages(), start=1):
        table.add_row(str(idx), step)

    console.print(table)


@app.command()
def serve(
    host: str = typer.Option("127.0.0.1", "--host", help="Interface to bind."),
    port: int = typer.Option(8000, "--port", help="Port to listen on."),
) -> None:
    """Serve the memo API with uvicorn."""
    import uvicorn

    console.print(f"Serving StockMemo API on http://{host}:{port}/api/generate-memo")
    uvicorn.run("stockmemo.app.api:app", host=host, port=port)


def _print_run_summary(state: ReportState) -> None:
    """Pretty-print a short run summary for operators."""
    table = Table(show_header=True, header_style="bold magenta")
    table.add_column("Key")
    table.add_column("Value")

    profile = state.get("profile")
    structured = state.get("structured")
    table.add_row("Company", profile.name if profile is not None else state.get("company_name", "?"))
    table.add_row("Symbol", state.get("symbol") or "N/A")
    table.add_row("Exchange", profile.exchange if profile is not None else "N/A")
    table.add_row("Report Date", state.get("report_date") or "N/A")
    table.add_row(
        "Snapshot Years",
        str(len(structured.financial_snapshot.data)) if structured is not None else "0",
    )
    table.add_row("Markdown", "yes" if state.get("markdown_report") else "no")
    table.add_row("Stages", str(len(state.get("stage_order", []))))

    console.print(table)
