from __future__ import annotations

from rich.console import Console
from typer.testing import CliRunner

from stockmemo.cli import commands
from stockmemo.cli.commands import app

runner = CliRunner()


def test_plan_lists_stages():
    result = runner.invoke(app, ["plan"])
    assert result.exit_code == 0
    assert "resolve_symbol" in result.output
    assert "render" in result.output


def test_generate_without_credentials_exits(monkeypatch, tmp_path):
    monkeypatch.delenv("FMP_API_KEY", raising=False)
    monkeypatch.delenv("GROQ_API_KEY", raising=False)
    monkeypatch.setenv("OUTPUT_DIR", str(tmp_path))
    result = runner.invoke(app, ["generate", "Acme"])
    assert result.exit_code == 1
    assert "API keys not configured" in result.output


def test_chart_rejects_unknown_period():
    result = runner.invoke(app, ["chart", "ACME", "--period", "2Y"])
    assert result.exit_code == 2


def test_run_summary_reports_stage_count(monkeypatch):
    recorder = Console(record=True, width=120)
    monkeypatch.setattr(commands, "console", recorder)
    commands._print_run_summary(
        {"company_name": "Acme", "symbol": "ACME", "stage_order": ["a", "b", "c"], "markdown_report": "# Acme"}
    )
    output = recorder.export_text()
    assert "Stages" in output
    assert "Errors" not in output
    assert "ACME" in output
