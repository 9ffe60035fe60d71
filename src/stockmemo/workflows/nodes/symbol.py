"""LangGraph node resolving the requested company name to a ticker."""
from __future__ import annotations

from stockmemo.workflows.context import WorkflowContext
from stockmemo.workflows.state import ReportState


def run(state: ReportState, context: WorkflowContext) -> ReportState:
    logs = state.setdefault("logs", [])
    company_name = state.get("company_name") or ""
    exchange = state.get("exchange")

    symbol = context.resolver.resolve(company_name, exchange)
    state["symbol"] = symbol
    logs.append(f"SymbolResolver -> {company_name!r} resolved to {symbol}")
    return state
