"""LangGraph node fetching the raw financial bundle for the resolved symbol."""
from __future__ import annotations

import logging

from stockmemo.domain.errors import NotFoundError
from stockmemo.workflows.context import WorkflowContext
from stockmemo.workflows.state import ReportState

logger = logging.getLogger(__name__)

BUNDLE_SECTIONS = ("incomeStatement", "ratios", "cashFlow", "keyMetrics")


def run(state: ReportState, context: WorkflowContext) -> ReportState:
    """Populate the workflow state with the provider bundle; no profile means not found."""
    logs = state.setdefault("logs", [])
    symbol = state["symbol"]

    logs.append(f"DataLoadAgent -> fetch financial data for {symbol}")
    bundle = dict(context.data_client.fetch_bundle(symbol) or {})
    if not bundle.get("profile"):
        raise NotFoundError(symbol)

    counts = {key: len(bundle.get(key) or []) for key in BUNDLE_SECTIONS}
    empty = [key for key, count in counts.items() if not count]
    if empty:
        logs.append(f"DataLoadAgent -> provider returned no rows for: {', '.join(empty)}")
    logger.debug("Bundle section sizes for %s: %s", symbol, counts)

    state["raw_bundle"] = bundle
    return state
