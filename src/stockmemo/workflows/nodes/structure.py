"""LangGraph node deriving StructuredFinancialData from the raw bundle."""
from __future__ import annotations

from stockmemo.workflows.context import WorkflowContext
from stockmemo.workflows.state import ReportState


def run(state: ReportState, context: WorkflowContext) -> ReportState:
    logs = state.setdefault("logs", [])
    logs.append("StructureAgent -> derive snapshot, ratios and valuation context")

    structured = context.structurer.structure(state.get("raw_bundle") or {})
    state["structured"] = structured

    if structured.price_data is None or structured.price_data.is_empty():
        logs.append("StructureAgent -> no price performance windows available")
    logs.append(
        f"StructureAgent -> {len(structured.financial_snapshot.data)} snapshot years, "
        f"{len(structured.financial_ratios.data)} ratio years"
    )
    return state
