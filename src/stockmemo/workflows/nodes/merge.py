"""LangGraph node joining identity, structured data and narrative."""
from __future__ import annotations

from stockmemo.domain.models.memo import StructuredFinancialData
from stockmemo.workflows.context import WorkflowContext
from stockmemo.workflows.state import ReportState


def run(state: ReportState, context: WorkflowContext) -> ReportState:
    logs = state.setdefault("logs", [])
    bundle = state.get("raw_bundle") or {}
    structured = state.get("structured") or StructuredFinancialData()
    narrative = state.get("narrative") or state.get("narrative_raw")

    model = context.merger.merge(bundle.get("profile"), structured, narrative)
    state["profile"] = model.company
    state["narrative"] = model.narrative
    state["report_model"] = model
    logs.append(f"MergeAgent -> unified report model ready for {model.company.symbol}")
    return state
