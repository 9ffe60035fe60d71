"""LangGraph node responsible for final memo assembly."""
from __future__ import annotations

from stockmemo.workflows.context import WorkflowContext
from stockmemo.workflows.state import ReportState


def run(state: ReportState, context: WorkflowContext) -> ReportState:
    logs = state.setdefault("logs", [])
    logs.append("WritingAgent -> render Markdown, HTML and text output")

    model = state["report_model"]
    renderer = context.renderer
    report = renderer.build(model)

    state["rendered"] = report
    state["markdown_report"] = renderer.render_markdown(report)
    state["html_report"] = renderer.render_html(report)
    state["text_report"] = renderer.render_plain_text(report)
    return state
