"""Workflow blueprint describing pipeline stages and their handlers."""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Callable, List, TYPE_CHECKING

from stockmemo.workflows.nodes import (
    data_load,
    merge,
    narrative,
    structure,
    symbol,
    writing,
)

if TYPE_CHECKING:
    from stockmemo.workflows.context import WorkflowContext
    from stockmemo.workflows.state import ReportState


@dataclass
class StageSpec:
    """Single LangGraph stage definition."""

    key: str
    description: str
    handler: Callable[["ReportState", "WorkflowContext"], "ReportState"]
    depends_on: List[str] = field(default_factory=list)


def build_default_stages() -> List[StageSpec]:
    """Return the ordered stages for the memo workflow."""
    return [
        StageSpec(
            key="resolve_symbol",
            description="Map the company name (and exchange hint) to a provider ticker.",
            handler=symbol.run,
        ),
        StageSpec(
            key="fetch_financials",
            description="Pull profile, statements, ratios, key metrics and price history from FMP.",
            handler=data_load.run,
            depends_on=["resolve_symbol"],
        ),
        StageSpec(
            key="structure_data",
            description="Derive the 5-year snapshot, ratios and valuation context (pandas-based).",
            handler=structure.run,
            depends_on=["fetch_financials"],
        ),
        StageSpec(
            key="narrative",
            description="LLM-generate the qualitative analysis grounded on the structured data.",
            handler=narrative.run,
            depends_on=["structure_data"],
        ),
        StageSpec(
            key="merge",
            description="Join company identity, structured data and narrative with fixed list sizes.",
            handler=merge.run,
            depends_on=["structure_data", "narrative"],
        ),
        StageSpec(
            key="render",
            description="Render the memo sections to Markdown, HTML and plain text.",
            handler=writing.run,
            depends_on=["merge"],
        ),
    ]
