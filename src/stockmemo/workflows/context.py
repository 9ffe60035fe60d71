"""Workflow dependency container."""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional, Protocol

from stockmemo.config import Config
from stockmemo.domain.services.narrative_merge import NarrativeMerger
from stockmemo.domain.services.structuring import FinancialDataStructurer
from stockmemo.infrastructure.symbols import SymbolResolver
from stockmemo.reports.renderer import ReportRenderer


class FinancialDataSource(Protocol):
    def fetch_bundle(self, symbol: str) -> Mapping[str, Any]:
        ...

    def close(self) -> None:
        ...


class NarrativeModel(Protocol):
    def generate(self, messages: List[Dict[str, str]], *, temperature: float = 0.3) -> str:
        ...

    def close(self) -> None:
        ...


@dataclass
class WorkflowContext:
    """Holds heavy-weight dependencies shared by LangGraph nodes."""

    config: Config
    data_client: FinancialDataSource
    llm: Optional[NarrativeModel]
    resolver: SymbolResolver
    structurer: FinancialDataStructurer = field(default_factory=FinancialDataStructurer)
    merger: NarrativeMerger = field(default_factory=NarrativeMerger)
    renderer: ReportRenderer = field(default_factory=ReportRenderer)

    def close(self) -> None:
        """Release any dependencies that need explicit cleanup."""
        if self.llm is not None:
            self.llm.close()
        self.data_client.close()
