"""LangGraph workflow assembly for the end-to-end memo pipeline."""
from __future__ import annotations

import json
from dataclasses import asdict, is_dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional

from langgraph.graph import END, StateGraph

from stockmemo.config import Config
from stockmemo.infrastructure.data_providers.fmp_client import FMPClient
from stockmemo.infrastructure.llm.groq_client import GroqClient
from stockmemo.infrastructure.symbols import SymbolResolver
from stockmemo.workflows import context as context_module
from stockmemo.workflows.blueprint import StageSpec, build_default_stages
from stockmemo.workflows.state import ReportState


class ReportWorkflow:
    """Compose LangGraph nodes into a runnable workflow."""

    def __init__(
        self,
        config: Config,
        *,
        context: Optional[context_module.WorkflowContext] = None,
    ) -> None:
        self._config = config
        self._context = context or self._build_context()
        self._stages: List[StageSpec] = build_default_stages()
        self._graph = self._build_graph()

    def _build_context(self) -> context_module.WorkflowContext:
        self._config.require_credentials()
        fmp_client = FMPClient(
            self._config.fmp_api_key,
            base_url=self._config.fmp_base_url,
            proxy_url=self._config.proxy_url,
            timeout=self._config.http_timeout,
        )
        groq_client = GroqClient(
            self._config.groq_api_key,
            self._config.groq_model,
            base_url=self._config.groq_base_url,
            proxy_url=self._config.proxy_url,
            timeout=max(self._config.http_timeout, 60.0),
        )
        return context_module.WorkflowContext(
            config=self._config,
            data_client=fmp_client,
            llm=groq_client,
            resolver=SymbolResolver(search=fmp_client),
        )

    @property
    def context(self) -> context_module.WorkflowContext:
        return self._context

    def _build_graph(self):
        builder = StateGraph(dict)

        if not self._stages:
            raise RuntimeError("Workflow blueprint is empty; cannot build LangGraph.")

        for stage in self._stages:
            builder.add_node(stage.key, self._wrap(stage.handler))

        # Stages run strictly in declared order; each depends on the one before.
        builder.set_entry_point(self._stages[0].key)
        for current, nxt in zip(self._stages, self._stages[1:]):
            builder.add_edge(current.key, nxt.key)
        builder.add_edge(self._stages[-1].key, END)

        return builder.compile(checkpointer=None)

    def _wrap(self, func: Callable[[ReportState, context_module.WorkflowContext], ReportState]):
        def wrapper(state: Dict[str, Any]) -> Dict[str, Any]:
            return func(state, self._context)

        return wrapper

    def run(self, company_name: str, exchange: Optional[str] = None) -> ReportState:
        """Execute the workflow for a single company. Typed MemoErrors propagate."""
        initial_state: ReportState = {
            "company_name": company_name,
            "exchange": exchange,
            "report_date": datetime.now(timezone.utc).date().isoformat(),
            "logs": [],
            "extras": {},
            "stage_order": [stage.key for stage in self._stages],
        }
        result: ReportState = self._graph.invoke(initial_state)
        return result  # type: ignore[return-value]

    def persist_state(self, state: ReportState, path: Path) -> None:
        """Serialize the workflow state to disk for debugging or auditing."""
        path.parent.mkdir(parents=True, exist_ok=True)
        payload = json.dumps(state, default=_json_serializer, indent=2, ensure_ascii=False)
        path.write_text(payload, encoding="utf-8")

    def persist_markdown(self, markdown: str, path: Path) -> None:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(markdown, encoding="utf-8")

    def persist_html(self, html: str, path: Path) -> None:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(html, encoding="utf-8")

    def describe_stages(self) -> List[str]:
        """Return human-readable workflow stage descriptions."""
        return describe_stages(self._stages)

    def close(self) -> None:
        self._context.close()

    def __enter__(self) -> "ReportWorkflow":
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()


def describe_stages(stages: Optional[List[StageSpec]] = None) -> List[str]:
    return [f"{stage.key}: {stage.description}" for stage in stages or build_default_stages()]


def _json_serializer(value: Any) -> Any:
    if hasattr(value, "to_dict"):
        return value.to_dict()
    if is_dataclass(value):
        return asdict(value)
    if hasattr(value, "tolist"):
        return value.tolist()
    return str(value)
