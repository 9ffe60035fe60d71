"""Workflow state definitions shared by LangGraph nodes."""
from __future__ import annotations

from typing import Any, Dict, List, Optional, TypedDict

from stockmemo.domain.models.memo import (
    CompanyProfile,
    NarrativeAnalysis,
    RenderedReport,
    StructuredFinancialData,
    UnifiedReportModel,
)


class ReportState(TypedDict, total=False):
    company_name: str
    exchange: Optional[str]
    symbol: str
    report_date: str

    raw_bundle: Dict[str, Any]
    profile: Optional[CompanyProfile]
    structured: Optional[StructuredFinancialData]
    narrative_raw: Optional[Dict[str, Any]]
    narrative: Optional[NarrativeAnalysis]
    report_model: Optional[UnifiedReportModel]

    rendered: Optional[RenderedReport]
    markdown_report: Optional[str]
    html_report: Optional[str]
    text_report: Optional[str]
    stage_order: List[str]

    logs: List[str]

    extras: Dict[str, Any]
