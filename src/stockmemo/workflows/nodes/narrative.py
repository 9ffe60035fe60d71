"""LangGraph node to request the qualitative narrative from the LLM."""
from __future__ import annotations

import json
import re
from typing import Any, Dict, List, Mapping

from stockmemo.domain.errors import UpstreamError
from stockmemo.domain.models.memo import StructuredFinancialData
from stockmemo.workflows.context import WorkflowContext
from stockmemo.workflows.state import ReportState

SYSTEM_PROMPT = "You are a financial analyst. Return ONLY valid JSON."

TEMPERATURE = 0.3

RESPONSE_SHAPE = """{{
  "priceContext": {{
    "trend": "Neutral description of price trends based on the data provided",
    "volatility": "Assessment based on volatility number"
  }},
  "financialStructure": {{
    "description": "Analytical description of revenue/margin trends from the 5-year data",
    "segments": []
  }},
  "businessSnapshot": [
    "Factual bullet 1 about {name}",
    "Factual bullet 2",
    "Factual bullet 3",
    "Factual bullet 4"
  ],
  "whyThisCOULDWork": [
    {{"claim": "Management claim 1", "evidenceStrength": "Strong"}},
    {{"claim": "Management claim 2", "evidenceStrength": "Moderate"}},
    {{"claim": "Management claim 3", "evidenceStrength": "Weak"}}
  ],
  "keyRisks": [
    "Risk 1", "Risk 2", "Risk 3", "Risk 4", "Risk 5"
  ],
  "valuationSanity": {{
    "assessment": "Based on P/E data: Cheap/Inline/Premium",
    "reasoning": "Brief explanation using the numbers"
  }},
  "judgmentSupport": {{
    "businessQuality": {{"level": "High/Medium/Low", "reasoning": "Based on margins/ROE"}},
    "evidenceStrength": {{"level": "High/Medium/Low", "reasoning": "Data quality assessment"}},
    "uncertaintyLevel": {{"level": "High/Medium/Low", "reasoning": "Based on volatility/trends"}}
  }},
  "validationNeeds": [
    "Validation 1", "Validation 2", "Validation 3"
  ],
  "narrativeContext": [
    "Recent development 1", "Recent development 2", "Recent development 3"
  ]
}}"""

RULES = """RULES:
- Reference the numerical data where applicable
- EXACTLY 4 business snapshot bullets
- EXACTLY 3 whyThisCOULDWork with evidence tags
- EXACTLY 5 keyRisks
- EXACTLY 3 validationNeeds
- NO predictions, NO recommendations"""


def run(state: ReportState, context: WorkflowContext) -> ReportState:
    logs = state.setdefault("logs", [])
    profile = (state.get("raw_bundle") or {}).get("profile") or {}
    structured = state.get("structured") or StructuredFinancialData()

    if context.llm is None:
        logs.append("NarrativeAgent -> skipped (LLM client not configured)")
        state["narrative_raw"] = {}
        return state

    logs.append("NarrativeAgent -> request qualitative analysis")
    messages = [
        {"role": "system", "content": SYSTEM_PROMPT},
        {"role": "user", "content": build_prompt(profile, structured)},
    ]
    raw = context.llm.generate(messages, temperature=TEMPERATURE)
    state.setdefault("extras", {})["narrative_raw_text"] = raw

    state["narrative_raw"] = _parse_json_response(raw)
    return state


def build_prompt(profile: Mapping[str, Any], structured: StructuredFinancialData) -> str:
    name = profile.get("companyName") or profile.get("name") or ""
    symbol = profile.get("symbol") or ""
    data = json.dumps(structured.to_dict(), indent=2, ensure_ascii=False)
    parts: List[str] = [
        f"You are analyzing {name} ({symbol}).",
        "",
        "FINANCIAL DATA PROVIDED:",
        data,
        "",
        "Based on this REAL financial data, provide analytical interpretation in JSON format (no markdown):",
        "",
        RESPONSE_SHAPE.format(name=name),
        "",
        RULES,
    ]
    return "\n".join(parts)


def _parse_json_response(raw: str) -> Dict[str, Any]:
    """Parse the model reply into one JSON object, tolerating code fences."""
    text = _strip_code_fences(raw or "")
    try:
        parsed = json.loads(text)
    except ValueError as exc:
        raise UpstreamError("Groq API", f"narrative is not valid JSON ({exc})") from exc
    if not isinstance(parsed, dict):
        raise UpstreamError("Groq API", f"narrative must be a JSON object, got {type(parsed).__name__}")
    return parsed


def _strip_code_fences(text: str) -> str:
    stripped = text.strip()
    if not stripped.startswith("```"):
        return stripped
    return re.sub(r"```(?:json)?\s*", "", stripped).strip()
