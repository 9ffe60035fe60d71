from __future__ import annotations

import json

import pytest

from stockmemo.config import Config
from stockmemo.domain.errors import UpstreamError
from stockmemo.domain.models.memo import StructuredFinancialData
from stockmemo.infrastructure.symbols import SymbolResolver
from stockmemo.workflows.context import WorkflowContext
from stockmemo.workflows.nodes import narrative
from stockmemo.workflows.nodes.narrative import _parse_json_response, _strip_code_fences, build_prompt


class RecordingLLM:
    def __init__(self, reply):
        self.reply = reply
        self.calls = []

    def generate(self, messages, *, temperature=0.3):
        self.calls.append((messages, temperature))
        return self.reply

    def close(self):
        pass


class NullDataClient:
    def fetch_bundle(self, symbol):
        return {}

    def close(self):
        pass


def make_context(llm) -> WorkflowContext:
    return WorkflowContext(config=Config(), data_client=NullDataClient(), llm=llm, resolver=SymbolResolver())


def test_code_fences_are_stripped():
    assert _strip_code_fences('```json\n{"a": 1}\n```') == '{"a": 1}'
    assert _strip_code_fences('```\n{"a": 1}\n```') == '{"a": 1}'
    assert _strip_code_fences('  {"a": 1} ') == '{"a": 1}'
    assert _parse_json_response('```json\n{"keyRisks": ["x"]}\n```') == {"keyRisks": ["x"]}


def test_malformed_reply_is_upstream_error():
    with pytest.raises(UpstreamError):
        _parse_json_response("Sure! Here is the analysis.")
    with pytest.raises(UpstreamError):
        _parse_json_response("[1, 2, 3]")


def test_prompt_carries_data_and_rules():
    prompt = build_prompt({"companyName": "Acme Corp", "symbol": "ACME"}, StructuredFinancialData())
    assert prompt.startswith("You are analyzing Acme Corp (ACME).")
    assert '"valuationMetrics"' in prompt
    assert '"Factual bullet 1 about Acme Corp"' in prompt
    assert "EXACTLY 4 business snapshot bullets" in prompt
    assert "NO predictions, NO recommendations" in prompt


def test_node_sends_system_prompt_and_parses_reply():
    reply = "```json\n" + json.dumps({"businessSnapshot": ["one"]}) + "\n```"
    llm = RecordingLLM(reply)
    state = {"raw_bundle": {"profile": {"companyName": "Acme Corp", "symbol": "ACME"}}}

    result = narrative.run(state, make_context(llm))

    assert result["narrative_raw"] == {"businessSnapshot": ["one"]}
    messages, temperature = llm.calls[0]
    assert messages[0] == {"role": "system", "content": "You are a financial analyst. Return ONLY valid JSON."}
    assert messages[1]["role"] == "user"
    assert temperature == 0.3


def test_node_without_llm_leaves_empty_narrative():
    result = narrative.run({}, make_context(None))
    assert result["narrative_raw"] == {}
    assert any("skipped" in line for line in result["logs"])
