from __future__ import annotations

import json

import pytest

from stockmemo.config import Config
from stockmemo.domain.errors import NotFoundError, UpstreamError
from stockmemo.infrastructure.symbols import SymbolResolver
from stockmemo.workflows.context import WorkflowContext
from stockmemo.workflows.graph import ReportWorkflow


def make_bundle():
    return {
        "profile": {
            "companyName": "Acme Corp",
            "symbol": "ACME",
            "exchangeShortName": "NASDAQ",
            "sector": "Technology",
            "industry": "Software",
            "pe": 21.5,
        },
        "incomeStatement": [
            {"date": "2024-12-31", "revenue": 1_500_000_000, "ebitda": 4e8, "netIncome": 1.5e8, "operatingIncome": 3e8, "eps": 1.8}
        ],
        "ratios": [{"date": "2024-12-31", "returnOnEquity": 0.2, "currentRatio": 1.4}],
        "cashFlow": [{"date": "2024-12-31", "freeCashFlow": 2e8}],
        "keyMetrics": [{"date": "2024-12-31", "peRatio": 19.0}],
        "prices": {
            "oneYear": None,
            "threeYear": {"startPrice": 100, "endPrice": 150, "change": 50, "maxDrawdown": -12, "volatility": 25},
            "fiveYear": None,
        },
    }


NARRATIVE = {
    "businessSnapshot": ["Makes widgets", "Sells globally", "Founded 1990", "Listed on NASDAQ", "extra"],
    "whyThisCOULDWork": [{"claim": "Recurring revenue", "evidenceStrength": "Moderate"}],
    "keyRisks": ["Competition"],
    "judgmentSupport": {"businessQuality": {"level": "High", "reasoning": "20% ROE"}},
    "narrativeContext": ["Opened new plant"],
}


class FakeDataClient:
    def __init__(self, bundle):
        self.bundle = bundle
        self.closed = False
        self.requested = []

    def fetch_bundle(self, symbol):
        self.requested.append(symbol)
        return self.bundle

    def search(self, query, limit=5):
        return [{"symbol": "ACME"}]

    def close(self):
        self.closed = True


class FakeLLM:
    def __init__(self, reply):
        self.reply = reply
        self.closed = False

    def generate(self, messages, *, temperature=0.3):
        return self.reply

    def close(self):
        self.closed = True


def make_workflow(bundle=None, reply=None):
    data_client = FakeDataClient(make_bundle() if bundle is None else bundle)
    llm = FakeLLM(reply if reply is not None else "```json\n" + json.dumps(NARRATIVE) + "\n```")
    context = WorkflowContext(
        config=Config(),
        data_client=data_client,
        llm=llm,
        resolver=SymbolResolver(search=data_client),
    )
    return ReportWorkflow(Config(), context=context), data_client, llm


def test_end_to_end_memo():
    workflow, data_client, _ = make_workflow()
    state = workflow.run("Acme")

    assert state["symbol"] == "ACME"
    assert data_client.requested == ["ACME"]
    assert state["stage_order"] == ["resolve_symbol", "fetch_financials", "structure_data", "narrative", "merge", "render"]
    assert "errors" not in state

    model = state["report_model"]
    assert model.company.name == "Acme Corp"
    assert len(model.narrative.business_snapshot) == 4
    assert len(model.narrative.key_risks) == 5

    markdown = state["markdown_report"]
    assert "# Acme Corp | NASDAQ | Technology" in markdown
    assert "| 3 Year | $100.00 | $150.00 | ↑ 50.00% | -12.00% | 25.00% |" in markdown
    assert "$1.50B" in markdown
    assert "Recurring revenue [Moderate]" in markdown
    assert "Opened new plant" in markdown
    assert "<html" in state["html_report"]
    assert state["rendered"].section("priceData").rows[0][0].text == "3 Year"


def test_known_ticker_is_used_for_fetch():
    workflow, data_client, _ = make_workflow()
    workflow.run("TCS", "NSE")
    assert data_client.requested == ["TCS.NS"]


def test_missing_profile_stops_the_run():
    bundle = make_bundle()
    bundle["profile"] = None
    workflow, _, _ = make_workflow(bundle=bundle)
    with pytest.raises(NotFoundError):
        workflow.run("Acme")


def test_malformed_narrative_stops_the_run():
    workflow, _, _ = make_workflow(reply="I cannot answer that.")
    with pytest.raises(UpstreamError):
        workflow.run("Acme")


def test_close_releases_clients(tmp_path):
    workflow, data_client, llm = make_workflow()
    with workflow:
        state = workflow.run("Acme")
        workflow.persist_state(state, tmp_path / "state.json")
    assert data_client.closed and llm.closed
    saved = json.loads((tmp_path / "state.json").read_text(encoding="utf-8"))
    assert saved["report_model"]["company"]["symbol"] == "ACME"
