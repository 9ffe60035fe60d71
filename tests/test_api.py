from __future__ import annotations

import pytest
from fastapi.testclient import TestClient

from stockmemo.app.api import MEMO_ROUTE, create_app, handle_memo_request
from stockmemo.config import Config
from stockmemo.domain.errors import NotFoundError, UpstreamError
from stockmemo.domain.models.memo import CompanyProfile, NarrativeAnalysis, StructuredFinancialData, UnifiedReportModel


def make_config(**overrides) -> Config:
    values = {"fmp_api_key": "fmp", "groq_api_key": "groq"}
    values.update(overrides)
    return Config(**values)


def make_model() -> UnifiedReportModel:
    return UnifiedReportModel(
        company=CompanyProfile("Acme Corp", "ACME", "NASDAQ", "Technology", "Software"),
        structured=StructuredFinancialData(),
        narrative=NarrativeAnalysis(),
    )


class FakeWorkflow:
    instances = []

    def __init__(self, config, error=None):
        self.config = config
        self.error = error
        self.calls = []
        self.closed = False
        FakeWorkflow.instances.append(self)

    def run(self, company_name, exchange=None):
        self.calls.append((company_name, exchange))
        if self.error is not None:
            raise self.error
        return {"report_model": make_model()}

    def close(self):
        self.closed = True


def failing(error):
    return lambda config: FakeWorkflow(config, error=error)


def make_client(config=None, factory=FakeWorkflow) -> TestClient:
    return TestClient(create_app(config=config or make_config(), workflow_factory=factory))


def test_options_is_empty_ok_with_cors():
    response = make_client().options(MEMO_ROUTE)
    assert response.status_code == 200
    assert response.content == b""
    assert response.headers["access-control-allow-origin"] == "*"
    assert response.headers["access-control-allow-methods"] == "POST, OPTIONS"


@pytest.mark.parametrize("method", ["get", "put", "delete"])
def test_other_methods_are_rejected(method):
    response = getattr(make_client(), method)(MEMO_ROUTE)
    assert response.status_code == 405
    assert response.json() == {"error": "Method not allowed"}
    assert response.headers["access-control-allow-headers"] == "Content-Type"


@pytest.mark.parametrize("body", [{}, {"companyName": ""}, {"companyName": "   "}, {"companyName": 42}])
def test_company_name_is_required(body):
    response = make_client().post(MEMO_ROUTE, json=body)
    assert response.status_code == 400
    assert response.json() == {"error": "Company name is required"}


def test_invalid_json_body_is_rejected():
    response = make_client().post(MEMO_ROUTE, content=b"not json", headers={"content-type": "application/json"})
    assert response.status_code == 400


def test_missing_credentials():
    response = make_client(config=make_config(groq_api_key=None)).post(MEMO_ROUTE, json={"companyName": "Acme"})
    assert response.status_code == 500
    assert response.json() == {"error": "API keys not configured"}


def test_not_found():
    response = make_client(factory=failing(NotFoundError("NOPE"))).post(MEMO_ROUTE, json={"companyName": "Nope"})
    assert response.status_code == 404
    assert response.json() == {
        "error": "Company not found in financial data provider",
        "suggestion": "Try a different company or check symbol format",
    }


def test_upstream_failure():
    error = UpstreamError("Groq API", "Too Many Requests", status=429)
    response = make_client(factory=failing(error)).post(MEMO_ROUTE, json={"companyName": "Acme"})
    assert response.status_code == 502
    body = response.json()
    assert body["error"] == "Failed to generate memo"
    assert body["details"] == "Groq API error: 429 - Too Many Requests"


def test_unexpected_failure_is_500():
    response = make_client(factory=failing(RuntimeError("kaboom"))).post(MEMO_ROUTE, json={"companyName": "Acme"})
    assert response.status_code == 500
    assert response.json() == {"error": "Failed to generate memo", "details": "kaboom"}


def test_success_payload():
    FakeWorkflow.instances.clear()
    response = make_client().post(MEMO_ROUTE, json={"companyName": "Acme", "exchange": "NSE"})
    assert response.status_code == 200
    body = response.json()
    assert body["success"] is True
    assert body["data"]["company"]["name"] == "Acme Corp"
    assert body["data"]["research"]["financialSnapshot"] == {"years": [], "data": []}
    assert len(body["data"]["research"]["businessSnapshot"]) == 0
    workflow = FakeWorkflow.instances[-1]
    assert workflow.calls == [("Acme", "NSE")]
    assert workflow.closed


def test_handler_closes_workflow_on_error():
    workflow = FakeWorkflow(make_config(), error=NotFoundError("X"))
    status, payload = handle_memo_request(
        "post", {"companyName": "X"}, config=make_config(), workflow_factory=lambda config: workflow
    )
    assert status == 404
    assert workflow.closed
    assert handle_memo_request("OPTIONS", None, config=make_config()) == (200, None)


def test_threadpool_helper_comes_from_fastapi():
    from fastapi import concurrency

    from stockmemo.app import api

    assert api.run_in_threadpool is concurrency.run_in_threadpool
