"""HTTP surface: the memo request handler and the FastAPI app that mounts it."""
from __future__ import annotations

import logging
from typing import Any, Callable, Dict, Mapping, Optional, Tuple

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse, Response
from fastapi.concurrency import run_in_threadpool

from stockmemo.config import Config
from stockmemo.domain.errors import MemoError, ValidationError
from stockmemo.settings.loader import load_settings
from stockmemo.workflows.graph import ReportWorkflow

logger = logging.getLogger(__name__)

MEMO_ROUTE = "/api/generate-memo"

CORS_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Methods": "POST, OPTIONS",
    "Access-Control-Allow-Headers": "Content-Type",
}

# Every verb reaches the handler so it can answer 405 itself.
ROUTE_METHODS = ["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"]

WorkflowFactory = Callable[[Config], ReportWorkflow]


def handle_memo_request(
    method: str,
    body: Any,
    *,
    config: Config,
    workflow_factory: WorkflowFactory = ReportWorkflow,
) -> Tuple[int, Optional[Dict[str, Any]]]:
    """Map one inbound request to (status code, JSON payload); OPTIONS has no payload."""
    method = (method or "").upper()
    if method == "OPTIONS":
        return 200, None

    try:
        if method != "POST":
            raise ValidationError.method_not_allowed()
        data = body if isinstance(body, Mapping) else {}
        company_name = data.get("companyName")
        if not isinstance(company_name, str) or not company_name.strip():
            raise ValidationError("Company name is required")
        exchange = data.get("exchange")
        exchange = exchange if isinstance(exchange, str) and exchange.strip() else None

        config.require_credentials()
        workflow = workflow_factory(config)
        try:
            state = workflow.run(company_name, exchange)
        finally:
            workflow.close()
    except MemoError as exc:
        if exc.status_code >= 500:
            logger.error("Research failed: %s", exc)
        else:
            logger.info("Request rejected (%s): %s", exc.status_code, exc)
        return exc.status_code, exc.to_payload()
    except Exception as exc:  # pylint: disable=broad-except
        logger.exception("Research failed")
        return 500, {"error": MemoError.public_message, "details": str(exc)}

    model = state["report_model"]
    return 200, {"success": True, "data": model.to_dict()}


def create_app(
    config: Optional[Config] = None,
    workflow_factory: WorkflowFactory = ReportWorkflow,
) -> FastAPI:
    """Build the API; without an explicit config, settings are read per request."""
    api = FastAPI(title="StockMemo", description="Analytical research memos from public financial data.")

    @api.api_route(MEMO_ROUTE, methods=ROUTE_METHODS)
    async def generate_memo(request: Request) -> Response:
        body = None
        if request.method == "POST":
            try:
                body = await request.json()
            except ValueError:
                body = None
        status_code, payload = await run_in_threadpool(
            handle_memo_request,
            request.method,
            body,
            config=config or load_settings(),
            workflow_factory=workflow_factory,
        )
        if payload is None:
            return Response(status_code=status_code, headers=CORS_HEADERS)
        return JSONResponse(payload, status_code=status_code, headers=CORS_HEADERS)

    @api.get("/health")
    def health() -> Dict[str, str]:
        return {"status": "ok"}

    return api


app = create_app()
