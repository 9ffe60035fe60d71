"""Error taxonomy shared by the pipeline, the API handler and the CLI.

Only these conditions stop a memo from being produced. Everything else that is
missing or malformed degrades to sentinel values further down the pipeline.
"""
from __future__ import annotations

from typing import Any, Dict, Optional


class MemoError(Exception):
    """Base class for terminal memo-generation failures."""

    status_code: int = 500
    public_message: str = "Failed to generate memo"

    def __init__(self, message: str, *, status_code: Optional[int] = None) -> None:
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code

    def to_payload(self) -> Dict[str, Any]:
        return {"error": self.public_message, "details": self.message}


class ValidationError(MemoError):
    """Request rejected before any external call (bad input or HTTP method)."""

    status_code = 400

    @classmethod
    def method_not_allowed(cls) -> "ValidationError":
        return cls("Method not allowed", status_code=405)

    def to_payload(self) -> Dict[str, Any]:
        return {"error": self.message}


class ConfigurationError(MemoError):
    """Required credentials are missing."""

    status_code = 500

    def to_payload(self) -> Dict[str, Any]:
        return {"error": self.message}


class NotFoundError(MemoError):
    """The resolved symbol has no company profile at the data provider."""

    status_code = 404
    default_suggestion = "Try a different company or check symbol format"

    def __init__(self, symbol: str, *, suggestion: Optional[str] = None) -> None:
        super().__init__(f"Company not found for symbol {symbol!r}")
        self.symbol = symbol
        self.suggestion = suggestion or self.default_suggestion

    def to_payload(self) -> Dict[str, Any]:
        return {
            "error": "Company not found in financial data provider",
            "suggestion": self.suggestion,
        }


class UpstreamError(MemoError):
    """An external collaborator failed or returned an unusable payload."""

    status_code = 502

    def __init__(
        self,
        source: str,
        detail: str,
        *,
        status: Optional[int] = None,
    ) -> None:
        label = f"{source} error: {status}" if status is not None else f"{source} error"
        super().__init__(f"{label} - {detail}" if detail else label)
        self.source = source
        self.detail = detail
        self.status = status

    def to_payload(self) -> Dict[str, Any]:
        payload = super().to_payload()
        payload["upstream"] = {"source": self.source, "status": self.status, "detail": self.detail}
        return payload


class DataIncompleteError(MemoError):
    """Company identity could not be established from the provider profile."""

    status_code = 422

    def __init__(self, missing: Any) -> None:
        fields = ", ".join(missing) if isinstance(missing, (list, tuple)) else str(missing)
        super().__init__(f"Company profile incomplete; missing: {fields}")
        self.missing = list(missing) if isinstance(missing, (list, tuple)) else [str(missing)]
