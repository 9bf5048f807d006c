"""Error taxonomy and the HTTP handlers that enforce its propagation policy.

- ValidationError: malformed request. The only error that ends a request with
  a failure status and no result (HTTP 400 with per-field detail).
- ProviderError: narrative provider failure. Always recovered inside the
  rewriter; never reaches a handler.
- InternalError: unexpected failure in a pipeline. Surfaced as HTTP 500, but
  the body still carries a safe default result so the caller is never left
  without a recommendation.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Sequence

from fastapi import Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from starlette.responses import JSONResponse

from finguard.metrics import validation_errors_total

logger = logging.getLogger(__name__)


class FinguardError(Exception):
    code = "UNKNOWN_ERROR"


class ValidationError(FinguardError):
    code = "VALIDATION_ERROR"

    def __init__(self, fields: List[Dict[str, str]]):
        self.fields = fields
        summary = "; ".join(f"{f['path']}: {f['reason']}" for f in fields)
        super().__init__(f"Validation error: {summary}")

    def to_payload(self) -> Dict[str, Any]:
        return {
            "error": "validation_error",
            "code": self.code,
            "message": str(self),
            "fields": self.fields,
        }


class ProviderError(FinguardError):
    """Narrative provider call failed; ``reason`` is a short metric-safe label."""

    code = "PROVIDER_ERROR"

    def __init__(self, reason: str, detail: str = ""):
        self.reason = reason
        self.detail = detail
        super().__init__(f"{reason}: {detail}" if detail else reason)


class InternalError(FinguardError):
    code = "INTERNAL_ERROR"

    def __init__(self, operation: str, fallback: Dict[str, Any]):
        self.operation = operation
        self.fallback = fallback
        super().__init__(f"{operation} failed")

    def to_payload(self) -> Dict[str, Any]:
        return {
            **self.fallback,
            "error": "internal_error",
            "code": self.code,
            "detail": f"Failed to {self.operation}",
        }


def _camel(name: str) -> str:
    head, *rest = name.split("_")
    return head + "".join(w[:1].upper() + w[1:] for w in rest)


def _field_path(loc: Sequence[Any]) -> str:
    parts = [p for p in loc if p != "body"]
    if not parts:
        return "body"
    return ".".join(_camel(p) if isinstance(p, str) else str(p) for p in parts)


def validation_error_from_request(exc: RequestValidationError) -> ValidationError:
    fields = []
    for err in exc.errors():
        reason = str(err.get("msg", "invalid value"))
        # pydantic prefixes errors raised inside validators with "Value error, "
        if reason.startswith("Value error, "):
            reason = reason[len("Value error, ") :]
        fields.append({"path": _field_path(err.get("loc", ())), "reason": reason})
    return ValidationError(fields)


async def request_validation_handler(request: Request, exc: RequestValidationError):
    err = validation_error_from_request(exc)
    validation_errors_total.labels(route=request.url.path).inc()
    logger.info("request rejected: %s", err)
    return JSONResponse(status_code=400, content=err.to_payload())


async def internal_error_handler(request: Request, exc: InternalError):
    return JSONResponse(status_code=500, content=jsonable_encoder(exc.to_payload()))


__all__ = [
    "FinguardError",
    "ValidationError",
    "ProviderError",
    "InternalError",
    "validation_error_from_request",
    "request_validation_handler",
    "internal_error_handler",
]
