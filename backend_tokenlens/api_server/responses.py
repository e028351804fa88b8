"""
JSON envelopes shared by all routes.

Success: {"success": true, "data": ...}
Failure: {"success": false, "error": "...", "details": "..."} or, for input
validation, {"success": false, "errors": [{"msg", "param", "value", "location"}]}.
"""

from __future__ import annotations

from typing import Any

from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse

from backend_tokenlens.core.exceptions import FieldError

GENERIC_ERROR = "Something went wrong! Try again later."


def success_response(data: Any) -> dict[str, Any]:
    return {"success": True, "data": data}


def error_response(status_code: int, error: str, details: str | None = None) -> JSONResponse:
    content: dict[str, Any] = {"success": False, "error": error}
    if details is not None:
        content["details"] = details
    return JSONResponse(status_code=status_code, content=content)


def validation_error_response(errors: list[FieldError], error: str | None = None) -> JSONResponse:
    content: dict[str, Any] = {
        "success": False,
        "errors": jsonable_encoder([e.to_dict() for e in errors]),
    }
    if error is not None:
        content["error"] = error
    return JSONResponse(status_code=400, content=content)
