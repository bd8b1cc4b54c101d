"""
schemas/common.py

- Shared response shapes.
- Every endpoint answers with a flat envelope: {"ok": true, ...payload}
  on success, {"ok": false, "error": "..."} on failure. Validation
  failures also carry the full list under "errors".
"""

from __future__ import annotations

from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field


class ErrorResponse(BaseModel):
    """Body returned by the global error handlers (middlewares/error_handler.py)."""
    ok: bool = False
    error: str = Field(..., description="human readable message, safe to show in the UI")
    errors: Optional[List[str]] = Field(default=None, description="every validation message, when applicable")

    model_config = ConfigDict(extra="ignore")


def error_body(message: str, errors: Optional[List[str]] = None) -> dict:
    return ErrorResponse(error=message, errors=errors).model_dump(exclude_none=True)


# OpenAPI documentation for the failure statuses shared by the routers
ERROR_RESPONSES = {
    400: {"model": ErrorResponse},
    404: {"model": ErrorResponse},
    500: {"model": ErrorResponse},
}
