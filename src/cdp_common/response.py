"""Response envelope for the CDP API.

Every endpoint answers with:
{
    "code": 0,           // 0=success, otherwise an AppError code (1xxx-9xxx)
    "message": "success",
    "data": { ... },     // on error: the rejected request's structured fields
    "timestamp": "...",
    "request_id": "..."
}

Balances, debts and rates are 18- or 27-decimal integers. They travel as
decimal strings because JSON clients that parse numbers as doubles would
round them.
"""

import uuid
from datetime import datetime, timezone
from typing import Any

from pydantic import BaseModel, Field


class ApiResponse(BaseModel):
    code: int = 0
    message: str = "success"
    data: Any = None
    timestamp: str = Field(default_factory=lambda: datetime.now(timezone.utc).isoformat())
    request_id: str = Field(default_factory=lambda: f"req_{uuid.uuid4().hex[:12]}")


def stringify_amounts(values: dict[str, Any]) -> dict[str, Any]:
    """Render integer fields as decimal strings; other values pass through."""
    return {
        k: str(v) if isinstance(v, int) and not isinstance(v, bool) else v
        for k, v in values.items()
    }


def success_response(data: Any = None) -> ApiResponse:
    return ApiResponse(code=0, message="success", data=data)


def error_response(
    code: int, message: str, details: dict[str, Any] | None = None
) -> ApiResponse:
    """Error envelope; *details* (e.g. minimum_required on a low bid) go in data."""
    return ApiResponse(
        code=code,
        message=message,
        data=stringify_amounts(details) if details else None,
    )
