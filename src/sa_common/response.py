"""Error envelope returned for every AppError.

    {
      "code": 3004,
      "message": "Auction already ended for slot ...",
      "data": {"category": "STATE_CONFLICT", "retryable": false},
      "timestamp": "2026-03-01T12:00:00+00:00",
      "request_id": "req_a1b2c3d4e5f6"
    }

Successful responses are the route's own response model, unwrapped.
"""

import uuid
from typing import Any

from pydantic import BaseModel, Field

from src.sa_common.datetime_utils import utc_now
from src.sa_common.errors import AppError


def _new_request_id() -> str:
    return f"req_{uuid.uuid4().hex[:12]}"


class ApiResponse(BaseModel):
    code: int = 0
    message: str = "success"
    data: Any = None
    timestamp: str = Field(default_factory=lambda: utc_now().isoformat())
    request_id: str = Field(default_factory=_new_request_id)


def error_response(exc: AppError, request_id: str | None = None) -> ApiResponse:
    resp = ApiResponse(
        code=exc.code,
        message=exc.message,
        data={"category": exc.category, "retryable": exc.retryable},
    )
    if request_id:
        resp.request_id = request_id
    return resp
