from typing import Any

from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse


def success_response(data: Any = None, message: str | None = None, status_code: int = 200, **extra) -> JSONResponse:
    """``{"success": true, "data": ..., "message"?: ...}`` plus any extra top-level keys."""
    body: dict[str, Any] = {"success": True, "data": jsonable_encoder(data)}
    if message:
        body["message"] = message
    for key, value in extra.items():
        body[key] = jsonable_encoder(value)
    return JSONResponse(status_code=status_code, content=body)
