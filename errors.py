"""API error type and its JSON rendering."""

from typing import Optional
from fastapi import Request
from fastapi.responses import JSONResponse


class ApiError(Exception):
    """Error returned to the caller as ``{error, details?, tip?}``."""

    def __init__(
        self,
        status_code: int,
        error: str,
        details: Optional[str] = None,
        tip: Optional[str] = None,
    ):
        super().__init__(error)
        self.status_code = status_code
        self.error = error
        self.details = details
        self.tip = tip

    def to_dict(self) -> dict:
        body = {"error": self.error}
        if self.details is not None:
            body["details"] = self.details
        if self.tip is not None:
            body["tip"] = self.tip
        return body


async def api_error_handler(request: Request, exc: ApiError) -> JSONResponse:
    """FastAPI exception handler for ApiError."""
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())
