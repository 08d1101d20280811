from typing import Any, Optional

from pydantic import BaseModel


class ApiResponse(BaseModel):
    """Envelope every endpoint answers with (what the mobile app decodes)."""

    success: bool = True
    data: Any = None
    count: int = 0
    message: Optional[str] = None


def ok(data: Any = None, message: Optional[str] = None, count: Optional[int] = None) -> dict:
    """Success envelope. `count` defaults to the number of items in `data`."""
    if count is None:
        if data is None:
            count = 0
        elif isinstance(data, list):
            count = len(data)
        else:
            count = 1
    return ApiResponse(success=True, data=data, count=count, message=message).model_dump()


def failure(message: str) -> dict:
    return ApiResponse(success=False, data=None, count=0, message=message).model_dump()
