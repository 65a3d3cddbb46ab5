# videotube/core/responses.py
"""Success envelope returned by every route: {statusCode, success, message, data}."""
from typing import Any


def ok(data: Any = None, message: str = "success", status_code: int = 200) -> dict:
    return {"statusCode": status_code, "success": True, "message": message, "data": data}
