from typing import Any, Dict
from fastapi.responses import JSONResponse

SUCCESS_MESSAGE = "Operation successful"

def envelope(code: int, message: str, data: Any = None) -> Dict[str, Any]:
    return {"code": code, "message": message, "data": data}

def success_response(data: Any) -> JSONResponse:
    """Standard success envelope."""
    return JSONResponse(status_code=200, content=envelope(200, SUCCESS_MESSAGE, data))

def error_response(status_code: int, message: str) -> JSONResponse:
    """Standard error envelope, always with ``data: null``."""
    return JSONResponse(status_code=status_code, content=envelope(status_code, message))
