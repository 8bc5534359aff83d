import json
import logging
from typing import Any, Dict, List

from fastapi import Response, status
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from hrms_lite.core.exceptions import DomainError
from hrms_lite.db.errors import is_db_unavailable_error, is_unique_violation, to_db_unavailable_response

logger = logging.getLogger(__name__)

# Friendly message per request field; anything else keeps pydantic's own text
VALIDATION_MESSAGES = {
    "employeeId": "Employee ID is required",
    "fullName": "Full Name is required",
    "email": "Valid email is required",
    "department": "Department is required",
    "date": "Valid date is required",
    "status": "Status must be Present or Absent",
    "startDate": "Valid start date is required",
    "endDate": "Valid end date is required",
}


def format_validation_errors(errors) -> List[Dict[str, Any]]:
    formatted = []
    for err in errors:
        loc = [str(part) for part in err.get("loc", ())]
        location = loc[0] if loc else "body"
        path = ".".join(loc[1:])
        field = loc[-1] if len(loc) > 1 else ""
        formatted.append({
            "type": "field",
            "value": None if err.get("type") == "missing" else err.get("input"),
            "msg": VALIDATION_MESSAGES.get(field, err.get("msg", "Invalid value")),
            "path": path,
            "location": location,
        })
    return formatted


def safe_serialize(obj: Any) -> Any:
    if isinstance(obj, BaseModel):
        return obj.model_dump(mode="json", by_alias=True)
    elif isinstance(obj, list):
        return [safe_serialize(item) for item in obj]
    elif isinstance(obj, dict):
        return {key: safe_serialize(value) for key, value in obj.items()}
    elif isinstance(obj, (str, int, float, bool)) or obj is None:
        return obj
    else:
        try:
            return json.loads(json.dumps(obj, default=str))  # fallback
        except (TypeError, ValueError):
            return str(obj)  # final fallback


class ResponseHandler:
    @staticmethod
    def success(data: Any = None, code: int = status.HTTP_200_OK) -> JSONResponse:
        return JSONResponse(status_code=code, content=safe_serialize(data))

    @staticmethod
    def created(data: Any = None) -> JSONResponse:
        return ResponseHandler.success(data=data, code=status.HTTP_201_CREATED)

    @staticmethod
    def no_content() -> Response:
        return Response(status_code=status.HTTP_204_NO_CONTENT)

    @staticmethod
    def error(message: str, code: int) -> JSONResponse:
        return JSONResponse(status_code=code, content={"error": message})

    @staticmethod
    def validation_error(errors: List[Dict[str, Any]]) -> JSONResponse:
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content={"errors": safe_serialize(errors)},
        )

    @staticmethod
    def conflict(message: str = "Conflict") -> JSONResponse:
        return ResponseHandler.error(message, status.HTTP_409_CONFLICT)

    @staticmethod
    def unavailable() -> JSONResponse:
        code, body = to_db_unavailable_response()
        return JSONResponse(status_code=code, content=body)

    @staticmethod
    def internal_error(message: str = "Internal Server Error") -> JSONResponse:
        return ResponseHandler.error(message, status.HTTP_500_INTERNAL_SERVER_ERROR)

    @staticmethod
    def from_exception(exc: Exception) -> JSONResponse:
        """Map a failure to its response: domain error, then unavailable, then conflict, else 500."""
        if isinstance(exc, DomainError):
            return ResponseHandler.error(exc.message, exc.status_code)
        # Unreachable store: never leak driver internals to the client.
        if is_db_unavailable_error(exc):
            logger.warning("Database unavailable: %s", exc)
            return ResponseHandler.unavailable()
        if is_unique_violation(exc):
            return ResponseHandler.conflict("Duplicate entry detected")
        logger.exception("Request failed", exc_info=exc)
        return ResponseHandler.internal_error(str(exc) or "Internal Server Error")
