"""
Error types raised by the auth and todo operations, and the FastAPI handlers
that turn them into JSON responses.

Every error ends the request. Validation problems are reported for all
offending fields at once as a ``{field: [messages]}`` mapping.
"""

from typing import Dict, Iterable, List, Mapping, Optional

import pydantic
from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

FieldErrors = Dict[str, List[str]]


class TodoAPIError(Exception):
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR

    def to_body(self) -> dict:
        return {"status": "error", "message": str(self)}


class ValidationError(TodoAPIError):
    status_code = status.HTTP_422_UNPROCESSABLE_ENTITY

    def __init__(self, errors: Mapping[str, List[str]]):
        super().__init__("Validation failed")
        self.errors: FieldErrors = {field: list(messages) for field, messages in errors.items()}

    def to_body(self) -> dict:
        return {"status": "error", "message": "Validation failed", "errors": self.errors}


class Unauthenticated(TodoAPIError):
    status_code = status.HTTP_401_UNAUTHORIZED

    def __init__(self, reason: str = "Unauthenticated."):
        # reason is for logs only; the response body is always the same
        super().__init__(reason)

    def to_body(self) -> dict:
        return {"message": "Unauthenticated."}


class InvalidCredentials(TodoAPIError):
    status_code = status.HTTP_401_UNAUTHORIZED

    def __init__(self):
        super().__init__("Invalid credentials")

    def to_body(self) -> dict:
        return {"error": "Invalid credentials"}


class NotFound(TodoAPIError):
    status_code = status.HTTP_404_NOT_FOUND

    def __init__(self, resource: str = "Todo"):
        super().__init__(f"{resource} not found")
        self.resource = resource


def _field_name(loc: Iterable) -> str:
    # FastAPI prefixes locations with "body"/"query"/"path"
    parts = [str(part) for part in loc if part not in ("body", "query", "path")]
    return ".".join(parts) or "body"


def _message(error: dict, field: str) -> str:
    if error.get("type") == "missing":
        return f"The {field} field is required."
    message = error.get("msg", "Invalid value.")
    return message.removeprefix("Value error, ")


def collect_field_errors(errors: Iterable[dict], into: Optional[FieldErrors] = None) -> FieldErrors:
    """
    Groups pydantic error dicts by field name.
    """
    collected: FieldErrors = into if into is not None else {}
    for error in errors:
        field = _field_name(error.get("loc", ()))
        collected.setdefault(field, []).append(_message(error, field))
    return collected


def validation_error_from_pydantic(exc: pydantic.ValidationError) -> ValidationError:
    return ValidationError(collect_field_errors(exc.errors()))


async def todo_api_error_handler(request: Request, exc: TodoAPIError) -> JSONResponse:
    headers = None
    if exc.status_code == status.HTTP_401_UNAUTHORIZED:
        headers = {"WWW-Authenticate": "Bearer"}
    return JSONResponse(status_code=exc.status_code, content=exc.to_body(), headers=headers)


async def request_validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    error = ValidationError(collect_field_errors(exc.errors()))
    return JSONResponse(status_code=error.status_code, content=error.to_body())


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(TodoAPIError, todo_api_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_error_handler)
