from __future__ import annotations

import logging

from fastapi import FastAPI, HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pydantic import BaseModel


class ErrorResponse(BaseModel):
    ok: bool = False
    error: str


class InputValidationError(ValueError):
    """Meeting notes rejected before any provider call."""


class SummarizationError(RuntimeError):
    """Provider call failed; message is safe to show to the user."""


class StoreError(RuntimeError):
    """History backend failure."""


def _validation_message(exc: RequestValidationError) -> str:
    errors = exc.errors()
    if not errors:
        return "Invalid request"
    first = errors[0]
    loc = [str(p) for p in first.get("loc", ()) if p != "body"]
    if loc and loc[0] == "input":
        return "Invalid input. Please provide meeting notes as a string."
    field = ".".join(loc) or "body"
    return f"Invalid {field}: {first.get('msg', 'invalid value')}"


def _error(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content=ErrorResponse(error=message).model_dump())


def install_error_handlers(app: FastAPI) -> None:
    @app.exception_handler(HTTPException)
    async def _handle_http_exception(request: Request, exc: HTTPException):  # type: ignore[unused-variable]
        return _error(exc.status_code, str(exc.detail))

    @app.exception_handler(RequestValidationError)
    async def _handle_validation(request: Request, exc: RequestValidationError):  # type: ignore[unused-variable]
        return _error(400, _validation_message(exc))

    @app.exception_handler(InputValidationError)
    async def _handle_input(request: Request, exc: InputValidationError):  # type: ignore[unused-variable]
        return _error(400, str(exc))

    @app.exception_handler(SummarizationError)
    async def _handle_summarization(request: Request, exc: SummarizationError):  # type: ignore[unused-variable]
        return _error(502, str(exc))

    @app.exception_handler(StoreError)
    async def _handle_store(request: Request, exc: StoreError):  # type: ignore[unused-variable]
        logging.getLogger("app.history").error(f"store error: {exc}")
        return _error(500, str(exc))

    @app.exception_handler(Exception)
    async def _handle_unexpected(request: Request, exc: Exception):  # type: ignore[unused-variable]
        logging.getLogger("app").exception("unhandled error")
        return _error(500, "internal error")
