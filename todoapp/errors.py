#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Todo App - Error Handling
Единый формат ошибок: {"success": false, "error": {"code", "message"}}
"""

import logging

from fastapi import FastAPI, HTTPException, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from todoapp.shared.schemas import error_response

logger = logging.getLogger(__name__)


class ApiError(HTTPException):
    """HTTP ошибка с машиночитаемым кодом"""

    def __init__(self, status_code: int, code: str, message: str):
        super().__init__(status_code=status_code, detail=message)
        self.code = code
        self.message = message


def _field_name(error: dict) -> str:
    # ("body", "title") -> "title", ("query", "sort") -> "sort"
    if error.get("type") == "json_invalid":
        return "body"
    loc = error.get("loc", ())
    parts = [str(part) for part in loc if part not in ("body", "query", "path")]
    return ".".join(parts) or "body"


# ===== ОБРАБОТЧИКИ ОШИБОК =====

async def api_error_handler(request: Request, exc: ApiError) -> JSONResponse:
    return JSONResponse(status_code=exc.status_code, content=error_response(exc.code, exc.message))


async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Ошибки валидации входных данных -> 400 с деталями по полям"""
    details = [
        {"field": _field_name(error), "message": error.get("msg", "Invalid value")}
        for error in exc.errors()
    ]
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content=error_response("VALIDATION_ERROR", "Invalid request data", details),
    )


async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    """Обработчик HTTP исключений (в т.ч. несуществующие маршруты)"""
    if exc.status_code == status.HTTP_404_NOT_FOUND:
        return JSONResponse(
            status_code=404,
            content=error_response("NOT_FOUND", f"Route {request.method} {request.url.path} not found"),
        )
    if exc.status_code == status.HTTP_405_METHOD_NOT_ALLOWED:
        return JSONResponse(
            status_code=405,
            content=error_response("METHOD_NOT_ALLOWED", "Method not allowed"),
            headers=getattr(exc, "headers", None),
        )
    return JSONResponse(
        status_code=exc.status_code,
        content=error_response("HTTP_ERROR", str(exc.detail)),
        headers=getattr(exc, "headers", None),
    )


async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Последний рубеж: любая непойманная ошибка -> 500 без деталей"""
    logger.error(f"❌ Internal server error on {request.method} {request.url.path}: {exc}", exc_info=exc)
    return JSONResponse(
        status_code=500,
        content=error_response("INTERNAL_ERROR", "Internal server error"),
    )


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(ApiError, api_error_handler)
    app.add_exception_handler(RequestValidationError, validation_error_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)
