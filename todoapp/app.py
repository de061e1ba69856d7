#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Todo App - FastAPI Application
REST API задач с сессионной авторизацией

Версия: 2.0.0
"""

import argparse
import logging
import sys
import time
import uuid
from contextlib import asynccontextmanager
from typing import Optional

import uvicorn
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.responses import JSONResponse
from pydantic import ValidationError

from todoapp.api import build_api_router
from todoapp.config import Settings, get_settings
from todoapp.core.database import Database
from todoapp.errors import register_exception_handlers
from todoapp.shared.schemas import error_response, success_response
from todoapp.utils.logger import setup_logging

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Управление жизненным циклом приложения"""
    settings: Settings = app.state.settings
    db: Database = app.state.db

    # Startup
    logger.info("🚀 Запуск Todo API Server...")
    connected = await db.connect()
    if connected:
        logger.info("✅ Database connection: OK")
    else:
        logger.warning(
            "⚠️ Database connection failed. Server will start but database operations will fail."
        )
    logger.info(f"📚 API base URL: http://{settings.HOST}:{settings.PORT}{settings.API_V1_PREFIX}")
    logger.info(f"🌍 CORS enabled for: {', '.join(settings.cors_origins)}")

    yield

    # Shutdown
    logger.info("🛑 Остановка сервера...")
    await db.dispose()


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    """Фабрика для создания приложения"""
    settings = settings or get_settings()
    setup_logging(settings)

    app = FastAPI(
        title=settings.APP_NAME,
        version=settings.VERSION,
        docs_url="/api/docs" if settings.DEBUG else None,
        redoc_url=None,
        openapi_url="/api/openapi.json" if settings.DEBUG else None,
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.db = Database(settings)

    # ===== MIDDLEWARE =====

    @app.middleware("http")
    async def logging_middleware(request: Request, call_next):
        """Логирование запросов и время обработки"""
        start_time = time.time()
        request_id = uuid.uuid4().hex[:12]

        try:
            response = await call_next(request)
        except Exception as e:
            process_time = time.time() - start_time
            logger.error(
                f"❌ Ошибка обработки запроса {request.method} {request.url.path}: {e} ({process_time:.3f}s)",
                exc_info=True,
            )
            return JSONResponse(
                status_code=500,
                content=error_response("INTERNAL_ERROR", "Internal server error"),
                headers={"X-Request-ID": request_id},
            )

        process_time = time.time() - start_time
        logger.info(
            f"{request.method} {request.url.path} "
            f"- {response.status_code} "
            f"- {process_time:.3f}s"
        )
        response.headers["X-Process-Time"] = f"{process_time:.6f}"
        response.headers["X-Request-ID"] = request_id
        return response

    app.add_middleware(GZipMiddleware, minimum_size=1000)

    # Добавлен последним = внешний слой; cookies только для разрешенных источников
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"],
        allow_headers=["*"],
    )

    # ===== МАРШРУТЫ =====

    app.include_router(build_api_router(), prefix=settings.API_V1_PREFIX)

    @app.get("/")
    async def root():
        return success_response({
            "message": "Todo API Server",
            "version": settings.VERSION,
            "status": "running",
        })

    register_exception_handlers(app)
    return app

# ===== ЗАПУСК ПРИЛОЖЕНИЯ =====

def run_server(host: Optional[str] = None, port: Optional[int] = None, reload: bool = False) -> None:
    """Запуск сервера через uvicorn"""
    settings = get_settings()
    host = host or settings.HOST
    port = port or settings.PORT

    logger.info(f"🌐 Запуск сервера на http://{host}:{port}")
    uvicorn.run(
        "todoapp.app:create_app",
        factory=True,
        host=host,
        port=port,
        reload=reload,
        log_level="debug" if settings.DEBUG else "info",
        server_header=False,
    )


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(description="Запуск Todo API Server")
    parser.add_argument("--host", default=None, help="Host для запуска")
    parser.add_argument("--port", type=int, default=None, help="Port для запуска")
    parser.add_argument("--reload", action="store_true", help="Автоперезагрузка")
    args = parser.parse_args(argv)

    try:
        get_settings()
    except ValidationError as e:
        # Без AUTH_SECRET сервер не стартует
        print(f"❌ Configuration error: {e}", file=sys.stderr)
        return 1

    try:
        run_server(host=args.host, port=args.port, reload=args.reload)
    except KeyboardInterrupt:
        logger.info("👋 Сервер остановлен")
    return 0


if __name__ == "__main__":
    sys.exit(main())
