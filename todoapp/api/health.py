from datetime import datetime, timezone

from fastapi import APIRouter, Depends

from todoapp.config import Settings
from todoapp.core.database import Database
from todoapp.dependencies import get_app_settings, get_database
from todoapp.shared.schemas import success_response

router = APIRouter(tags=["health"])


@router.get("/health")
async def health_check(
    settings: Settings = Depends(get_app_settings),
    db: Database = Depends(get_database),
):
    """Health check для мониторинга (процесс жив, даже если БД недоступна)"""
    database_ok = db.is_connected and await db.ping()
    return success_response({
        "status": "ok",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "version": settings.VERSION,
        "database": "ok" if database_ok else "unavailable",
    })
