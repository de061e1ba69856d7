from fastapi import APIRouter

from todoapp.api import auth, health, tasks


def build_api_router() -> APIRouter:
    """Все маршруты API (монтируются под /api/v1)"""
    router = APIRouter()
    router.include_router(health.router)
    router.include_router(auth.router)
    router.include_router(tasks.router)
    return router


__all__ = ["build_api_router"]
