import logging
from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends, Query, status

from todoapp.core.models import TaskPriority, User
from todoapp.core.task_service import TaskService
from todoapp.dependencies import get_task_service, require_auth
from todoapp.errors import ApiError
from todoapp.shared.schemas import (
    TaskCreate,
    TaskFilters,
    TaskUpdate,
    success_response,
    to_task_response,
)
from todoapp.utils.validators import parse_bool_flag

logger = logging.getLogger(__name__)

# Все маршруты задач требуют авторизации
router = APIRouter(prefix="/tasks", tags=["tasks"], dependencies=[Depends(require_auth)])


def _not_found() -> ApiError:
    # Чужая задача возвращает 404, а не 403: существование не раскрывается
    return ApiError(status.HTTP_404_NOT_FOUND, "TASK_NOT_FOUND", "Task not found")


def _failed(code: str, message: str) -> ApiError:
    return ApiError(status.HTTP_500_INTERNAL_SERVER_ERROR, code, message)


@router.get("", response_model=Dict[str, Any])
async def get_tasks(
    user: User = Depends(require_auth),
    service: TaskService = Depends(get_task_service),
    search: Optional[str] = Query(None),
    completed: Optional[str] = Query(None),
    priority: Optional[TaskPriority] = Query(None),
    tag: Optional[str] = Query(None),
    sort: str = Query("createdAt", pattern="^(createdAt|updatedAt|title|priority)$"),
    order: str = Query("desc", pattern="^(asc|desc)$"),
):
    """
    Получить задачи пользователя с фильтрацией
    """
    filters = TaskFilters(
        search=search,
        completed=parse_bool_flag(completed),
        priority=priority,
        tag=tag,
        sort=sort,
        order=order,
    )
    try:
        tasks = await service.get_tasks(user.id, filters)
        return success_response([to_task_response(task) for task in tasks])
    except Exception as e:
        logger.error(f"Get tasks error: {e}", exc_info=True)
        raise _failed("GET_TASKS_FAILED", "Failed to get tasks")


@router.post("", status_code=status.HTTP_201_CREATED, response_model=Dict[str, Any])
async def create_task(
    data: TaskCreate,
    user: User = Depends(require_auth),
    service: TaskService = Depends(get_task_service),
):
    """
    Создать задачу
    """
    try:
        task = await service.create_task(user.id, data)
        return success_response(to_task_response(task))
    except Exception as e:
        logger.error(f"Create task error: {e}", exc_info=True)
        raise _failed("CREATE_TASK_FAILED", "Failed to create task")


@router.get("/{task_id}", response_model=Dict[str, Any])
async def get_task(
    task_id: str,
    user: User = Depends(require_auth),
    service: TaskService = Depends(get_task_service),
):
    try:
        task = await service.get_task_by_id(task_id, user.id)
    except Exception as e:
        logger.error(f"Get task error: {e}", exc_info=True)
        raise _failed("GET_TASK_FAILED", "Failed to get task")

    if task is None:
        raise _not_found()
    return success_response(to_task_response(task))


@router.put("/{task_id}", response_model=Dict[str, Any])
async def update_task(
    task_id: str,
    data: TaskUpdate,
    user: User = Depends(require_auth),
    service: TaskService = Depends(get_task_service),
):
    try:
        task = await service.update_task(task_id, user.id, data)
    except Exception as e:
        logger.error(f"Update task error: {e}", exc_info=True)
        raise _failed("UPDATE_TASK_FAILED", "Failed to update task")

    if task is None:
        raise _not_found()
    return success_response(to_task_response(task))


@router.delete("/{task_id}", response_model=Dict[str, Any])
async def delete_task(
    task_id: str,
    user: User = Depends(require_auth),
    service: TaskService = Depends(get_task_service),
):
    try:
        deleted = await service.delete_task(task_id, user.id)
    except Exception as e:
        logger.error(f"Delete task error: {e}", exc_info=True)
        raise _failed("DELETE_TASK_FAILED", "Failed to delete task")

    if not deleted:
        raise _not_found()
    return success_response({"deleted": True, "id": task_id})


@router.patch("/{task_id}/complete", response_model=Dict[str, Any])
async def mark_complete(
    task_id: str,
    user: User = Depends(require_auth),
    service: TaskService = Depends(get_task_service),
):
    try:
        task = await service.mark_complete(task_id, user.id)
    except Exception as e:
        logger.error(f"Mark complete error: {e}", exc_info=True)
        raise _failed("MARK_COMPLETE_FAILED", "Failed to mark task complete")

    if task is None:
        raise _not_found()
    return success_response(to_task_response(task))


@router.patch("/{task_id}/incomplete", response_model=Dict[str, Any])
async def mark_incomplete(
    task_id: str,
    user: User = Depends(require_auth),
    service: TaskService = Depends(get_task_service),
):
    try:
        task = await service.mark_incomplete(task_id, user.id)
    except Exception as e:
        logger.error(f"Mark incomplete error: {e}", exc_info=True)
        raise _failed("MARK_INCOMPLETE_FAILED", "Failed to mark task incomplete")

    if task is None:
        raise _not_found()
    return success_response(to_task_response(task))
