# todoapp/core/task_service.py

import logging
from typing import List, Optional

from sqlalchemy import case, delete, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from todoapp.core.models import PRIORITY_WEIGHTS, Task, now_utc
from todoapp.shared.schemas import TaskCreate, TaskFilters, TaskUpdate

logger = logging.getLogger(__name__)

# Вес приоритета для сортировки; задачи без приоритета получают 0
_priority_weight = case(PRIORITY_WEIGHTS, value=Task.priority, else_=0)

SORT_COLUMNS = {
    "createdAt": Task.created_at,
    "updatedAt": Task.updated_at,
    "title": Task.title,
    "priority": _priority_weight,
}


class TaskService:
    """
    Сервис задач пользователя

    Все запросы ограничены владельцем (user_id из сессии):
    чужая задача для сервиса неотличима от отсутствующей.
    Ошибки БД не перехватываются и доходят до обработчика маршрута.
    """

    def __init__(self, session: AsyncSession):
        self.session = session

    def _owned(self, task_id: str, user_id: str):
        return select(Task).where(Task.id == task_id, Task.user_id == user_id)

    # ===== ЧТЕНИЕ =====

    async def get_tasks(self, user_id: str, filters: Optional[TaskFilters] = None) -> List[Task]:
        """Список задач пользователя с фильтрацией и сортировкой"""
        filters = filters or TaskFilters()
        query = select(Task).where(Task.user_id == user_id)

        if filters.search:
            # lower() для SQLite регистрируется в Database.connect (Unicode)
            query = query.where(
                func.lower(Task.title).contains(filters.search.lower(), autoescape=True)
            )

        if filters.completed is not None:
            query = query.where(Task.completed == filters.completed)

        if filters.priority is not None:
            query = query.where(Task.priority == filters.priority.value)

        if filters.tag:
            query = query.where(Task.tag == filters.tag)

        column = SORT_COLUMNS[filters.sort]
        if filters.order == "asc":
            query = query.order_by(column.asc(), Task.id.asc())
        else:
            query = query.order_by(column.desc(), Task.id.desc())

        result = await self.session.execute(query)
        return list(result.scalars().all())

    async def get_task_by_id(self, task_id: str, user_id: str) -> Optional[Task]:
        """Задача по ID, только если принадлежит пользователю"""
        result = await self.session.execute(self._owned(task_id, user_id))
        return result.scalar_one_or_none()

    # ===== ИЗМЕНЕНИЕ =====

    async def create_task(self, user_id: str, data: TaskCreate) -> Task:
        """Создать задачу; владелец берется только из сессии"""
        task = Task(
            user_id=user_id,
            title=data.title,
            description=data.description,
            completed=data.completed,
            priority=data.priority.value if data.priority else None,
            tag=data.tag,
        )
        self.session.add(task)
        await self.session.commit()

        logger.info(f"✅ Создана задача {task.id} для пользователя {user_id}")
        return task

    async def update_task(self, task_id: str, user_id: str, data: TaskUpdate) -> Optional[Task]:
        """Частичное обновление задачи; id и user_id не изменяются"""
        task = await self.get_task_by_id(task_id, user_id)
        if task is None:
            return None

        changes = data.changes()
        for field, value in changes.items():
            setattr(task, field, value)

        if changes:
            task.updated_at = now_utc()
            await self.session.commit()
            logger.info(f"✅ Задача {task_id} обновлена для пользователя {user_id}")

        return task

    async def delete_task(self, task_id: str, user_id: str) -> bool:
        """Удалить задачу (без мягкого удаления)"""
        result = await self.session.execute(
            delete(Task).where(Task.id == task_id, Task.user_id == user_id)
        )
        await self.session.commit()

        deleted = result.rowcount > 0
        if deleted:
            logger.info(f"🗑️ Задача {task_id} удалена для пользователя {user_id}")
        return deleted

    # ===== ВЫПОЛНЕНИЕ ЗАДАЧ =====

    async def mark_complete(self, task_id: str, user_id: str) -> Optional[Task]:
        return await self.update_task(task_id, user_id, TaskUpdate(completed=True))

    async def mark_incomplete(self, task_id: str, user_id: str) -> Optional[Task]:
        return await self.update_task(task_id, user_id, TaskUpdate(completed=False))
