from datetime import datetime
from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, StrictBool, field_validator
from pydantic.alias_generators import to_camel

from todoapp.core.models import TaskPriority, as_utc
from todoapp.utils.validators import is_valid_email, is_valid_task_title


class CamelModel(BaseModel):
    """Базовая модель с camelCase в JSON (принимает и snake_case)"""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
    )

# ===== ОБЕРТКА ОТВЕТОВ =====

def success_response(data: Any) -> Dict[str, Any]:
    return {"success": True, "data": data}

def error_response(code: str, message: str, details: Optional[List[Dict[str, str]]] = None) -> Dict[str, Any]:
    error: Dict[str, Any] = {"code": code, "message": message}
    if details:
        error["details"] = details
    return {"success": False, "error": error}

# ===== ЗАДАЧИ =====

def clean_title(v: Optional[str]) -> str:
    """Заголовок обязателен и не может состоять из пробелов"""
    if v is None:
        raise ValueError("Title is required")
    v = v.strip()
    if not is_valid_task_title(v):
        raise ValueError("Title must be between 1 and 200 characters")
    return v


class TaskCreate(CamelModel):
    """Тело POST /tasks; поля владельца и id игнорируются"""

    title: str
    description: Optional[str] = Field(None, max_length=1000)
    completed: StrictBool = False
    priority: Optional[TaskPriority] = None
    tag: Optional[str] = Field(None, max_length=50)

    @field_validator("title")
    @classmethod
    def validate_title(cls, v: str) -> str:
        return clean_title(v)


class TaskUpdate(CamelModel):
    """Частичное обновление: применяются только переданные поля"""

    title: Optional[str] = None
    description: Optional[str] = Field(None, max_length=1000)
    completed: Optional[StrictBool] = None
    priority: Optional[TaskPriority] = None
    tag: Optional[str] = Field(None, max_length=50)

    # Валидаторы срабатывают только для явно переданных значений
    @field_validator("title")
    @classmethod
    def validate_title(cls, v: Optional[str]) -> str:
        return clean_title(v)

    @field_validator("completed")
    @classmethod
    def validate_completed(cls, v: Optional[bool]) -> bool:
        if v is None:
            raise ValueError("completed must be a boolean")
        return v

    def changes(self) -> Dict[str, Any]:
        """Только явно переданные поля, в виде для записи в БД"""
        return self.model_dump(mode="json", exclude_unset=True)


class TaskFilters(BaseModel):
    search: Optional[str] = None
    completed: Optional[bool] = None
    priority: Optional[TaskPriority] = None
    tag: Optional[str] = None
    sort: Literal["createdAt", "updatedAt", "title", "priority"] = "createdAt"
    order: Literal["asc", "desc"] = "desc"


class TaskResponse(CamelModel):
    id: str
    user_id: str
    title: str
    description: Optional[str] = None
    completed: bool
    priority: Optional[str] = None
    tag: Optional[str] = None
    created_at: datetime
    updated_at: datetime


def to_task_response(task) -> Dict[str, Any]:
    view = TaskResponse(
        id=task.id,
        user_id=task.user_id,
        title=task.title,
        description=task.description,
        completed=task.completed,
        priority=task.priority,
        tag=task.tag,
        created_at=as_utc(task.created_at),
        updated_at=as_utc(task.updated_at),
    )
    return view.model_dump(by_alias=True, mode="json")

# ===== ПОЛЬЗОВАТЕЛИ =====

class RegisterRequest(CamelModel):
    email: str = Field(..., max_length=255)
    password: str = Field(..., min_length=8, max_length=128)
    name: Optional[str] = Field(None, max_length=100)

    @field_validator("email")
    @classmethod
    def validate_email(cls, v: str) -> str:
        v = v.strip().lower()
        if not is_valid_email(v):
            raise ValueError("Invalid email address")
        return v


class LoginRequest(CamelModel):
    email: str = Field(..., max_length=255)
    password: str = Field(..., min_length=1, max_length=128)

    @field_validator("email")
    @classmethod
    def normalize_email(cls, v: str) -> str:
        return v.strip().lower()


class UserResponse(CamelModel):
    id: str
    email: str
    name: Optional[str] = None
    created_at: Optional[datetime] = None


def to_user_response(user) -> Dict[str, Any]:
    view = UserResponse(id=user.id, email=user.email, name=user.name, created_at=as_utc(user.created_at))
    return view.model_dump(by_alias=True, mode="json")
