from datetime import datetime
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field, ValidationInfo, field_validator

from todo_api.models import as_utc, utc_now

EMAIL_TAKEN = "The email has already been taken."


# --- Auth requests ---

class RegisterRequest(BaseModel):
    name: str = Field(min_length=1, max_length=255)
    email: EmailStr
    password: str = Field(min_length=6)
    password_confirmation: str

    @field_validator("email")
    @classmethod
    def email_unique(cls, v: str, info: ValidationInfo) -> str:
        v = v.lower()
        # Callers that can reach the database pass an "email_taken" lookup in
        # the validation context
        email_taken = (info.context or {}).get("email_taken")
        if email_taken is not None and email_taken(v):
            raise ValueError(EMAIL_TAKEN)
        return v

    @field_validator("password_confirmation")
    @classmethod
    def passwords_match(cls, v: str, info: ValidationInfo) -> str:
        password = info.data.get("password")
        if password is not None and v != password:
            raise ValueError("The password confirmation does not match.")
        return v


class LoginRequest(BaseModel):
    email: EmailStr
    password: str = Field(min_length=6)

    @field_validator("email")
    @classmethod
    def lowercase_email(cls, v: str) -> str:
        return v.lower()


# --- Auth responses ---

class UserRead(BaseModel):
    id: int
    name: str
    email: str
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)

    @field_validator("created_at", "updated_at")
    @classmethod
    def _utc(cls, v: datetime) -> datetime:
        return as_utc(v)


class Authorization(BaseModel):
    token: str
    type: str = "bearer"


class AuthResponse(BaseModel):
    status: str = "success"
    message: str
    user: UserRead
    authorization: Authorization


class UserResponse(BaseModel):
    status: str = "success"
    user: UserRead


class RefreshResponse(BaseModel):
    status: str = "success"
    user: UserRead
    authorization: Authorization


class MessageResponse(BaseModel):
    status: str = "success"
    message: str


# --- Todo requests ---

class TodoCreate(BaseModel):
    title: str = Field(min_length=1, max_length=255)
    description: Optional[str] = None
    due_date: Optional[datetime] = None

    @field_validator("title")
    @classmethod
    def title_not_blank(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("The title field is required.")
        return v

    @field_validator("due_date")
    @classmethod
    def due_date_in_future(cls, v: Optional[datetime]) -> Optional[datetime]:
        if v is None:
            return v
        v = as_utc(v)
        if v <= utc_now():
            raise ValueError("The due date must be a date after now.")
        return v


class TodoUpdate(BaseModel):
    """
    Partial update; only fields present in the request body are applied.
    Unlike TodoCreate, due_date may be set to any date here.
    """
    title: Optional[str] = Field(default=None, max_length=255)
    description: Optional[str] = None
    is_completed: Optional[bool] = None
    due_date: Optional[datetime] = None

    @field_validator("title")
    @classmethod
    def title_required_when_present(cls, v: Optional[str]) -> str:
        if v is None or not v.strip():
            raise ValueError("The title field is required.")
        return v

    @field_validator("is_completed")
    @classmethod
    def is_completed_not_null(cls, v: Optional[bool]) -> bool:
        if v is None:
            raise ValueError("The is completed field must be true or false.")
        return v

    @field_validator("due_date")
    @classmethod
    def due_date_utc(cls, v: Optional[datetime]) -> Optional[datetime]:
        return as_utc(v)


class TodoStatus(str, Enum):
    completed = "completed"
    pending = "pending"


class SortField(str, Enum):
    created_at = "created_at"
    due_date = "due_date"
    title = "title"


class SortOrder(str, Enum):
    asc = "asc"
    desc = "desc"


# --- Todo responses ---

class TodoRead(BaseModel):
    id: int
    user_id: int
    title: str
    description: Optional[str]
    is_completed: bool
    due_date: Optional[datetime]
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)

    @field_validator("due_date", "created_at", "updated_at")
    @classmethod
    def _utc(cls, v: Optional[datetime]) -> Optional[datetime]:
        return as_utc(v)


class TodoPage(BaseModel):
    current_page: int
    data: List[TodoRead]
    per_page: int
    total: int
    last_page: int
    from_: Optional[int] = Field(default=None, alias="from")
    to: Optional[int] = None

    model_config = ConfigDict(populate_by_name=True)


class TodoStats(BaseModel):
    total_todos: int
    completed_todos: int
    pending_todos: int
    overdue_todos: int
    completion_rate: float


class TodoResponse(BaseModel):
    status: str = "success"
    data: TodoRead


class TodoMessageResponse(BaseModel):
    status: str = "success"
    message: str
    data: TodoRead


class TodoPageResponse(BaseModel):
    status: str = "success"
    data: TodoPage


class TodoStatsResponse(BaseModel):
    status: str = "success"
    data: TodoStats
