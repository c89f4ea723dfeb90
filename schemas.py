from pydantic import AfterValidator, BaseModel, ConfigDict, EmailStr, Field, field_validator
from pydantic.alias_generators import to_camel
from typing import Annotated, List, Optional
from datetime import datetime, timezone

from models import Priority


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, from_attributes=True)


def normalize_email(value: str) -> str:
    return value.strip().lower()


def to_naive_utc(value: datetime) -> datetime:
    # datetime columns hold naive UTC
    if value.tzinfo is None:
        return value
    return value.astimezone(timezone.utc).replace(tzinfo=None)


# registration and login must agree on the stored form of an email
RegisterEmail = Annotated[EmailStr, AfterValidator(normalize_email)]
LoginEmail = Annotated[str, AfterValidator(normalize_email)]
UtcDateTime = Annotated[datetime, AfterValidator(to_naive_utc)]


# Users / auth

class UserCreate(CamelModel):
    name: str = Field(..., min_length=1, max_length=100)
    email: RegisterEmail
    password: str = Field(..., min_length=4, max_length=72)


class UserLogin(CamelModel):
    email: LoginEmail
    password: str


class UserPublic(CamelModel):
    id: int
    email: str
    name: str


class UserProfile(UserPublic):
    created_at: datetime


class AuthResponse(CamelModel):
    token: str
    user: UserPublic


class RefreshRequest(CamelModel):
    token: str


class TokenResponse(CamelModel):
    token: str


# Tasks

class TaskCreate(CamelModel):
    title: str = Field(..., max_length=255)
    description: Optional[str] = None
    completed: bool = False
    priority: Priority = Priority.medium
    due_date: Optional[UtcDateTime] = None

    @field_validator("title")
    @classmethod
    def title_not_blank(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("title must not be blank")
        return value


class TaskUpdate(CamelModel):
    title: Optional[str] = Field(None, max_length=255)
    description: Optional[str] = None
    completed: Optional[bool] = None
    priority: Optional[Priority] = None
    due_date: Optional[UtcDateTime] = None

    @field_validator("title")
    @classmethod
    def title_not_blank(cls, value: Optional[str]) -> Optional[str]:
        if value is None:
            return value
        value = value.strip()
        if not value:
            raise ValueError("title must not be blank")
        return value


class TaskOut(CamelModel):
    id: int
    title: str
    description: Optional[str] = None
    completed: bool
    priority: Priority
    due_date: Optional[datetime] = None
    user_id: int
    created_at: datetime
    updated_at: datetime


class TaskList(CamelModel):
    tasks: List[TaskOut]
