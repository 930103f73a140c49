"""Pydantic schemas for create/patch payloads.

These are validated before any network call. :func:`validate_input`
converts pydantic's errors into :class:`~crewboard.errors.ValidationError`
so callers only ever see the package's own taxonomy.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, TypeVar

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic import ValidationError as PydanticValidationError

from .errors import ValidationError
from .models import (
    DEFAULT_PROJECT_COLOR,
    MemberRole,
    ProjectStatus,
    ProjectType,
    TaskPriority,
    TaskStatus,
    format_timestamp,
)

ModelT = TypeVar("ModelT", bound=BaseModel)


def _strip_required(value: str, label: str) -> str:
    stripped = value.strip()
    if not stripped:
        raise ValueError(f"{label} cannot be empty")
    return stripped


class _Payload(BaseModel):
    model_config = ConfigDict(extra="forbid", use_enum_values=False)

    def to_row(self) -> dict[str, Any]:
        """Serialize for the remote store, leaving out fields not set."""
        row: dict[str, Any] = {}
        for key, value in self.model_dump(exclude_unset=True).items():
            if isinstance(value, datetime):
                value = format_timestamp(value)
            elif isinstance(value, tuple):
                value = list(value)
            elif hasattr(value, "value"):
                value = value.value
            row[key] = value
        return row


class ProjectInput(_Payload):
    """Payload for creating a project."""

    name: str
    description: str | None = None
    color: str = DEFAULT_PROJECT_COLOR
    project_type: ProjectType = ProjectType.INDIVIDUAL
    status: ProjectStatus = ProjectStatus.ACTIVE
    deadline: datetime | None = None

    @field_validator("name")
    @classmethod
    def _name_required(cls, v: str) -> str:
        return _strip_required(v, "Project name")

    def to_row(self) -> dict[str, Any]:
        # Defaults are part of the insert, not only explicitly set fields.
        row = self.model_dump()
        row["project_type"] = self.project_type.value
        row["status"] = self.status.value
        row["deadline"] = format_timestamp(self.deadline)
        return row


class ProjectPatch(_Payload):
    name: str | None = None
    description: str | None = None
    color: str | None = None
    status: ProjectStatus | None = None
    deadline: datetime | None = None

    @field_validator("name")
    @classmethod
    def _name_not_blank(cls, v: str | None) -> str | None:
        if v is None:
            return v
        return _strip_required(v, "Project name")


class TaskInput(_Payload):
    """Payload for creating a task. Position and creator are assigned by the coordinator."""

    title: str
    project_id: str
    description: str | None = None
    status: TaskStatus = TaskStatus.TODO
    priority: TaskPriority = TaskPriority.MEDIUM
    assigned_to: str | None = None
    due_date: datetime | None = None
    tags: list[str] = Field(default_factory=list)

    @field_validator("title")
    @classmethod
    def _title_required(cls, v: str) -> str:
        return _strip_required(v, "Task title")

    @field_validator("project_id")
    @classmethod
    def _project_required(cls, v: str) -> str:
        return _strip_required(v, "Project id")

    def to_row(self) -> dict[str, Any]:
        row = self.model_dump()
        row["status"] = self.status.value
        row["priority"] = self.priority.value
        row["due_date"] = format_timestamp(self.due_date)
        return row


class TaskPatch(_Payload):
    title: str | None = None
    description: str | None = None
    status: TaskStatus | None = None
    priority: TaskPriority | None = None
    assigned_to: str | None = None
    due_date: datetime | None = None
    tags: list[str] | None = None

    @field_validator("title")
    @classmethod
    def _title_not_blank(cls, v: str | None) -> str | None:
        if v is None:
            return v
        return _strip_required(v, "Task title")


class ProfilePatch(_Payload):
    full_name: str | None = None
    avatar_url: str | None = None


class InviteInput(_Payload):
    email: str
    role: MemberRole = MemberRole.MEMBER
    project_id: str | None = None

    @field_validator("email")
    @classmethod
    def _email_shape(cls, v: str) -> str:
        stripped = v.strip().lower()
        if "@" not in stripped or stripped.startswith("@") or stripped.endswith("@"):
            raise ValueError(f"'{v}' is not a valid email address")
        return stripped


def _first_error_message(exc: PydanticValidationError) -> str:
    errors = exc.errors()
    if not errors:
        return "Invalid input"
    first = errors[0]
    message = str(first.get("msg", "Invalid input"))
    # pydantic prefixes messages raised from validators
    if message.startswith("Value error, "):
        message = message[len("Value error, "):]
    location = ".".join(str(part) for part in first.get("loc", ()))
    if location and location not in message.lower():
        return f"{location}: {message}"
    return message


def validate_input(model: type[ModelT], data: ModelT | dict[str, Any]) -> ModelT:
    """Coerce *data* into *model*, raising the package ValidationError on failure."""
    if isinstance(data, model):
        return data
    try:
        return model.model_validate(data)
    except PydanticValidationError as exc:
        raise ValidationError(
            _first_error_message(exc),
            details={"errors": exc.errors(include_url=False)},
        ) from exc
