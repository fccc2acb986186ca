"""
Pydantic models for Tasks API request/response validation.

The wire format uses camelCase (``isCompleted``); Python code uses snake_case.
"""

from typing import Any, Dict

from pydantic import BaseModel, ConfigDict, Field, field_validator


class TaskInput(BaseModel):
    """Request body for creating or updating a task. Any ``id`` sent is ignored."""

    model_config = ConfigDict(populate_by_name=True)

    title: str = Field("", description="Task title")
    is_completed: bool = Field(False, alias="isCompleted", description="Completion flag")

    @field_validator("title")
    @classmethod
    def validate_title(cls, v):
        """Reject text that cannot be stored as UTF-8 (e.g. lone surrogates)."""
        try:
            v.encode("utf-8")
        except UnicodeEncodeError:
            raise ValueError("Title must be valid Unicode text")
        return v


class Task(BaseModel):
    """Response model for a persisted task."""

    model_config = ConfigDict(populate_by_name=True)

    id: int = Field(description="Store-assigned task ID")
    title: str = ""
    is_completed: bool = Field(False, alias="isCompleted")

    @classmethod
    def from_row(cls, row: Dict[str, Any]) -> "Task":
        return cls(id=row["id"], title=row["title"], is_completed=row["is_completed"])
