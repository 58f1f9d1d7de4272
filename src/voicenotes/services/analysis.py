"""Structured result of analyzing a voice note transcript.

The records here are produced by :mod:`voicenotes.services.analysis_parser`
from the free-text answer of the completion service. They are frozen once
built and serialize straight to the JSON body of ``/api/analyze``.
"""

from __future__ import annotations

from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict


class Category(str, Enum):
    NOTE = "note"
    TASK = "task"
    REMINDER = "reminder"
    SHOPPING = "shopping"
    READING_NOTE = "reading-note"
    PROJECT = "project"
    GOAL = "goal"


# Labels the prompt has historically asked the model to use
CATEGORY_ALIASES: dict[str, Category] = {
    "dlltw": Category.READING_NOTE,
    "reading note": Category.READING_NOTE,
}


class Priority(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class Source(str, Enum):
    LOCAL = "local"
    PUBLIC = "public"
    PRIVATE = "private"


class ProjectType(str, Enum):
    STATIC_WEBSITE = "static_website"
    MENTOR_TO_LAUNCH = "mentor_to_launch"
    OTHER = "other"


class ProjectStatus(str, Enum):
    PLANNING = "planning"
    IN_PROGRESS = "in_progress"
    REVIEW = "review"
    COMPLETED = "completed"


class GoalCategory(str, Enum):
    PERSONAL = "personal"
    BUSINESS = "business"


class _Record(BaseModel):
    model_config = ConfigDict(frozen=True, use_enum_values=False)


class ShoppingItem(_Record):
    name: str
    quantity: int | None = None
    notes: str | None = None
    urgency: Priority | None = None


class ReadingNote(_Record):
    title: str
    content: str = ""
    chapter: str | None = None
    key_points: tuple[str, ...] | None = None
    book_section: str | None = None


class ProjectReference(_Record):
    title: str
    type: ProjectType = ProjectType.OTHER
    description: str | None = None
    estimated_time: str | None = None
    priority: Priority | None = None
    status: ProjectStatus = ProjectStatus.PLANNING


class Milestone(_Record):
    title: str
    due_date: str | None = None


class Goal(_Record):
    title: str
    description: str | None = None
    target_date: str | None = None
    success_criteria: tuple[str, ...] | None = None
    category: GoalCategory | None = None
    milestones: tuple[Milestone, ...] | None = None


class ParseDiagnostic(_Record):
    """A field that fell back to its default while parsing."""

    field: str
    value: str
    reason: str


class AnalysisResult(_Record):
    title: str = ""
    categories: tuple[Category, ...] = (Category.NOTE,)
    priority: Priority = Priority.LOW
    due_date: str | None = None
    summary: str = ""
    status: str = "new"
    tags: tuple[str, ...] = ()
    is_private: bool | None = None
    recipient: str | None = None
    source: Source = Source.LOCAL
    shopping_items: tuple[ShoppingItem, ...] = ()
    dlltw_notes: tuple[ReadingNote, ...] = ()
    project_references: tuple[ProjectReference, ...] = ()
    goals: tuple[Goal, ...] = ()
    diagnostics: tuple[ParseDiagnostic, ...] = ()

    @property
    def is_degraded(self) -> bool:
        """True if any field fell back to a default while parsing."""
        return bool(self.diagnostics)

    def to_response(self, include_diagnostics: bool = False) -> dict[str, Any]:
        """Serialize for an HTTP response body."""
        exclude = None if include_diagnostics else {"diagnostics"}
        return self.model_dump(mode="json", exclude=exclude, exclude_none=True)


def empty_note_result() -> AnalysisResult:
    """Result returned when there is no transcript to analyze."""
    return AnalysisResult(title="Empty Note", summary="No transcription available")
