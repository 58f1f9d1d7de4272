"""Parse the completion service's free-text analysis into an AnalysisResult.

The completion service is asked (see :mod:`voicenotes.services.prompts`) to
answer in a loose "Label: value" format with section headers introducing
blocks of sub-items::

    Title: Buy milk
    Categories: shopping
    Priority: low

    Shopping Items:
    - Milk
    Quantity: 2

Parsing is a single pass over the lines. Malformed values never raise; they
fall back to the field default and are recorded as diagnostics on the result.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import TypeVar, cast

from voicenotes.services.analysis import (
    CATEGORY_ALIASES,
    AnalysisResult,
    Category,
    Goal,
    GoalCategory,
    Milestone,
    ParseDiagnostic,
    Priority,
    ProjectReference,
    ProjectStatus,
    ProjectType,
    ReadingNote,
    ShoppingItem,
    Source,
)

logger = logging.getLogger(__name__)

E = TypeVar("E", bound=Enum)

NO_VALUE = "n/a"

DATE_FORMATS = (
    "%Y/%m/%d",
    "%m/%d/%Y",
    "%d.%m.%Y",
    "%B %d, %Y",
    "%b %d, %Y",
    "%B %d %Y",
    "%d %B %Y",
    "%d %b %Y",
)


class Section(str, Enum):
    NONE = "none"
    SHOPPING = "shopping_items"
    READING = "dlltw_notes"
    PROJECTS = "project_references"
    GOALS = "goals"


SECTION_HEADERS: dict[str, Section] = {
    "Shopping Items:": Section.SHOPPING,
    "DLLTW Notes:": Section.READING,
    "Reading Notes:": Section.READING,
    "Project References:": Section.PROJECTS,
    "Goals:": Section.GOALS,
}


def parse_date(value: str) -> str | None:
    """Normalize a date string to ISO-8601 (YYYY-MM-DD).

    Returns None for an empty or "N/A" value. Raises ValueError if the value
    is not a recognizable date.
    """
    value = value.strip()
    if not value or value.lower() == NO_VALUE:
        return None

    try:
        return datetime.fromisoformat(value).date().isoformat()
    except ValueError:
        pass

    for fmt in DATE_FORMATS:
        try:
            return datetime.strptime(value, fmt).date().isoformat()
        except ValueError:
            continue

    raise ValueError(f"Unrecognized date: {value!r}")


def split_list(value: str, separator: str) -> list[str]:
    return [part.strip() for part in value.split(separator)]


def _label_value(line: str, label: str) -> str | None:
    if line.startswith(label):
        return line[len(label) :].strip()
    return None


def _normalize_enum_value(value: str) -> str:
    return re.sub(r"[\s-]+", "_", value.strip().lower())


@dataclass
class ShoppingItemBuilder:
    name: str = ""
    quantity: int | None = None
    notes: str | None = None
    urgency: Priority | None = None

    @property
    def is_complete(self) -> bool:
        return bool(self.name)

    def build(self) -> ShoppingItem:
        return ShoppingItem(
            name=self.name, quantity=self.quantity, notes=self.notes, urgency=self.urgency
        )


@dataclass
class ReadingNoteBuilder:
    title: str = ""
    content: str = ""
    chapter: str | None = None
    key_points: list[str] | None = None
    book_section: str | None = None

    @property
    def is_complete(self) -> bool:
        return bool(self.title)

    def build(self) -> ReadingNote:
        return ReadingNote(
            title=self.title,
            content=self.content,
            chapter=self.chapter,
            key_points=self.key_points,
            book_section=self.book_section,
        )


@dataclass
class ProjectBuilder:
    title: str = ""
    type: ProjectType = ProjectType.OTHER
    description: str | None = None
    estimated_time: str | None = None
    priority: Priority | None = None
    status: ProjectStatus = ProjectStatus.PLANNING

    @property
    def is_complete(self) -> bool:
        return bool(self.title)

    def build(self) -> ProjectReference:
        return ProjectReference(
            title=self.title,
            type=self.type,
            description=self.description,
            estimated_time=self.estimated_time,
            priority=self.priority,
            status=self.status,
        )


@dataclass
class MilestoneBuilder:
    title: str = ""
    due_date: str | None = None

    @property
    def is_complete(self) -> bool:
        return bool(self.title)

    def build(self) -> Milestone:
        return Milestone(title=self.title, due_date=self.due_date)


@dataclass
class GoalBuilder:
    title: str = ""
    description: str | None = None
    target_date: str | None = None
    success_criteria: list[str] | None = None
    category: GoalCategory | None = None
    milestones: list[Milestone] = field(default_factory=list)
    milestone: MilestoneBuilder | None = None

    @property
    def is_complete(self) -> bool:
        return bool(self.title)

    def start_milestone(self, title: str) -> None:
        # A due date may arrive before its title; keep it on the same milestone
        if self.milestone is not None and not self.milestone.is_complete:
            self.milestone.title = title
            return
        self.flush_milestone()
        self.milestone = MilestoneBuilder(title=title)

    def flush_milestone(self) -> None:
        if self.milestone is not None and self.milestone.is_complete:
            self.milestones.append(self.milestone.build())
        self.milestone = None

    def build(self) -> Goal:
        self.flush_milestone()
        return Goal(
            title=self.title,
            description=self.description,
            target_date=self.target_date,
            success_criteria=self.success_criteria,
            category=self.category,
            milestones=self.milestones or None,
        )


ItemBuilder = ShoppingItemBuilder | ReadingNoteBuilder | ProjectBuilder | GoalBuilder

BUILDER_TYPES: dict[Section, type[ItemBuilder]] = {
    Section.SHOPPING: ShoppingItemBuilder,
    Section.READING: ReadingNoteBuilder,
    Section.PROJECTS: ProjectBuilder,
    Section.GOALS: GoalBuilder,
}


class _ParseState:
    """Mutable state for one parse. Never shared between calls."""

    def __init__(self) -> None:
        self.fields: dict[str, object] = {}
        self.section = Section.NONE
        self.builder: ItemBuilder | None = None
        self.shopping_items: list[ShoppingItem] = []
        self.dlltw_notes: list[ReadingNote] = []
        self.project_references: list[ProjectReference] = []
        self.goals: list[Goal] = []
        self.diagnostics: list[ParseDiagnostic] = []

    def fallback(self, field_name: str, value: str, reason: str) -> None:
        logger.warning("Analysis field %s fell back to default (%s): %r", field_name, reason, value)
        self.diagnostics.append(ParseDiagnostic(field=field_name, value=value, reason=reason))

    def enter_section(self, section: Section) -> None:
        if self.builder is not None and self.builder.is_complete:
            self.fallback(
                f"{self.section.value}.item",
                self._builder_label(self.builder),
                f"discarded by '{section.value}' section header before completion",
            )
        self.section = section
        self.builder = BUILDER_TYPES[section]()

    def start_item(self) -> ItemBuilder:
        """Flush the in-progress item if it is complete and start a fresh one."""
        self.flush()
        self.builder = BUILDER_TYPES[self.section]()
        return self.builder

    def flush(self) -> None:
        builder = self.builder
        if builder is None or not builder.is_complete:
            return
        if isinstance(builder, ShoppingItemBuilder):
            self.shopping_items.append(builder.build())
        elif isinstance(builder, ReadingNoteBuilder):
            self.dlltw_notes.append(builder.build())
        elif isinstance(builder, ProjectBuilder):
            self.project_references.append(builder.build())
        elif isinstance(builder, GoalBuilder):
            self.goals.append(builder.build())
        self.builder = None

    @staticmethod
    def _builder_label(builder: ItemBuilder) -> str:
        if isinstance(builder, ShoppingItemBuilder):
            return builder.name
        return builder.title

    def result(self) -> AnalysisResult:
        return AnalysisResult(
            **self.fields,
            shopping_items=self.shopping_items,
            dlltw_notes=self.dlltw_notes,
            project_references=self.project_references,
            goals=self.goals,
            diagnostics=self.diagnostics,
        )


class AnalysisParser:
    """Turn a completion service answer into an AnalysisResult.

    The parser is stateless between calls; a single instance can be shared.
    """

    def parse(self, content: str) -> AnalysisResult:
        state = _ParseState()

        for raw_line in content.splitlines():
            line = raw_line.strip()
            if not line:
                continue
            try:
                self._parse_line(state, line)
            except Exception as e:
                logger.warning("Failed to parse analysis line %r: %s", line, e)
                state.diagnostics.append(ParseDiagnostic(field="line", value=line, reason=str(e)))

        state.flush()
        result = state.result()
        logger.debug("Parsed analysis: %s", result)
        return result

    def _parse_line(self, state: _ParseState, line: str) -> None:
        section = SECTION_HEADERS.get(line)
        if section is not None:
            state.enter_section(section)
            return

        if state.section is Section.SHOPPING and self._parse_shopping_line(state, line):
            return
        if state.section is Section.READING and self._parse_reading_line(state, line):
            return
        if state.section is Section.PROJECTS and self._parse_project_line(state, line):
            return
        if state.section is Section.GOALS and self._parse_goal_line(state, line):
            return

        self._parse_top_level_line(state, line)

    # Top-level fields

    def _parse_top_level_line(self, state: _ParseState, line: str) -> bool:
        if (value := _label_value(line, "Title:")) is not None:
            state.fields["title"] = value
        elif (value := _label_value(line, "Categories:")) is not None:
            categories = self._parse_categories(state, value)
            if categories:
                state.fields["categories"] = categories
        elif (value := _label_value(line, "Privacy:")) is not None:
            if value and value.lower() != NO_VALUE:
                source = self._parse_enum(state, "privacy", value, Source)
                if source is not None:
                    state.fields["source"] = source
                    state.fields["is_private"] = source is Source.PRIVATE
        elif (value := _label_value(line, "Recipient:")) is not None:
            if value and value.lower() != NO_VALUE:
                state.fields["recipient"] = value
        elif (value := _label_value(line, "Priority:")) is not None:
            priority = self._parse_enum(state, "priority", value, Priority)
            if priority is not None:
                state.fields["priority"] = priority
        elif (value := _label_value(line, "Due Date:")) is not None:
            due_date = self._parse_date(state, "due_date", value)
            if due_date is not None:
                state.fields["due_date"] = due_date
        elif (value := _label_value(line, "Tags:")) is not None:
            state.fields["tags"] = [tag.lower() for tag in split_list(value, ",") if tag]
        elif (value := _label_value(line, "Summary:")) is not None:
            state.fields["summary"] = value
        else:
            return False
        return True

    def _parse_categories(self, state: _ParseState, value: str) -> list[Category]:
        categories: list[Category] = []
        for raw in split_list(value, ","):
            name = raw.lower()
            if not name:
                continue
            category = CATEGORY_ALIASES.get(name)
            if category is None:
                try:
                    category = Category(name)
                except ValueError:
                    state.fallback("categories", raw, "not a known category")
                    continue
            categories.append(category)
        return categories

    # Sections

    def _parse_shopping_line(self, state: _ParseState, line: str) -> bool:
        if line.startswith("- "):
            item = cast(ShoppingItemBuilder, state.start_item())
            item.name = line[2:].strip()
            return True

        item = cast(ShoppingItemBuilder, state.builder)
        if (value := _label_value(line, "Quantity:")) is not None:
            item.quantity = self._parse_quantity(state, value)
        elif (value := _label_value(line, "Notes:")) is not None:
            item.notes = value
        elif (value := _label_value(line, "Urgency:")) is not None:
            urgency = self._parse_enum(state, "shopping_items.urgency", value, Priority)
            if urgency is not None:
                item.urgency = urgency
        else:
            return False
        return True

    def _parse_reading_line(self, state: _ParseState, line: str) -> bool:
        if (value := _label_value(line, "Title:")) is not None:
            item = cast(ReadingNoteBuilder, state.start_item())
            item.title = value
            return True

        item = cast(ReadingNoteBuilder, state.builder)
        if (value := _label_value(line, "Chapter:")) is not None:
            item.chapter = value
        elif (value := _label_value(line, "Content:")) is not None:
            item.content = value
        elif (value := _label_value(line, "Key Points:")) is not None:
            item.key_points = split_list(value, ";")
        elif (value := _label_value(line, "Book Section:")) is not None:
            item.book_section = value
        else:
            return False
        return True

    def _parse_project_line(self, state: _ParseState, line: str) -> bool:
        if (value := _label_value(line, "Title:")) is not None:
            item = cast(ProjectBuilder, state.start_item())
            item.title = value
            return True

        item = cast(ProjectBuilder, state.builder)
        if (value := _label_value(line, "Type:")) is not None:
            project_type = self._parse_enum(state, "project_references.type", value, ProjectType)
            if project_type is not None:
                item.type = project_type
        elif (value := _label_value(line, "Description:")) is not None:
            item.description = value
        elif (value := _label_value(line, "Estimated Time:")) is not None:
            item.estimated_time = value
        elif (value := _label_value(line, "Priority:")) is not None:
            priority = self._parse_enum(state, "project_references.priority", value, Priority)
            if priority is not None:
                item.priority = priority
        elif (value := _label_value(line, "Status:")) is not None:
            status = self._parse_enum(state, "project_references.status", value, ProjectStatus)
            if status is not None:
                item.status = status
        else:
            return False
        return True

    def _parse_goal_line(self, state: _ParseState, line: str) -> bool:
        if (value := _label_value(line, "Title:")) is not None:
            item = cast(GoalBuilder, state.start_item())
            item.title = value
            return True

        item = cast(GoalBuilder, state.builder)
        if line == "Milestones:":
            pass
        elif (value := _label_value(line, "Milestone Due:")) is not None:
            if item.milestone is None:
                item.milestone = MilestoneBuilder()
            if value and value.lower() != NO_VALUE:
                item.milestone.due_date = value
        elif (value := _label_value(line, "Milestone:")) is not None:
            item.start_milestone(value)
        elif (value := _label_value(line, "Description:")) is not None:
            item.description = value
        elif (value := _label_value(line, "Target Date:")) is not None:
            if value and value.lower() != NO_VALUE:
                item.target_date = value
        elif (value := _label_value(line, "Success Criteria:")) is not None:
            item.success_criteria = split_list(value, ";")
        elif (value := _label_value(line, "Category:")) is not None:
            category = self._parse_enum(state, "goals.category", value, GoalCategory)
            if category is not None:
                item.category = category
        else:
            return False
        return True

    # Value coercion

    def _parse_enum(self, state: _ParseState, field_name: str, value: str, enum: type[E]) -> E | None:
        try:
            return enum(_normalize_enum_value(value))
        except ValueError:
            state.fallback(field_name, value, f"not a valid {enum.__name__}")
            return None

    def _parse_date(self, state: _ParseState, field_name: str, value: str) -> str | None:
        try:
            return parse_date(value)
        except ValueError:
            state.fallback(field_name, value, "unparseable date")
            return None

    def _parse_quantity(self, state: _ParseState, value: str) -> int:
        match = re.match(r"\s*(\d+)", value)
        if match is None or int(match.group(1)) == 0:
            state.fallback("shopping_items.quantity", value, "not a positive integer")
            return 1
        return int(match.group(1))


def format_analysis(result: AnalysisResult) -> str:
    """Render a result back into the label format understood by the parser."""
    lines = [
        f"Title: {result.title}",
        f"Categories: {', '.join(c.value for c in result.categories)}",
        f"Priority: {result.priority.value}",
        f"Due Date: {result.due_date or 'N/A'}",
        f"Privacy: {result.source.value}",
        f"Recipient: {result.recipient or 'N/A'}",
        f"Tags: {', '.join(result.tags)}",
        f"Summary: {result.summary}",
    ]

    if result.shopping_items:
        lines += ["", "Shopping Items:"]
        for shopping_item in result.shopping_items:
            lines.append(f"- {shopping_item.name}")
            if shopping_item.quantity is not None:
                lines.append(f"Quantity: {shopping_item.quantity}")
            if shopping_item.notes:
                lines.append(f"Notes: {shopping_item.notes}")
            if shopping_item.urgency:
                lines.append(f"Urgency: {shopping_item.urgency.value}")

    if result.dlltw_notes:
        lines += ["", "DLLTW Notes:"]
        for note in result.dlltw_notes:
            lines.append(f"Title: {note.title}")
            if note.chapter:
                lines.append(f"Chapter: {note.chapter}")
            if note.book_section:
                lines.append(f"Book Section: {note.book_section}")
            lines.append(f"Content: {note.content}")
            if note.key_points:
                lines.append(f"Key Points: {'; '.join(note.key_points)}")

    if result.project_references:
        lines += ["", "Project References:"]
        for project in result.project_references:
            lines.append(f"Title: {project.title}")
            lines.append(f"Type: {project.type.value}")
            if project.description:
                lines.append(f"Description: {project.description}")
            if project.estimated_time:
                lines.append(f"Estimated Time: {project.estimated_time}")
            if project.priority:
                lines.append(f"Priority: {project.priority.value}")
            lines.append(f"Status: {project.status.value}")

    if result.goals:
        lines += ["", "Goals:"]
        for goal in result.goals:
            lines.append(f"Title: {goal.title}")
            if goal.description:
                lines.append(f"Description: {goal.description}")
            if goal.target_date:
                lines.append(f"Target Date: {goal.target_date}")
            if goal.success_criteria:
                lines.append(f"Success Criteria: {'; '.join(goal.success_criteria)}")
            if goal.category:
                lines.append(f"Category: {goal.category.value}")
            for milestone in goal.milestones or []:
                lines.append(f"Milestone: {milestone.title}")
                if milestone.due_date:
                    lines.append(f"Milestone Due: {milestone.due_date}")

    return "\n".join(lines)


_parser = AnalysisParser()


def parse_analysis(content: str) -> AnalysisResult:
    """Convenience function for parsing with the shared parser."""
    return _parser.parse(content)
