"""Tests for the analysis parser."""

import pytest
from pydantic import ValidationError

from voicenotes.services.analysis import (
    AnalysisResult,
    Category,
    Goal,
    GoalCategory,
    Milestone,
    Priority,
    ProjectStatus,
    ProjectType,
    ShoppingItem,
    Source,
)
from voicenotes.services.analysis_parser import (
    AnalysisParser,
    format_analysis,
    parse_analysis,
    parse_date,
)

SHOPPING_NOTE = (
    "Title: Buy milk\n"
    "Categories: shopping\n"
    "Priority: low\n"
    "Summary: grocery run\n"
    "\n"
    "Shopping Items:\n"
    "- Milk\n"
    "Quantity: 2\n"
    "Urgency: medium"
)


def fallback_fields(result: AnalysisResult) -> list[str]:
    return [d.field for d in result.diagnostics]


class TestTopLevelFields:
    def setup_method(self):
        self.parser = AnalysisParser()

    def test_shopping_note(self):
        result = self.parser.parse(SHOPPING_NOTE)
        assert result.title == "Buy milk"
        assert result.categories == ("shopping",)
        assert result.priority == Priority.LOW
        assert result.summary == "grocery run"
        assert result.shopping_items == (
            ShoppingItem(name="Milk", quantity=2, urgency=Priority.MEDIUM),
        )
        assert result.diagnostics == ()

    def test_empty_input_gives_defaults(self):
        result = self.parser.parse("")
        assert result.title == ""
        assert result.categories == (Category.NOTE,)
        assert result.priority == Priority.LOW
        assert result.due_date is None
        assert result.source == Source.LOCAL
        assert result.status == "new"
        assert result.tags == ()
        assert result.shopping_items == ()
        assert result.goals == ()

    def test_garbage_input_gives_defaults(self):
        result = self.parser.parse("I'm sorry, I can't help with that.\n???\n- - -")
        assert result.title == ""
        assert result.categories == (Category.NOTE,)

    @pytest.mark.parametrize("value", ["high", "High", "HIGH", " high "])
    def test_priority_any_case(self, value):
        result = self.parser.parse(f"Priority: {value}")
        assert result.priority == Priority.HIGH

    def test_unknown_priority_keeps_default(self):
        result = self.parser.parse("Priority: urgent")
        assert result.priority == Priority.LOW
        assert fallback_fields(result) == ["priority"]

    def test_categories_filtered_to_vocabulary(self):
        result = self.parser.parse("Categories: task, Reminder, bogus")
        assert result.categories == (Category.TASK, Category.REMINDER)
        assert fallback_fields(result) == ["categories"]

    def test_invalid_categories_default_to_note(self):
        result = self.parser.parse("Categories: bogus, nonsense")
        assert result.categories == (Category.NOTE,)

    def test_empty_categories_default_to_note(self):
        result = self.parser.parse("Categories:")
        assert result.categories == (Category.NOTE,)
        assert result.diagnostics == ()

    def test_dlltw_category_alias(self):
        result = self.parser.parse("Categories: dlltw, reading-note")
        assert result.categories == (Category.READING_NOTE, Category.READING_NOTE)

    def test_tags_lowercased_and_trimmed(self):
        result = self.parser.parse("Tags: Groceries, , Errands ,")
        assert result.tags == ("groceries", "errands")

    def test_private_note(self):
        result = self.parser.parse("Privacy: Private\nRecipient: Sam")
        assert result.source == Source.PRIVATE
        assert result.is_private is True
        assert result.recipient == "Sam"

    def test_public_note(self):
        result = self.parser.parse("Privacy: public")
        assert result.source == Source.PUBLIC
        assert result.is_private is False

    def test_unknown_privacy_keeps_default(self):
        result = self.parser.parse("Privacy: secret")
        assert result.source == Source.LOCAL
        assert result.is_private is None
        assert fallback_fields(result) == ["privacy"]

    def test_recipient_not_applicable(self):
        result = self.parser.parse("Recipient: N/A")
        assert result.recipient is None

    def test_later_line_overrides_earlier(self):
        result = self.parser.parse("Title: First\nTitle: Second")
        assert result.title == "Second"


class TestDueDate:
    def setup_method(self):
        self.parser = AnalysisParser()

    def test_iso_date(self):
        result = self.parser.parse("Due Date: 2025-03-14")
        assert result.due_date == "2025-03-14"

    def test_long_form_date(self):
        result = self.parser.parse("Due Date: March 14, 2025")
        assert result.due_date == "2025-03-14"

    def test_datetime_is_reduced_to_date(self):
        result = self.parser.parse("Due Date: 2025-03-14T10:30:00")
        assert result.due_date == "2025-03-14"

    @pytest.mark.parametrize("value", ["N/A", "n/a", ""])
    def test_not_applicable_is_absent(self, value):
        result = self.parser.parse(f"Due Date: {value}")
        assert result.due_date is None
        assert result.diagnostics == ()

    def test_unparseable_date_is_absent(self):
        result = self.parser.parse("Due Date: next tuesday-ish")
        assert result.due_date is None
        assert fallback_fields(result) == ["due_date"]

    def test_parse_date_raises_on_garbage(self):
        with pytest.raises(ValueError):
            parse_date("someday")


class TestShoppingSection:
    def setup_method(self):
        self.parser = AnalysisParser()

    def test_multiple_items(self):
        result = self.parser.parse(
            "Shopping Items:\n"
            "- Milk\n"
            "Quantity: 2\n"
            "- Eggs\n"
            "Quantity: 12\n"
            "Notes: free range\n"
            "Urgency: High"
        )
        assert result.shopping_items == (
            ShoppingItem(name="Milk", quantity=2),
            ShoppingItem(name="Eggs", quantity=12, notes="free range", urgency=Priority.HIGH),
        )

    def test_quantity_with_units(self):
        result = self.parser.parse("Shopping Items:\n- Milk\nQuantity: 3 cartons")
        assert result.shopping_items[0].quantity == 3

    def test_unparseable_quantity_defaults_to_one(self):
        result = self.parser.parse("Shopping Items:\n- Eggs\nQuantity: a dozen")
        assert result.shopping_items[0].quantity == 1
        assert fallback_fields(result) == ["shopping_items.quantity"]

    def test_unknown_urgency_is_ignored(self):
        result = self.parser.parse("Shopping Items:\n- Bread\nUrgency: asap")
        assert result.shopping_items[0].urgency is None
        assert fallback_fields(result) == ["shopping_items.urgency"]

    def test_fields_before_any_name_are_discarded(self):
        result = self.parser.parse("Shopping Items:\nQuantity: 4\nNotes: orphan")
        assert result.shopping_items == ()

    def test_empty_section_followed_by_goals(self):
        result = self.parser.parse("Shopping Items:\nGoals:")
        assert result.shopping_items == ()
        assert result.goals == ()

    def test_section_switch_drops_pending_item(self):
        result = self.parser.parse(
            "Shopping Items:\n- Milk\n- Bread\n\nGoals:\nTitle: Cook more"
        )
        assert result.shopping_items == (ShoppingItem(name="Milk"),)
        assert result.goals == (Goal(title="Cook more"),)
        assert fallback_fields(result) == ["shopping_items.item"]


class TestReadingNotes:
    def test_reading_note_fields(self):
        result = parse_analysis(
            "DLLTW Notes:\n"
            "Title: Habits\n"
            "Chapter: 3\n"
            "Book Section: Part One\n"
            "Content: Small wins compound\n"
            "Key Points: start small; repeat daily"
        )
        assert len(result.dlltw_notes) == 1
        note = result.dlltw_notes[0]
        assert note.title == "Habits"
        assert note.chapter == "3"
        assert note.book_section == "Part One"
        assert note.content == "Small wins compound"
        assert note.key_points == ("start small", "repeat daily")

    def test_empty_key_points_are_kept(self):
        result = parse_analysis("Reading Notes:\nTitle: X\nKey Points: a;;b")
        assert result.dlltw_notes[0].key_points == ("a", "", "b")

    def test_content_defaults_to_empty(self):
        result = parse_analysis("DLLTW Notes:\nTitle: Only a title")
        assert result.dlltw_notes[0].content == ""


class TestProjectReferences:
    def test_project_fields(self):
        result = parse_analysis(
            "Priority: low\n"
            "Project References:\n"
            "Title: Portfolio site\n"
            "Type: Static Website\n"
            "Description: Personal site\n"
            "Estimated Time: 2 weeks\n"
            "Priority: high\n"
            "Status: in progress"
        )
        assert result.priority == Priority.LOW
        project = result.project_references[0]
        assert project.title == "Portfolio site"
        assert project.type == ProjectType.STATIC_WEBSITE
        assert project.description == "Personal site"
        assert project.estimated_time == "2 weeks"
        assert project.priority == Priority.HIGH
        assert project.status == ProjectStatus.IN_PROGRESS

    def test_project_defaults(self):
        result = parse_analysis("Project References:\nTitle: Side thing\nType: app\nStatus: someday")
        project = result.project_references[0]
        assert project.type == ProjectType.OTHER
        assert project.status == ProjectStatus.PLANNING
        assert fallback_fields(result) == [
            "project_references.type",
            "project_references.status",
        ]


class TestGoals:
    def test_goals_with_milestones(self):
        result = parse_analysis(
            "Goals:\n"
            "Title: Launch product\n"
            "Description: Ship the first version\n"
            "Target Date: 2025-06-30\n"
            "Success Criteria: 10 users; 1 sale\n"
            "Category: Business\n"
            "\n"
            "Milestones:\n"
            "Milestone: MVP\n"
            "Milestone Due: 2025-03-01\n"
            "Milestone: Beta\n"
            "Title: Read more\n"
            "Category: personal\n"
            "Milestone: Book 1"
        )
        assert result.goals == (
            Goal(
                title="Launch product",
                description="Ship the first version",
                target_date="2025-06-30",
                success_criteria=["10 users", "1 sale"],
                category=GoalCategory.BUSINESS,
                milestones=[
                    Milestone(title="MVP", due_date="2025-03-01"),
                    Milestone(title="Beta"),
                ],
            ),
            Goal(
                title="Read more",
                category=GoalCategory.PERSONAL,
                milestones=[Milestone(title="Book 1")],
            ),
        )

    def test_untitled_goal_is_discarded(self):
        result = parse_analysis("Goals:\nTitle:\nTitle: Run a marathon\nCategory: personal")
        assert result.goals == (
            Goal(title="Run a marathon", category=GoalCategory.PERSONAL),
        )

    def test_milestone_due_before_title(self):
        result = parse_analysis(
            "Goals:\nTitle: G\nMilestone Due: 2025-01-01\nMilestone: M\nMilestone: N"
        )
        assert result.goals[0].milestones == (
            Milestone(title="M", due_date="2025-01-01"),
            Milestone(title="N"),
        )

    def test_untitled_milestone_is_discarded(self):
        result = parse_analysis("Goals:\nTitle: G\nMilestone Due: 2025-01-01\nMilestone:\n")
        assert result.goals[0].milestones is None

    def test_section_titles_do_not_override_note_title(self):
        result = parse_analysis("Title: Main note\nGoals:\nTitle: A goal")
        assert result.title == "Main note"
        assert result.goals[0].title == "A goal"

    def test_unrecognized_label_in_section_falls_through(self):
        result = parse_analysis("Goals:\nTitle: A goal\nSummary: late summary")
        assert result.summary == "late summary"
        assert result.goals[0].title == "A goal"


class TestResultProperties:
    def test_parsing_is_idempotent(self):
        assert parse_analysis(SHOPPING_NOTE) == parse_analysis(SHOPPING_NOTE)

    def test_result_is_frozen(self):
        result = parse_analysis(SHOPPING_NOTE)
        with pytest.raises(ValidationError):
            result.title = "changed"

    def test_collections_are_immutable(self):
        result = parse_analysis(
            "Categories: task\nTags: home\n\n"
            "Shopping Items:\n- Milk\n\n"
            "Goals:\nTitle: G\nSuccess Criteria: a; b\nMilestone: M"
        )
        with pytest.raises(AttributeError):
            result.categories.append("bogus")
        with pytest.raises(AttributeError):
            result.tags.append("extra")
        with pytest.raises(AttributeError):
            result.shopping_items.append(ShoppingItem(name="Eggs"))
        with pytest.raises(AttributeError):
            result.goals[0].success_criteria.append("c")
        with pytest.raises(AttributeError):
            result.goals[0].milestones.append(Milestone(title="N"))
        assert result.categories == (Category.TASK,)

    def test_round_trip_scalar_and_list_fields(self):
        original = AnalysisResult(
            title="Plan the trip",
            categories=[Category.TASK, Category.GOAL],
            priority=Priority.HIGH,
            due_date="2025-06-01",
            summary="Book flights and hotel",
            tags=["travel", "family"],
            source=Source.PUBLIC,
            goals=[Goal(title="Visit Japan", category=GoalCategory.PERSONAL)],
        )
        parsed = parse_analysis(format_analysis(original))
        assert parsed.title == original.title
        assert parsed.priority == original.priority
        assert parsed.due_date == original.due_date
        assert parsed.summary == original.summary
        assert parsed.source == original.source
        assert sorted(parsed.categories) == sorted(original.categories)
        assert sorted(parsed.tags) == sorted(original.tags)
        assert parsed.goals == original.goals

    def test_round_trip_shopping_items(self):
        original = parse_analysis(SHOPPING_NOTE)
        assert parse_analysis(format_analysis(original)).shopping_items == original.shopping_items

    def test_response_excludes_diagnostics_by_default(self):
        result = parse_analysis("Priority: urgent")
        assert "diagnostics" not in result.to_response()
        body = result.to_response(include_diagnostics=True)
        assert body["diagnostics"][0]["field"] == "priority"

    def test_response_uses_plain_values(self):
        body = parse_analysis(SHOPPING_NOTE).to_response()
        assert body["categories"] == ["shopping"]
        assert body["priority"] == "low"
        assert body["shopping_items"] == [{"name": "Milk", "quantity": 2, "urgency": "medium"}]
        assert "due_date" not in body
