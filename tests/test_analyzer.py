"""Tests for the note analyzer."""

from unittest.mock import MagicMock

import pytest

from voicenotes.services.analysis import Category, Priority
from voicenotes.services.analyzer import AnalysisError, NoteAnalyzer, has_transcript
from voicenotes.services.llm_client import (
    CompletionClient,
    CompletionError,
    CompletionProvider,
    CompletionResponse,
)
from voicenotes.services.prompts import ANALYSIS_SYSTEM_PROMPT

ANSWER = (
    "Title: Call the plumber\n"
    "Categories: task, reminder\n"
    "Priority: high\n"
    "Due Date: 2025-05-02\n"
    "Privacy: local\n"
    "Recipient: N/A\n"
    "Tags: home, repairs\n"
    "Summary: Kitchen sink is leaking"
)


def make_client(text: str = ANSWER) -> MagicMock:
    client = MagicMock(spec=CompletionClient)
    client.complete.return_value = CompletionResponse(
        text=text, provider=CompletionProvider.OPENAI, model="gpt-4o"
    )
    return client


class TestHasTranscript:
    @pytest.mark.parametrize("value", [None, "", "   ", "Processing...", " Processing... "])
    def test_missing_transcripts(self, value):
        assert has_transcript(value) is False

    def test_real_transcript(self):
        assert has_transcript("call the plumber") is True


class TestNoteAnalyzer:
    def test_analyze_parses_completion(self):
        analyzer = NoteAnalyzer(client=make_client())
        result = analyzer.analyze("I need to call the plumber tomorrow, the sink is leaking")

        assert result.title == "Call the plumber"
        assert result.categories == (Category.TASK, Category.REMINDER)
        assert result.priority == Priority.HIGH
        assert result.due_date == "2025-05-02"
        assert result.tags == ("home", "repairs")
        assert result.recipient is None

    def test_prompt_contains_transcript_and_instructions(self):
        client = make_client()
        analyzer = NoteAnalyzer(client=client, temperature=0.3, max_tokens=500)
        analyzer.analyze("buy oat milk")

        args, kwargs = client.complete.call_args
        assert 'Voice note: "buy oat milk"' in args[0]
        assert "Shopping Items:" in args[0]
        assert kwargs["system_prompt"] == ANALYSIS_SYSTEM_PROMPT
        assert kwargs["temperature"] == 0.3
        assert kwargs["max_tokens"] == 500

    @pytest.mark.parametrize("transcription", [None, "", "  ", "Processing..."])
    def test_empty_transcript_skips_completion(self, transcription):
        client = make_client()
        result = NoteAnalyzer(client=client).analyze(transcription)

        client.complete.assert_not_called()
        assert result.title == "Empty Note"
        assert result.summary == "No transcription available"
        assert result.categories == (Category.NOTE,)
        assert result.priority == Priority.LOW

    def test_completion_failure_raises(self):
        client = make_client()
        client.complete.side_effect = CompletionError("All completion providers failed")

        with pytest.raises(AnalysisError) as exc_info:
            NoteAnalyzer(client=client).analyze("something")
        assert "All completion providers failed" in str(exc_info.value)

    def test_empty_completion_raises(self):
        with pytest.raises(AnalysisError) as exc_info:
            NoteAnalyzer(client=make_client("  \n")).analyze("something")
        assert "No content" in str(exc_info.value)

    def test_garbled_completion_still_returns_result(self):
        result = NoteAnalyzer(client=make_client("Sure! Here you go:\nPriority: extreme")).analyze(
            "something"
        )
        assert result.priority == Priority.LOW
        assert result.is_degraded is True
