"""Analyze a voice note transcript with the completion service."""

from __future__ import annotations

import logging

from voicenotes.services.analysis import AnalysisResult, empty_note_result
from voicenotes.services.analysis_parser import AnalysisParser
from voicenotes.services.llm_client import CompletionClient, CompletionError
from voicenotes.services.prompts import ANALYSIS_SYSTEM_PROMPT, build_analysis_prompt

logger = logging.getLogger(__name__)

# Placeholder the capture UI shows while a recording is still transcribing
PROCESSING_PLACEHOLDER = "Processing..."


class AnalysisError(Exception):
    """The completion service could not produce an analysis."""

    pass


def has_transcript(transcription: str | None) -> bool:
    if not transcription:
        return False
    text = transcription.strip()
    return bool(text) and text != PROCESSING_PLACEHOLDER


class NoteAnalyzer:
    """Ask the completion service to analyze a transcript and parse its answer."""

    def __init__(
        self,
        client: CompletionClient | None = None,
        parser: AnalysisParser | None = None,
        temperature: float | None = None,
        max_tokens: int | None = None,
    ) -> None:
        from voicenotes.config import settings

        if client is None:
            from voicenotes.services.llm_client import get_completion_client

            client = get_completion_client()
        self.client = client
        self.parser = parser or AnalysisParser()
        self.temperature = (
            temperature if temperature is not None else settings.completion_temperature
        )
        self.max_tokens = max_tokens if max_tokens is not None else settings.completion_max_tokens

    def analyze(self, transcription: str | None) -> AnalysisResult:
        """Analyze one transcript.

        An empty transcript yields the fixed empty-note result without calling
        the completion service.

        Raises:
            AnalysisError: If the completion service fails or returns no text
        """
        if transcription is None or not has_transcript(transcription):
            logger.info("No transcription to analyze, returning empty note")
            return empty_note_result()

        try:
            response = self.client.complete(
                build_analysis_prompt(transcription),
                system_prompt=ANALYSIS_SYSTEM_PROMPT,
                temperature=self.temperature,
                max_tokens=self.max_tokens,
            )
        except CompletionError as e:
            raise AnalysisError(str(e)) from e

        content = response.text.strip()
        if not content:
            raise AnalysisError(f"No content in {response.provider.value} response")

        logger.debug("Completion response from %s: %s", response.provider.value, content)
        logger.debug("Completion usage: %s", self.client.get_stats(response.provider))
        result = self.parser.parse(content)
        if result.is_degraded:
            logger.info(
                "Analysis parsed with %d fallback(s): %s",
                len(result.diagnostics),
                ", ".join(d.field for d in result.diagnostics),
            )
        return result
