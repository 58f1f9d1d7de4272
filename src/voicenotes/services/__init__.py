"""Voice notes services.

Imports are lazy so that importing the parser does not pull in HTTP clients.
"""

from __future__ import annotations

from importlib import import_module
from typing import Any

_EXPORTS: dict[str, tuple[str, str]] = {
    # Analysis types
    "AnalysisResult": ("voicenotes.services.analysis", "AnalysisResult"),
    "Category": ("voicenotes.services.analysis", "Category"),
    "Goal": ("voicenotes.services.analysis", "Goal"),
    "Milestone": ("voicenotes.services.analysis", "Milestone"),
    "ParseDiagnostic": ("voicenotes.services.analysis", "ParseDiagnostic"),
    "Priority": ("voicenotes.services.analysis", "Priority"),
    "ProjectReference": ("voicenotes.services.analysis", "ProjectReference"),
    "ReadingNote": ("voicenotes.services.analysis", "ReadingNote"),
    "ShoppingItem": ("voicenotes.services.analysis", "ShoppingItem"),
    "Source": ("voicenotes.services.analysis", "Source"),
    # Parser
    "AnalysisParser": ("voicenotes.services.analysis_parser", "AnalysisParser"),
    "format_analysis": ("voicenotes.services.analysis_parser", "format_analysis"),
    "parse_analysis": ("voicenotes.services.analysis_parser", "parse_analysis"),
    # Analyzer
    "AnalysisError": ("voicenotes.services.analyzer", "AnalysisError"),
    "NoteAnalyzer": ("voicenotes.services.analyzer", "NoteAnalyzer"),
    # Completion client
    "CompletionClient": ("voicenotes.services.llm_client", "CompletionClient"),
    "CompletionError": ("voicenotes.services.llm_client", "CompletionError"),
    "CompletionProvider": ("voicenotes.services.llm_client", "CompletionProvider"),
    "CompletionResponse": ("voicenotes.services.llm_client", "CompletionResponse"),
    "get_completion_client": ("voicenotes.services.llm_client", "get_completion_client"),
    # Transcription
    "AssemblyAITranscriber": ("voicenotes.services.transcription", "AssemblyAITranscriber"),
    "TranscriptionError": ("voicenotes.services.transcription", "TranscriptionError"),
    "TranscriptionResult": ("voicenotes.services.transcription", "TranscriptionResult"),
    # Call log
    "ApiCallLog": ("voicenotes.services.api_log", "ApiCallLog"),
    "api_log": ("voicenotes.services.api_log", "api_log"),
}

__all__ = list(_EXPORTS.keys())


def __getattr__(name: str) -> Any:
    if name not in _EXPORTS:
        raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
    module_name, attr_name = _EXPORTS[name]
    module = import_module(module_name)
    value = getattr(module, attr_name)
    globals()[name] = value
    return value


def __dir__() -> list[str]:
    return sorted(list(globals().keys()) + list(_EXPORTS.keys()))
