"""Voice note capture: transcription, analysis and routing to Notion and Supabase."""

__version__ = "0.1.0"
