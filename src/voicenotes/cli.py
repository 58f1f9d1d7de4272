import argparse
import asyncio
import json
import logging
import sys
from pathlib import Path

from voicenotes.config import settings
from voicenotes.sentry import flush as sentry_flush
from voicenotes.sentry import init_sentry


def setup_logging() -> None:
    logging.basicConfig(
        level=getattr(logging, settings.log_level.upper(), logging.INFO),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )


def _read_input(source: str) -> str:
    if source == "-":
        return sys.stdin.read()
    return Path(source).read_text(encoding="utf-8")


def serve(host: str, port: int) -> None:
    import uvicorn

    uvicorn.run("voicenotes.web:app", host=host, port=port, log_level=settings.log_level.lower())


def check_config() -> None:
    print("Voice Notes Configuration Check\n")

    checks = [
        ("Completion API key", settings.has_completion),
        ("AssemblyAI API Key", settings.has_assemblyai),
        ("Notion API Key + Database", settings.has_notion),
        ("Supabase URL + Key", settings.has_supabase),
        ("Sentry DSN", settings.has_sentry),
    ]

    all_required_ok = True
    for name, configured in checks:
        status = "OK" if configured else "MISSING"
        symbol = "+" if configured else "-"
        print(f"  [{symbol}] {name}: {status}")
        if name == "Completion API key" and not configured:
            all_required_ok = False

    print()
    if all_required_ok:
        print("Required configuration present. Ready to run.")
    else:
        print("Missing required configuration. See .env.example for setup.")


def parse_file(source: str, diagnostics: bool) -> None:
    """Parse a saved completion answer without calling any service."""
    from voicenotes.services.analysis_parser import parse_analysis

    result = parse_analysis(_read_input(source))
    print(json.dumps(result.to_response(include_diagnostics=diagnostics), indent=2))


def analyze_text(source: str, diagnostics: bool) -> None:
    from voicenotes.services.analyzer import AnalysisError, NoteAnalyzer

    if not settings.has_completion:
        print("Error: no completion API key configured")
        sys.exit(1)

    try:
        result = NoteAnalyzer().analyze(_read_input(source))
    except AnalysisError as e:
        print(f"Error: {e}")
        sys.exit(1)
    print(json.dumps(result.to_response(include_diagnostics=diagnostics), indent=2))


async def transcribe_file(path: str) -> None:
    from voicenotes.services.transcription import AssemblyAITranscriber, TranscriptionError

    if not settings.has_assemblyai:
        print("Error: ASSEMBLYAI_API_KEY not configured")
        sys.exit(1)

    try:
        result = await AssemblyAITranscriber().transcribe(Path(path).read_bytes())
    except TranscriptionError as e:
        print(f"Error: {e}")
        sys.exit(1)
    print(json.dumps(result.to_response(), indent=2))


def main() -> None:
    parser = argparse.ArgumentParser(description="Voice note capture and analysis")
    subparsers = parser.add_subparsers(dest="command", help="Commands")

    serve_parser = subparsers.add_parser("serve", help="Start the HTTP API")
    serve_parser.add_argument("--host", default=settings.host)
    serve_parser.add_argument("--port", type=int, default=settings.port)

    subparsers.add_parser("check", help="Check configuration")

    parse_parser = subparsers.add_parser("parse", help="Parse a saved analysis answer")
    parse_parser.add_argument("source", help="File with the completion text, or - for stdin")
    parse_parser.add_argument("--diagnostics", action="store_true")

    analyze_parser = subparsers.add_parser("analyze", help="Analyze a transcript")
    analyze_parser.add_argument("source", help="File with the transcript, or - for stdin")
    analyze_parser.add_argument("--diagnostics", action="store_true")

    transcribe_parser = subparsers.add_parser("transcribe", help="Transcribe an audio file")
    transcribe_parser.add_argument("path")

    args = parser.parse_args()

    setup_logging()

    init_sentry(
        dsn=settings.sentry_dsn if settings.has_sentry else None,
        environment=settings.sentry_environment,
    )

    try:
        if args.command == "serve":
            serve(args.host, args.port)
        elif args.command == "check":
            check_config()
        elif args.command == "parse":
            parse_file(args.source, args.diagnostics)
        elif args.command == "analyze":
            analyze_text(args.source, args.diagnostics)
        elif args.command == "transcribe":
            asyncio.run(transcribe_file(args.path))
        else:
            parser.print_help()
    finally:
        sentry_flush(timeout=2.0)


if __name__ == "__main__":
    main()
