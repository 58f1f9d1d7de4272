"""HTTP API for capturing, analyzing and storing voice notes."""

from __future__ import annotations

import logging
import time
from typing import Any

from fastapi import APIRouter, Depends, FastAPI, File, Query, Request, UploadFile
from fastapi.concurrency import run_in_threadpool
from fastapi.responses import JSONResponse, Response
from pydantic import BaseModel

from voicenotes import __version__
from voicenotes.notion import NotionClient, NotionError, NotionNote
from voicenotes.sentry import add_breadcrumb, capture_exception
from voicenotes.services.analyzer import AnalysisError, NoteAnalyzer
from voicenotes.services.api_log import ApiCallLog, api_log
from voicenotes.services.transcription import (
    AssemblyAITranscriber,
    AudioTooLargeError,
    TranscriptionError,
    TranscriptionTimeoutError,
)
from voicenotes.storage import BrainDump, StorageError, SupabaseStore

logger = logging.getLogger(__name__)


class AnalyzeRequest(BaseModel):
    transcription: str | None = None


def get_analyzer() -> NoteAnalyzer:
    return NoteAnalyzer()


def get_transcriber() -> AssemblyAITranscriber:
    return AssemblyAITranscriber()


def get_notion_client() -> NotionClient:
    return NotionClient()


def get_store() -> SupabaseStore:
    return SupabaseStore()


def get_call_log() -> ApiCallLog:
    return api_log


def _error(status: int, error: str, **extra: Any) -> JSONResponse:
    return JSONResponse(status_code=status, content={"error": error, **extra})


api_router = APIRouter(prefix="/api")


@api_router.post("/analyze")
async def analyze(
    body: AnalyzeRequest,
    diagnostics: bool = Query(False),
    analyzer: NoteAnalyzer = Depends(get_analyzer),
    call_log: ApiCallLog = Depends(get_call_log),
) -> Any:
    start = time.time()
    add_breadcrumb(
        "Analyzing transcript",
        category="analysis",
        data={"length": len(body.transcription or "")},
    )
    try:
        result = await run_in_threadpool(analyzer.analyze, body.transcription)
    except AnalysisError as e:
        logger.error("Error in analyze endpoint: %s", e)
        capture_exception(e)
        call_log.record(
            "/api/analyze",
            request_data=body.model_dump(),
            duration_ms=int((time.time() - start) * 1000),
            error=str(e),
        )
        return _error(500, "Failed to analyze note", details=str(e))

    response = result.to_response(include_diagnostics=diagnostics)
    call_log.record(
        "/api/analyze",
        request_data=body.model_dump(),
        response_data=response,
        duration_ms=int((time.time() - start) * 1000),
    )
    return response


@api_router.post("/transcribe")
async def transcribe(
    audio: UploadFile | None = File(None),
    transcriber: AssemblyAITranscriber = Depends(get_transcriber),
    call_log: ApiCallLog = Depends(get_call_log),
) -> Any:
    if audio is None:
        logger.error("No audio file provided")
        return _error(400, "No audio file provided")

    audio_data = await audio.read()
    request_info = {"name": audio.filename, "type": audio.content_type, "size": len(audio_data)}
    logger.info("Audio file received: %s", request_info)

    start = time.time()
    try:
        result = await transcriber.transcribe(audio_data)
    except AudioTooLargeError as e:
        call_log.record("/api/transcribe", request_data=request_info, error=str(e))
        return _error(413, "Audio file too large", details="Please try a shorter recording")
    except TranscriptionTimeoutError as e:
        call_log.record("/api/transcribe", request_data=request_info, error=str(e))
        return _error(
            408,
            "Transcription took too long",
            details="Please try again with a shorter recording",
        )
    except TranscriptionError as e:
        logger.error("Transcription error: %s", e)
        capture_exception(e)
        call_log.record("/api/transcribe", request_data=request_info, error=str(e))
        return _error(500, str(e) or "Failed to transcribe audio")

    response = result.to_response()
    call_log.record(
        "/api/transcribe",
        request_data=request_info,
        response_data=response,
        duration_ms=int((time.time() - start) * 1000),
    )
    return response


@api_router.post("/notion")
async def save_to_notion(
    note: NotionNote,
    client: NotionClient = Depends(get_notion_client),
    call_log: ApiCallLog = Depends(get_call_log),
) -> Any:
    request_data = note.model_dump(mode="json")
    try:
        notion_id = await client.create_note(note)
    except NotionError as e:
        logger.error("Notion error (%s %s): %s", e.status, e.code, e.message)
        call_log.record("/api/notion", request_data=request_data, error=e.message)
        return _error(e.status, e.message, code=e.code)
    finally:
        await client.close()

    call_log.record("/api/notion", request_data=request_data, response_data={"notionId": notion_id})
    return {"notionId": notion_id}


@api_router.post("/supabase")
async def save_to_supabase(
    note: BrainDump,
    store: SupabaseStore = Depends(get_store),
    call_log: ApiCallLog = Depends(get_call_log),
) -> Any:
    if not note.name or not note.localid:
        return _error(400, "Missing required fields")

    request_data = note.model_dump(mode="json")
    try:
        stored = await store.add_note(note)
    except StorageError as e:
        call_log.record("/api/supabase", request_data=request_data, error=str(e))
        return _error(e.status, str(e))
    finally:
        await store.close()

    call_log.record("/api/supabase", request_data=request_data, response_data={"id": stored.id})
    return {"id": stored.id}


@api_router.delete("/supabase/{note_id}")
async def delete_from_supabase(
    note_id: str,
    store: SupabaseStore = Depends(get_store),
) -> Any:
    try:
        await store.delete_note(note_id)
    except StorageError as e:
        return _error(e.status, f"Database delete failed: {e}")
    finally:
        await store.close()
    return {"success": True}


@api_router.get("/logs")
async def list_logs(call_log: ApiCallLog = Depends(get_call_log)) -> Any:
    return [entry.to_dict() for entry in call_log.entries()]


@api_router.get("/logs/export")
async def export_logs(call_log: ApiCallLog = Depends(get_call_log)) -> Response:
    return Response(
        content=call_log.export_json(),
        media_type="application/json",
        headers={"Content-Disposition": "attachment; filename=api-logs.json"},
    )


@api_router.delete("/logs")
async def clear_logs(call_log: ApiCallLog = Depends(get_call_log)) -> Any:
    call_log.clear()
    return {"success": True}


def create_app() -> FastAPI:
    app = FastAPI(title="Voice Notes API", version=__version__)

    @app.middleware("http")
    async def log_requests(request: Request, call_next):
        start_time = time.time()
        response = await call_next(request)
        logger.info(
            "%s %s -> %d (%.3fs)",
            request.method,
            request.url.path,
            response.status_code,
            time.time() - start_time,
        )
        return response

    @app.get("/health")
    async def health() -> dict[str, str]:
        return {"status": "ok"}

    app.include_router(api_router)
    return app


app = create_app()
