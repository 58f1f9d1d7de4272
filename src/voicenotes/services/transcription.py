"""AssemblyAI transcription service.

Uploads recorded audio to AssemblyAI, starts a transcript job and polls it
until it completes, fails or runs out of attempts.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass

import httpx

from voicenotes.config import settings

logger = logging.getLogger(__name__)


@dataclass
class TranscriptionResult:
    """A completed AssemblyAI transcript."""

    text: str
    confidence: float | None  # 0.0-1.0 as reported by AssemblyAI
    status: str
    transcript_id: str = ""

    def to_response(self) -> dict:
        return {"text": self.text, "confidence": self.confidence, "status": self.status}


class TranscriptionError(Exception):
    """Error during transcription."""

    pass


class AudioTooLargeError(TranscriptionError):
    """AssemblyAI rejected the upload as too large."""

    pass


class TranscriptionTimeoutError(TranscriptionError):
    """The transcript did not complete within the allowed polling attempts."""

    pass


class AssemblyAITranscriber:
    """Transcribes audio with the AssemblyAI v2 REST API."""

    BASE_URL = "https://api.assemblyai.com/v2"

    def __init__(
        self,
        api_key: str | None = None,
        language: str | None = None,
        poll_attempts: int | None = None,
        poll_interval: float | None = None,
        timeout_seconds: float = 60.0,
        client: httpx.AsyncClient | None = None,
    ):
        """Initialize the transcriber.

        Args:
            api_key: AssemblyAI API key. Uses settings.assemblyai_api_key if not provided.
            language: Language code sent with each job (default from settings)
            poll_attempts: Status checks before giving up
            poll_interval: Seconds between status checks
            timeout_seconds: Request timeout in seconds
            client: Optional shared HTTP client
        """
        self.api_key = api_key or settings.assemblyai_api_key
        self.language = language or settings.transcription_language
        self.poll_attempts = poll_attempts or settings.transcription_poll_attempts
        self.poll_interval = (
            poll_interval if poll_interval is not None else settings.transcription_poll_interval
        )
        self.timeout = timeout_seconds
        self._client = client

    async def transcribe(self, audio_data: bytes) -> TranscriptionResult:
        """Upload audio and wait for its transcript.

        Raises:
            AudioTooLargeError: If the upload is rejected with 413
            TranscriptionTimeoutError: If polling runs out of attempts
            TranscriptionError: For any other failure
        """
        if not self.api_key:
            raise TranscriptionError("AssemblyAI API key not configured")
        if not audio_data:
            raise TranscriptionError("No audio data provided")

        logger.info("Starting transcription of %d bytes", len(audio_data))

        if self._client is not None:
            return await self._run(self._client, audio_data)
        async with httpx.AsyncClient(timeout=self.timeout) as client:
            return await self._run(client, audio_data)

    async def _run(self, client: httpx.AsyncClient, audio_data: bytes) -> TranscriptionResult:
        try:
            upload_url = await self._upload(client, audio_data)
            transcript_id = await self._start(client, upload_url)
            return await self._poll(client, transcript_id)
        except httpx.TimeoutException as e:
            raise TranscriptionTimeoutError(f"Request timeout: {e}") from e
        except httpx.HTTPError as e:
            raise TranscriptionError(f"AssemblyAI request failed: {e}") from e

    @property
    def _headers(self) -> dict[str, str]:
        return {"authorization": self.api_key}

    async def _upload(self, client: httpx.AsyncClient, audio_data: bytes) -> str:
        response = await client.post(
            f"{self.BASE_URL}/upload",
            headers={**self._headers, "content-type": "application/octet-stream"},
            content=audio_data,
        )
        if response.status_code == 413:
            raise AudioTooLargeError("Audio file too large")
        if response.status_code != 200:
            raise TranscriptionError(f"Upload error {response.status_code}: {response.text}")

        upload_url = response.json().get("upload_url")
        if not upload_url:
            raise TranscriptionError("Failed to get upload URL from AssemblyAI")
        logger.debug("Upload successful: %s", upload_url)
        return upload_url

    async def _start(self, client: httpx.AsyncClient, upload_url: str) -> str:
        response = await client.post(
            f"{self.BASE_URL}/transcript",
            headers={**self._headers, "content-type": "application/json"},
            json={"audio_url": upload_url, "language_code": self.language},
        )
        if response.status_code != 200:
            raise TranscriptionError(f"API error {response.status_code}: {response.text}")

        transcript_id = response.json().get("id")
        if not transcript_id:
            raise TranscriptionError("Failed to start transcription")
        return transcript_id

    async def _poll(self, client: httpx.AsyncClient, transcript_id: str) -> TranscriptionResult:
        for attempt in range(self.poll_attempts):
            response = await client.get(
                f"{self.BASE_URL}/transcript/{transcript_id}", headers=self._headers
            )
            if response.status_code != 200:
                raise TranscriptionError(f"API error {response.status_code}: {response.text}")

            transcript = response.json()
            status = transcript.get("status")
            logger.debug("Transcript %s status: %s (attempt %d)", transcript_id, status, attempt + 1)

            if status == "completed":
                return TranscriptionResult(
                    text=transcript.get("text") or "",
                    confidence=transcript.get("confidence"),
                    status=status,
                    transcript_id=transcript_id,
                )
            if status == "error":
                raise TranscriptionError(transcript.get("error") or "Transcription failed")

            if attempt < self.poll_attempts - 1:
                await asyncio.sleep(self.poll_interval)

        raise TranscriptionTimeoutError("Transcription timed out")
