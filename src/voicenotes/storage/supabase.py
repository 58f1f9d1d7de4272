"""Brain dump rows in Supabase, through its PostgREST API."""

import logging
from typing import Any

import httpx

from voicenotes.config import settings
from voicenotes.storage.models import BrainDump, StoredBrainDump

logger = logging.getLogger(__name__)


class StorageError(Exception):
    """A Supabase request failed or was rejected."""

    def __init__(self, message: str, status: int = 500):
        super().__init__(message)
        self.status = status


class SupabaseStore:
    def __init__(
        self,
        url: str | None = None,
        key: str | None = None,
        table: str | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.url = (url or settings.supabase_url).rstrip("/")
        self.key = key or settings.supabase_key
        self.table = table or settings.supabase_table
        self._transport = transport
        self._client: httpx.AsyncClient | None = None

    @property
    def headers(self) -> dict[str, str]:
        return {
            "apikey": self.key,
            "Authorization": f"Bearer {self.key}",
            "Content-Type": "application/json",
        }

    async def _get_client(self) -> httpx.AsyncClient:
        if not self.url or not self.key:
            raise StorageError("Supabase credentials not configured")
        if self._client is None:
            self._client = httpx.AsyncClient(
                base_url=f"{self.url}/rest/v1",
                headers=self.headers,
                timeout=30.0,
                transport=self._transport,
            )
        return self._client

    async def close(self) -> None:
        if self._client:
            await self._client.aclose()
            self._client = None

    async def _request(
        self,
        method: str,
        params: dict[str, str] | None = None,
        json_data: Any = None,
        headers: dict[str, str] | None = None,
    ) -> httpx.Response:
        client = await self._get_client()
        try:
            response = await client.request(
                method, f"/{self.table}", params=params, json=json_data, headers=headers
            )
        except httpx.RequestError as e:
            raise StorageError(f"Database connection failed: {e}", status=503) from e

        if response.status_code >= 400:
            try:
                message = response.json().get("message", response.text)
            except ValueError:
                message = response.text
            logger.error("Supabase %s failed (%d): %s", method, response.status_code, message)
            raise StorageError(f"Database request failed: {message}", status=response.status_code)
        return response

    async def add_note(self, note: BrainDump) -> StoredBrainDump:
        """Insert a brain dump row and return it as stored."""
        if not note.name or not note.localid:
            raise StorageError(
                "Missing required fields: name and localid are required", status=400
            )

        payload = note.insert_payload()
        logger.debug("Supabase insert payload: %s", payload)
        response = await self._request(
            "POST",
            params={"select": "*"},
            json_data=[payload],
            headers={"Prefer": "return=representation"},
        )

        rows = response.json()
        if not rows:
            raise StorageError("No data returned from Supabase")
        stored = StoredBrainDump.model_validate(rows[0])
        logger.info("Created Supabase entry %s", stored.id)
        return stored

    async def delete_note(self, note_id: int | str) -> None:
        if not note_id:
            raise StorageError("Missing note id", status=400)
        await self._request("DELETE", params={"id": f"eq.{note_id}"})
        logger.info("Deleted Supabase entry %s", note_id)
