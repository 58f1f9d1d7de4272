import asyncio
import logging
from typing import Any

import httpx

from voicenotes.config import settings
from voicenotes.notion.schemas import NotionNote

logger = logging.getLogger(__name__)

NOTION_API_URL = "https://api.notion.com/v1"
NOTION_VERSION = "2022-06-28"


class NotionError(Exception):
    """A Notion API request failed."""

    def __init__(self, message: str, status: int = 500, code: str = "UNKNOWN_ERROR"):
        super().__init__(message)
        self.message = message
        self.status = status
        self.code = code

    @classmethod
    def from_response(cls, response: httpx.Response) -> "NotionError":
        try:
            body = response.json()
        except ValueError:
            body = {}
        return cls(
            body.get("message") or response.text or f"Notion API error {response.status_code}",
            status=response.status_code,
            code=body.get("code", "UNKNOWN_ERROR"),
        )


def _rich_text(content: str) -> dict[str, Any]:
    return {"rich_text": [{"text": {"content": content}}]}


class NotionClient:
    def __init__(
        self,
        api_key: str | None = None,
        database_id: str | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.api_key = api_key or settings.notion_api_key
        self.database_id = database_id or settings.notion_database_id
        self._transport = transport
        self._client: httpx.AsyncClient | None = None

    @property
    def headers(self) -> dict[str, str]:
        return {
            "Authorization": f"Bearer {self.api_key}",
            "Notion-Version": NOTION_VERSION,
            "Content-Type": "application/json",
        }

    async def _get_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(
                base_url=NOTION_API_URL,
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
        path: str,
        json_data: dict[str, Any] | None = None,
        retries: int = 3,
    ) -> dict[str, Any]:
        client = await self._get_client()
        last_error: Exception | None = None

        for attempt in range(retries):
            try:
                response = await client.request(method, path, json=json_data)
            except httpx.RequestError as e:
                last_error = e
                logger.warning("Notion request %s %s failed: %s", method, path, e)
                await asyncio.sleep(2**attempt)
                continue

            if response.status_code == 429:
                retry_after = int(response.headers.get("Retry-After", "1"))
                last_error = NotionError.from_response(response)
                await asyncio.sleep(retry_after)
                continue

            if response.status_code >= 500:
                last_error = NotionError.from_response(response)
                await asyncio.sleep(2**attempt)
                continue

            if response.status_code >= 400:
                raise NotionError.from_response(response)

            return response.json()

        if isinstance(last_error, NotionError):
            raise last_error
        raise NotionError(f"Notion request failed: {last_error}", status=503, code="UNAVAILABLE")

    def note_properties(self, note: NotionNote) -> dict[str, Any]:
        properties: dict[str, Any] = {
            "Name": {"title": [{"text": {"content": note.page_title}}]},
            "Transcription": _rich_text(note.transcription),
            "LocalStorageKey": _rich_text(note.local_storage_key),
            "Timestamp": {"date": {"start": note.timestamp.isoformat()}},
        }
        if note.category:
            properties["Category"] = {"select": {"name": note.category}}
        if note.priority:
            properties["Priority"] = {"select": {"name": note.priority.value}}
        if note.due_date:
            properties["Due Date"] = {"date": {"start": note.due_date}}
        if note.summary:
            properties["Summary"] = _rich_text(note.summary)
        return properties

    async def create_note(self, note: NotionNote) -> str:
        """Create a page for a voice note and return its page id."""
        if not self.database_id:
            raise NotionError("Notion database id not configured", code="MISSING_DATABASE_ID")

        logger.info("Adding note %s to Notion database %s", note.local_storage_key, self.database_id)
        result = await self._request(
            "POST",
            "/pages",
            {
                "parent": {"database_id": self.database_id},
                "properties": self.note_properties(note),
            },
        )
        logger.info("Created Notion page %s", result["id"])
        return result["id"]
