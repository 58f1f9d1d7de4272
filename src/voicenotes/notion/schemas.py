from datetime import UTC, datetime

from pydantic import BaseModel, ConfigDict, Field

from voicenotes.services.analysis import Priority


class NotionNote(BaseModel):
    """A captured voice note as stored in the Notion notes database."""

    model_config = ConfigDict(populate_by_name=True)

    timestamp: datetime = Field(default_factory=lambda: datetime.now(UTC))
    transcription: str
    local_storage_key: str = Field(alias="localStorageKey")
    category: str | None = None
    priority: Priority | None = None
    due_date: str | None = Field(default=None, alias="dueDate")
    summary: str | None = None

    @property
    def page_title(self) -> str:
        return self.timestamp.strftime("%Y-%m-%d %H:%M:%S")
