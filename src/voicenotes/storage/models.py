from datetime import UTC, datetime

from pydantic import BaseModel, Field

from voicenotes.services.analysis import AnalysisResult, Priority


class BrainDump(BaseModel):
    """A row of the brain dump table."""

    id: int | str | None = None
    created_at: datetime | None = None
    name: str = ""
    localid: str = ""
    due_date: str | None = None
    status: str | None = None
    summary: str | None = None
    priority: Priority | None = None
    category: str | None = None

    @classmethod
    def from_analysis(cls, analysis: AnalysisResult, localid: str) -> "BrainDump":
        return cls(
            name=analysis.title,
            localid=localid,
            due_date=analysis.due_date,
            summary=analysis.summary or None,
            priority=analysis.priority,
            category=analysis.categories[0].value,
        )

    def insert_payload(self) -> dict:
        return {
            "name": self.name,
            "due_date": self.due_date,
            "status": self.status or "active",
            "localid": self.localid,
            "summary": self.summary,
            "priority": self.priority.value if self.priority else None,
            "category": self.category,
            "created_at": (self.created_at or datetime.now(UTC)).isoformat(),
        }


class StoredBrainDump(BrainDump):
    id: int | str
    created_at: datetime = Field(default_factory=lambda: datetime.now(UTC))
