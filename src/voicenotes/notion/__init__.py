from voicenotes.notion.client import NotionClient, NotionError
from voicenotes.notion.schemas import NotionNote

__all__ = [
    "NotionClient",
    "NotionError",
    "NotionNote",
]
