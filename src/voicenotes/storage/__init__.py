from voicenotes.storage.models import BrainDump, StoredBrainDump
from voicenotes.storage.supabase import StorageError, SupabaseStore

__all__ = [
    "BrainDump",
    "StoredBrainDump",
    "StorageError",
    "SupabaseStore",
]
