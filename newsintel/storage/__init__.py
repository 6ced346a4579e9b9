"""
Storage module.

Handles persistence and retrieval via Supabase or the in-memory backend.
"""

from typing import Optional

from newsintel.config import is_supabase_configured
from newsintel.storage.base import Storage, StorageError
from newsintel.storage.memory import MemoryStorage
from newsintel.storage.supabase_store import SupabaseStorage

_default_storage: Optional[Storage] = None


def get_storage() -> Storage:
    """
    Get the configured storage backend (shared per process).

    Supabase when SUPABASE_URL and a key are set, otherwise in-memory.
    """
    global _default_storage
    if _default_storage is None:
        if is_supabase_configured():
            _default_storage = SupabaseStorage()
        else:
            _default_storage = MemoryStorage()
    return _default_storage


def set_storage(storage: Optional[Storage]) -> None:
    """Override (or reset with None) the shared storage backend."""
    global _default_storage
    _default_storage = storage


__all__ = [
    "Storage",
    "StorageError",
    "MemoryStorage",
    "SupabaseStorage",
    "get_storage",
    "set_storage",
]
