"""Session storage backends: in-memory and file-based."""

from sessionkeeper.session.storage.base import SessionStorage as SessionStorage
from sessionkeeper.session.storage.factory import create_storage as create_storage
from sessionkeeper.session.storage.file import FileStorage as FileStorage
from sessionkeeper.session.storage.memory import MemoryStorage as MemoryStorage

__all__ = ["FileStorage", "MemoryStorage", "SessionStorage", "create_storage"]
