from .base import RecordStore
from .sqlite_repo import SqliteRepository
from .rest_repo import RestRepository

__all__ = ["RecordStore", "SqliteRepository", "RestRepository"]
