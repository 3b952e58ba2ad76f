"""Persistence and file-exchange collaborators."""

from .service import ImportResult, StorageService
from .store import CourseStore, InMemoryCourseStore, SqliteCourseStore
from .transfer import FileTransfer, suggest_filename

__all__ = [
    "CourseStore",
    "FileTransfer",
    "ImportResult",
    "InMemoryCourseStore",
    "SqliteCourseStore",
    "StorageService",
    "suggest_filename",
]
