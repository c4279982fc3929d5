"""Database utilities for the content repository."""

from .models import Article, Base, JobRun, JobStage, JobStatus, Notification  # noqa: F401
from .session import get_engine, get_sessionmaker, session_scope  # noqa: F401

__all__ = [
    "Article",
    "Base",
    "JobRun",
    "JobStage",
    "JobStatus",
    "Notification",
    "get_engine",
    "get_sessionmaker",
    "session_scope",
]
