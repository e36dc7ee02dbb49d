"""
Book Studio - compose multi-chapter books, publish them, read them.

Packages:
    authoring: chapter list, autosave state machine, document metadata
    publishing: readiness gates and the publish wizard
    reading: resumable reader sessions and display preferences
    persistence: REST client for the persistence service
"""

__version__ = "1.0.0"

from .errors import (
    AuthenticationError,
    BookStudioError,
    MinimumChapterError,
    PersistenceError,
    ReaderError,
    ResourceNotFoundError,
    ServerRejectionError,
    ValidationError,
)
from .models import (
    Chapter,
    Document,
    DraftChapter,
    PersistedChapter,
    PublicationRequest,
    ReadingProgress,
    Tag,
    progress_percent,
)
from .pagination import ChapterMetrics, compute_metrics

__all__ = [
    'AuthenticationError',
    'BookStudioError',
    'Chapter',
    'ChapterMetrics',
    'Document',
    'DraftChapter',
    'MinimumChapterError',
    'PersistedChapter',
    'PersistenceError',
    'PublicationRequest',
    'ReaderError',
    'ReadingProgress',
    'ResourceNotFoundError',
    'ServerRejectionError',
    'Tag',
    'ValidationError',
    'compute_metrics',
    'progress_percent',
]
