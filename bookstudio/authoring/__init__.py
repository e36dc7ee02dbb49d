"""
Authoring session: chapter list, autosave state machine, document metadata.
"""

from .autosave import AutosaveCoordinator, SaveOutcome, SaveResult, SaveState, SaveTrigger
from .chapter_store import ChapterStore
from .commands import MoveChapter, ReversibleCommand, run_optimistic
from .document import DocumentEditor

__all__ = [
    'AutosaveCoordinator',
    'ChapterStore',
    'DocumentEditor',
    'MoveChapter',
    'ReversibleCommand',
    'SaveOutcome',
    'SaveResult',
    'SaveState',
    'SaveTrigger',
    'run_optimistic',
]
