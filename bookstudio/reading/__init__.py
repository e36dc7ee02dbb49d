"""
Reading: resumable reader sessions and device-local display preferences.
"""

from .preferences import PreferencesStore, ReaderPreferences, ReadingWidth, Theme
from .session import ReaderPosition, ReaderSession, TocEntry

__all__ = [
    'PreferencesStore',
    'ReaderPosition',
    'ReaderPreferences',
    'ReaderSession',
    'ReadingWidth',
    'Theme',
    'TocEntry',
]
