"""
Reader presentation preferences.

Display settings (font, spacing, theme, width) stored locally per device.
They never touch document state and are never sent to the server.
"""

import json
import math
from enum import Enum
from pathlib import Path
from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError as PydanticValidationError, field_validator

from config.constants import (
    DEFAULT_FONT_FAMILY,
    DEFAULT_FONT_SIZE,
    DEFAULT_LINE_HEIGHT,
    DEFAULT_THEME,
    DEFAULT_WIDTH,
    FONT_FAMILIES,
    FONT_SIZE_MAX,
    FONT_SIZE_MIN,
    FONT_SIZE_STEP,
    LINE_HEIGHT_MAX,
    LINE_HEIGHT_MIN,
    LINE_HEIGHT_STEP,
)
from config.settings import settings
from config.logging_config import get_logger
from ..errors import ValidationError

logger = get_logger(__name__)


class Theme(str, Enum):
    LIGHT = "light"
    SEPIA = "sepia"
    DARK = "dark"


class ReadingWidth(str, Enum):
    NARROW = "narrow"
    NORMAL = "normal"
    WIDE = "wide"


def _snap(value: float, minimum: float, step: float) -> float:
    """Round half-up to the nearest step above minimum"""
    # Rounded first so 1.9 -> 2.5 steps, not 2.4999999
    steps = math.floor(round((value - minimum) / step, 6) + 0.5)
    return minimum + steps * step


class ReaderPreferences(BaseModel):
    """Validated display settings; stored with camelCase keys"""

    model_config = ConfigDict(populate_by_name=True, use_enum_values=True, validate_default=True)

    font_size: int = Field(
        default=DEFAULT_FONT_SIZE, ge=FONT_SIZE_MIN, le=FONT_SIZE_MAX, alias="fontSize"
    )
    line_height: float = Field(
        default=DEFAULT_LINE_HEIGHT, ge=LINE_HEIGHT_MIN, le=LINE_HEIGHT_MAX, alias="lineHeight"
    )
    font_family: str = Field(default=DEFAULT_FONT_FAMILY, alias="fontFamily")
    theme: Theme = Field(default=Theme(DEFAULT_THEME))
    width: ReadingWidth = Field(default=ReadingWidth(DEFAULT_WIDTH))

    @field_validator("font_size", mode="before")
    @classmethod
    def snap_font_size(cls, value: Any) -> Any:
        if isinstance(value, (int, float)) and not isinstance(value, bool):
            return int(_snap(float(value), FONT_SIZE_MIN, FONT_SIZE_STEP))
        return value

    @field_validator("line_height", mode="before")
    @classmethod
    def snap_line_height(cls, value: Any) -> Any:
        if isinstance(value, (int, float)) and not isinstance(value, bool):
            return round(_snap(float(value), LINE_HEIGHT_MIN, LINE_HEIGHT_STEP), 1)
        return value

    @field_validator("font_family")
    @classmethod
    def known_font(cls, value: str) -> str:
        if value not in FONT_FAMILIES:
            raise ValueError(f"font family must be one of {', '.join(FONT_FAMILIES)}")
        return value

    def to_storage(self) -> Dict[str, Any]:
        return self.model_dump(by_alias=True)


class PreferencesStore:
    """
    Per-device key-value store for ReaderPreferences.

    Backed by a JSON file mapping device id -> preferences. With no path
    the store keeps preferences in memory only.

    Usage:
        store = PreferencesStore(Path("data/reader_preferences.json"), device_id="tablet")
        prefs = store.load()
        prefs = store.update(theme="dark", font_size=20)
    """

    def __init__(self, path: Optional[Path] = None, device_id: Optional[str] = None):
        self.path = Path(path) if path is not None else None
        self.device_id = device_id or settings.device_id
        self._memory: Dict[str, Dict[str, Any]] = {}

    @classmethod
    def default(cls) -> "PreferencesStore":
        """Store at the configured location for the configured device"""
        return cls(settings.preferences_file, settings.device_id)

    def _read_all(self) -> Dict[str, Dict[str, Any]]:
        if self.path is None:
            return dict(self._memory)
        if not self.path.exists():
            return {}
        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as e:
            logger.warning(f"Could not read preferences from {self.path}: {e}")
            return {}
        if not isinstance(data, dict):
            logger.warning(f"Ignoring malformed preferences file {self.path}")
            return {}
        return data

    def _write_all(self, data: Dict[str, Dict[str, Any]]) -> None:
        if self.path is None:
            self._memory = data
            return
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text(json.dumps(data, indent=2, ensure_ascii=False), encoding="utf-8")

    def load(self) -> ReaderPreferences:
        """Preferences for this device; defaults if missing or corrupt"""
        stored = self._read_all().get(self.device_id)
        if stored is None:
            return ReaderPreferences()
        try:
            return ReaderPreferences.model_validate(stored)
        except PydanticValidationError as e:
            logger.warning(f"Stored preferences for {self.device_id} are invalid, using defaults: {e}")
            return ReaderPreferences()

    def save(self, preferences: ReaderPreferences) -> ReaderPreferences:
        data = self._read_all()
        data[self.device_id] = preferences.to_storage()
        self._write_all(data)
        logger.debug(f"Saved reader preferences for device {self.device_id}")
        return preferences

    def update(self, **changes: Any) -> ReaderPreferences:
        """
        Change one or more settings and persist immediately.

        Keys may be given in snake_case (font_size) or camelCase (fontSize).

        Raises:
            ValidationError: a value is out of range or not allowed
        """
        aliases = {
            info.alias: name
            for name, info in ReaderPreferences.model_fields.items()
            if info.alias
        }
        changes = {aliases.get(key, key): value for key, value in changes.items()}
        merged = {**self.load().model_dump(), **changes}
        try:
            preferences = ReaderPreferences.model_validate(merged)
        except PydanticValidationError as e:
            first = e.errors()[0]
            field = str(first["loc"][0]) if first.get("loc") else None
            raise ValidationError(f"Invalid reader preference: {first['msg']}", field=field) from e
        return self.save(preferences)

    def reset(self) -> ReaderPreferences:
        """Restore the defaults for this device"""
        return self.save(ReaderPreferences())
