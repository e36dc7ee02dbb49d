#!/usr/bin/env python3
# -*- coding: utf-8 -*-

"""
Settings - Centralized configuration management
"""

from pathlib import Path
from typing import Optional
from pydantic_settings import BaseSettings, SettingsConfigDict

from .constants import (
    API_BASE_URL,
    API_TIMEOUT_SECONDS,
    API_MAX_RETRIES,
    API_RETRY_DELAY,
    AUTOSAVE_INTERVAL_SECONDS,
    DEFAULT_DEVICE_ID,
    PREFERENCES_FILE,
    SERVER_HOST,
    SERVER_PORT,
)


# Base directory
BASE_DIR = Path(__file__).resolve().parent.parent


class Settings(BaseSettings):
    """Application settings"""

    # ========== Persistence Service ==========
    api_base_url: str = API_BASE_URL
    api_token: Optional[str] = None  # Bearer token of the signed-in user

    # ========== Transport ==========
    request_timeout: float = API_TIMEOUT_SECONDS
    max_retries: int = API_MAX_RETRIES
    retry_delay: float = API_RETRY_DELAY

    # ========== Authoring ==========
    autosave_interval_seconds: float = AUTOSAVE_INTERVAL_SECONDS

    # ========== Reader ==========
    device_id: str = DEFAULT_DEVICE_ID  # Preferences are scoped per device

    # ========== Reference server ==========
    server_host: str = SERVER_HOST
    server_port: int = SERVER_PORT

    # ========== Directories ==========
    data_dir: Path = BASE_DIR / "data"
    preferences_file: Path = BASE_DIR / PREFERENCES_FILE

    model_config = SettingsConfigDict(
        env_file=str(BASE_DIR / ".env"),
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",  # Allow extra fields from .env that aren't defined in model
    )

    def __init__(self, **kwargs):
        super().__init__(**kwargs)
        self.data_dir.mkdir(exist_ok=True, parents=True)

    def print_config(self):
        """Print configuration summary"""
        print("\n" + "=" * 70)
        print("CONFIGURATION")
        print("=" * 70)
        print(f"API base URL:    {self.api_base_url}")
        print(f"Authenticated:   {'yes' if self.api_token else 'no'}")
        print(f"Timeout:         {self.request_timeout}s")
        print(f"Max retries:     {self.max_retries}")
        print(f"Autosave every:  {self.autosave_interval_seconds}s")
        print(f"Device:          {self.device_id}")
        print(f"Preferences:     {self.preferences_file}")
        print("=" * 70 + "\n")


# Global settings instance
settings = Settings()
