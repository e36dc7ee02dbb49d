#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Pytest fixtures for integration tests.

Provides:
- clock: Adjustable clock shared with the repository
- repository: Fresh in-memory BookRepository
- app: Reference service without rate limiting
- api: FastAPI TestClient
- auth: Authorization header factory
"""

import pytest
from datetime import datetime, timedelta, timezone
from pathlib import Path
import sys

# Add project root to path
PROJECT_ROOT = Path(__file__).parent.parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

from fastapi.testclient import TestClient

from api.main import create_app
from api.repository import BookRepository


class Clock:
    """Manually advanced clock"""

    def __init__(self):
        self.now = datetime(2024, 5, 1, 9, 0, tzinfo=timezone.utc)

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now += timedelta(**kwargs)


@pytest.fixture
def clock():
    return Clock()


@pytest.fixture
def repository(clock):
    return BookRepository(clock=clock, weekly_limit=2)


@pytest.fixture
def app(repository):
    return create_app(repository=repository, rate_limit_enabled=False)


@pytest.fixture
def api(app):
    """Create a test client."""
    return TestClient(app)


@pytest.fixture
def auth():
    def headers(user: str = "alice"):
        return {"Authorization": f"Bearer {user}"}
    return headers
