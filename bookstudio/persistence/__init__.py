"""
Persistence service access: the REST contract and its httpx client.
"""

from .base import PersistenceService
from .client import PersistenceClient

__all__ = [
    "PersistenceService",
    "PersistenceClient",
]
