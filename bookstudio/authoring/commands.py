"""
Reversible commands for optimistic updates.

A local state transition is applied immediately, the remote call is
issued, and if the call fails the exact inverse transition is applied.
No re-fetching is involved in the rollback.
"""

from abc import ABC, abstractmethod
from typing import Any, Awaitable, Callable

from config.logging_config import get_logger
from ..errors import PersistenceError

logger = get_logger(__name__)


class ReversibleCommand(ABC):
    """A local state change that knows its own inverse."""

    description: str = "command"

    @abstractmethod
    def apply(self) -> None:
        ...

    @abstractmethod
    def revert(self) -> None:
        ...


class MoveChapter(ReversibleCommand):
    """Move one chapter to a new position in a ChapterStore."""

    def __init__(self, store, from_index: int, to_index: int):
        self.store = store
        self.from_index = from_index
        self.to_index = to_index
        self.description = f"move chapter {from_index + 1} to position {to_index + 1}"

    def apply(self) -> None:
        self.store._move_local(self.from_index, self.to_index)

    def revert(self) -> None:
        self.store._move_local(self.to_index, self.from_index)


async def run_optimistic(
    command: ReversibleCommand,
    remote_call: Callable[[], Awaitable[Any]]
) -> Any:
    """
    Apply a command locally, then confirm it remotely.

    Args:
        command: The local transition
        remote_call: Zero-argument coroutine factory performing the remote write

    Returns:
        Whatever remote_call returns

    Raises:
        PersistenceError: after the command has been reverted
    """
    command.apply()
    try:
        return await remote_call()
    except PersistenceError as e:
        logger.warning(f"Rolling back {command.description}: {e.message}")
        command.revert()
        raise
