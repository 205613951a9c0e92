"""Storage abstraction layer."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import IO


class AbstractStorage(ABC):
    """Interface for avatar storage backends."""

    @abstractmethod
    def store(self, file_obj: IO[bytes], desired_name: str) -> str:
        """Persist a file under ``desired_name`` and return the stored path."""

    @abstractmethod
    def exists(self, path: str) -> bool:
        """Return whether the given stored path exists."""
