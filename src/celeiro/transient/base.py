"""Abstract key/value store interface."""

from abc import ABC, abstractmethod
from typing import Optional


class KeyValueStore(ABC):
    """Abstract ephemeral store used for magic codes and sessions.

    Values are strings (JSON documents in practice). A miss is ``None``,
    never an error.
    """

    @abstractmethod
    def get(self, key: str) -> Optional[str]:
        """Get the value at key, or None if absent or expired."""
        pass

    @abstractmethod
    def set(self, key: str, value: str) -> None:
        """Store value at key without expiry."""
        pass

    @abstractmethod
    def set_with_ttl(self, key: str, value: str, ttl_seconds: int) -> None:
        """Store value at key, expiring after ttl_seconds."""
        pass

    @abstractmethod
    def delete(self, key: str) -> None:
        """Delete key. Deleting a missing key succeeds."""
        pass

    @abstractmethod
    def exists(self, key: str) -> bool:
        """Check whether key holds a live value."""
        pass

    @abstractmethod
    def ttl(self, key: str) -> Optional[int]:
        """Remaining lifetime in seconds; None when absent or without expiry."""
        pass

    @abstractmethod
    def close(self) -> None:
        """Release connections. Further calls raise UpstreamError."""
        pass
