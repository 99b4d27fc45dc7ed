"""Status dictionary protocol for pluggable lookup backends."""

from typing import Protocol, runtime_checkable


@runtime_checkable
class StatusLookup(Protocol):
    """Read-only access to the project status dictionary."""

    async def auto_probability(self, status_id: int) -> int | None:
        """Probability forced by this status, or None to keep the caller's value."""
        ...
