"""In-memory status lookups."""

from collections.abc import Mapping


class StaticStatusLookup:
    """Status auto-probabilities from a fixed mapping."""

    def __init__(self, probabilities: Mapping[int, int] | None = None) -> None:
        """Initialize with a ``status_id -> percent`` mapping."""
        self._probabilities = dict(probabilities or {})

    async def auto_probability(self, status_id: int) -> int | None:
        """Return the mapped probability, if any."""
        return self._probabilities.get(status_id)


class NullStatusLookup:
    """Lookup that never overrides the caller's probability."""

    async def auto_probability(self, status_id: int) -> int | None:
        """Always None."""
        return None
