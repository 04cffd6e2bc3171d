"""First-seen-wins accumulation of discovered dependencies."""

import logging
from typing import Iterable

from sbom_inspector.models import DependencyRecord

logger = logging.getLogger(__name__)


class DependencyRegistry:
    """Collects records across discovery phases, one per case-insensitive name.

    A record whose key is already present is dropped, so provenance always
    belongs to the phase that reported the name first. Insertion order is kept.
    """

    def __init__(self) -> None:
        self._records: dict[str, DependencyRecord] = {}

    def add(self, records: Iterable[DependencyRecord]) -> int:
        """Add new records; returns how many were actually kept."""
        added = 0
        for record in records:
            key = record.key
            if not key or key in self._records:
                continue
            self._records[key] = record
            added += 1
        logger.debug("Registry accepted %d new record(s), %d total", added, len(self._records))
        return added

    def names(self) -> list[str]:
        return [r.name for r in self._records.values()]

    def snapshot(self) -> list[DependencyRecord]:
        return list(self._records.values())

    def __contains__(self, name: str) -> bool:
        return name.strip().lower() in self._records

    def __len__(self) -> int:
        return len(self._records)
