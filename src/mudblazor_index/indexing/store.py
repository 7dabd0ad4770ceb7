"""Holder for the active index snapshot."""

import logging
import threading
from typing import Optional

from mudblazor_index.errors import NotIndexedError
from mudblazor_index.indexing.models import IndexSnapshot

logger = logging.getLogger(__name__)


class SnapshotStore:
    """Publishes immutable snapshots by reference swap.

    Readers take ``current`` without locking; they see either the previous or
    the next complete snapshot. The lock only serialises publishers so that
    generation numbers stay monotonic.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._current: Optional[IndexSnapshot] = None
        self._generation = 0

    @property
    def current(self) -> Optional[IndexSnapshot]:
        return self._current

    @property
    def generation(self) -> int:
        return self._generation

    def next_generation(self) -> int:
        return self._generation + 1

    def require(self) -> IndexSnapshot:
        snapshot = self._current
        if snapshot is None:
            raise NotIndexedError()
        return snapshot

    def publish(self, snapshot: IndexSnapshot) -> IndexSnapshot:
        with self._lock:
            if snapshot.generation <= self._generation:
                # A newer build was published while this one ran
                snapshot = snapshot.model_copy(update={"generation": self._generation + 1})
            self._current = snapshot
            self._generation = snapshot.generation
        logger.debug(
            "Published snapshot generation %d (%d components)",
            snapshot.generation, len(snapshot.components),
        )
        return snapshot
