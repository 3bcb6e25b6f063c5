"""Ordered, append-only collection of triples handed to the persistence boundary."""

from __future__ import annotations

import threading
from collections import Counter
from typing import Iterable

from src.graph.graph_types import RelationshipType, Triple


class TripleSink:
    """Collects per-file triple batches until they are flushed to the graph store.

    Safe for concurrent use: each `extend` call lands as one contiguous block, so the
    order of triples produced for a single file is preserved even when several
    workers append at the same time. Order across files is whatever order the
    batches arrive in.
    """

    def __init__(self):
        self._triples: list[Triple] = []
        self._lock = threading.Lock()

    def append(self, triple: Triple) -> None:
        with self._lock:
            self._triples.append(triple)

    def extend(self, batch: Iterable[Triple]) -> None:
        batch = list(batch)
        with self._lock:
            self._triples.extend(batch)

    def flush(self) -> list[Triple]:
        """Hand over everything collected so far and start empty."""
        with self._lock:
            triples, self._triples = self._triples, []
        return triples

    def counts(self) -> Counter[RelationshipType]:
        with self._lock:
            return Counter(triple.relationship_type for triple in self._triples)

    def __len__(self) -> int:
        with self._lock:
            return len(self._triples)
