"""In-memory object store keyed by resource type, then id.

Every collection keeps insertion order and has its own re-entrant lock. Writers
hold the lock of each collection they touch; readers take snapshots under the
lock so they never observe a half-inserted record.
"""

import itertools
import threading
from contextlib import ExitStack, contextmanager
from dataclasses import dataclass
from typing import Any, Iterator

from mockpay.common.errors import ConcurrentUpdateError


@dataclass
class StoredRecord:
    """Envelope around one resource owned by the store."""

    resource_type: str
    id: str
    sequence: int
    resource: Any
    version: int = 0


class ObjectStore:
    def __init__(self) -> None:
        self._collections: dict[str, dict[str, StoredRecord]] = {}
        self._locks: dict[str, threading.RLock] = {}
        self._guard = threading.Lock()
        self._sequence = itertools.count(1)

    def lock(self, resource_type: str) -> threading.RLock:
        with self._guard:
            if resource_type not in self._locks:
                self._locks[resource_type] = threading.RLock()
                self._collections[resource_type] = {}
            return self._locks[resource_type]

    @contextmanager
    def locked(self, *resource_types: str) -> Iterator[None]:
        """Hold the locks of several collections, acquired in a fixed order."""

        with ExitStack() as stack:
            for resource_type in sorted(set(resource_types)):
                stack.enter_context(self.lock(resource_type))
            yield

    def insert(self, resource_type: str, resource: Any) -> StoredRecord:
        with self.lock(resource_type):
            collection = self._collections[resource_type]
            if resource.id in collection:
                raise ValueError(f"duplicate {resource_type} id {resource.id}")
            record = StoredRecord(
                resource_type=resource_type,
                id=resource.id,
                sequence=next(self._sequence),
                resource=resource,
            )
            collection[resource.id] = record
            return record

    def record(self, resource_type: str, resource_id: str) -> StoredRecord | None:
        with self.lock(resource_type):
            return self._collections[resource_type].get(resource_id)

    def get(self, resource_type: str, resource_id: str) -> Any | None:
        record = self.record(resource_type, resource_id)
        return record.resource if record else None

    def snapshot(self, resource_type: str) -> list[Any]:
        """Return the collection's resources in creation order."""

        with self.lock(resource_type):
            records = list(self._collections[resource_type].values())
        return [record.resource for record in sorted(records, key=lambda r: r.sequence)]

    def all(self, resource_type: str) -> dict[str, Any]:
        return {resource.id: resource for resource in self.snapshot(resource_type)}

    def compare_and_set(
        self, resource_type: str, resource_id: str, expected_version: int, changes: dict[str, Any]
    ) -> StoredRecord:
        """Apply `changes` in order only if the record is still at `expected_version`."""

        with self.lock(resource_type):
            record = self._collections[resource_type].get(resource_id)
            if record is None or record.version != expected_version:
                raise ConcurrentUpdateError(
                    f"optimistic concurrency conflict for {resource_type} {resource_id} "
                    f"(expected version {expected_version})"
                )
            for field, value in changes.items():
                setattr(record.resource, field, value)
            record.version += 1
            return record

    def reset(self) -> None:
        with self._guard:
            resource_types = list(self._collections)
        with self.locked(*resource_types):
            for resource_type in resource_types:
                self._collections[resource_type].clear()
            self._sequence = itertools.count(1)
