"""Sandbox-recognizable identifier allocation."""

import re
import threading


RESOURCE_TAGS: dict[str, str] = {
    "charge": "ch",
    "customer": "cus",
    "card": "card",
    "token": "tok",
    "balance_transaction": "txn",
}


class IdAllocator:
    """Hands out `<prefix><tag>_<n>` ids with a strictly increasing counter per type."""

    def __init__(self, prefix: str = "test_") -> None:
        self.prefix = prefix
        self._lock = threading.Lock()
        self._counters: dict[str, int] = {}

    def tag_for(self, resource_type: str) -> str:
        return RESOURCE_TAGS.get(resource_type, resource_type)

    def next_id(self, resource_type: str) -> str:
        with self._lock:
            counter = self._counters.get(resource_type, 0) + 1
            self._counters[resource_type] = counter
        return f"{self.prefix}{self.tag_for(resource_type)}_{counter}"

    def matches(self, resource_type: str, value: str) -> bool:
        """Return True when `value` has the id shape allocated for `resource_type`."""

        pattern = rf"{re.escape(self.prefix)}{re.escape(self.tag_for(resource_type))}_\d+"
        return re.fullmatch(pattern, value) is not None

    def reset(self) -> None:
        with self._lock:
            self._counters.clear()
