"""
Bounded in-memory result cache for computed statistics.

Eviction is FIFO on insertion order: reading an entry does not refresh it.
Thread-safe so that category computations can run in parallel.
"""

import logging
import threading
from collections import OrderedDict
from typing import Any, Hashable, Optional, Sequence

from booking_stats.infrastructure.observability.metrics import cache_eviction_counter

KEY_SEPARATOR = ":"


def build_cache_key(scope: Any, kind: str, records: Sequence[Any], *parts: Any) -> str:
    """
    Key that changes whenever the input collection changes.

    Layout: "{scope}:{kind}:{parts...}:{len}:{first s_no}:{last s_no}:{fingerprint}".
    The fingerprint hashes every record, so equal length and boundary ids
    with different contents still produce distinct keys.
    """
    first = getattr(records[0], "s_no", None) if records else None
    last = getattr(records[-1], "s_no", None) if records else None
    fingerprint = hash(tuple(records)) & 0xFFFFFFFFFFFFFFFF
    fields = [str(scope), kind, *(str(p) for p in parts), str(len(records)), str(first), str(last), f"{fingerprint:x}"]
    return KEY_SEPARATOR.join(fields)


class ResultCache:
    """FIFO-bounded key/value store"""

    def __init__(self, max_entries: int = 20) -> None:
        if max_entries < 1:
            raise ValueError("max_entries must be at least 1")
        self.max_entries = max_entries
        self._entries: "OrderedDict[Hashable, Any]" = OrderedDict()
        self._lock = threading.Lock()

    def get(self, key: Hashable) -> Optional[Any]:
        with self._lock:
            return self._entries.get(key)

    def __contains__(self, key: Hashable) -> bool:
        with self._lock:
            return key in self._entries

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def keys(self) -> list:
        with self._lock:
            return list(self._entries.keys())

    def set(self, key: Hashable, value: Any) -> None:
        """Store value; overwriting keeps the original insertion position"""
        with self._lock:
            self._entries[key] = value
            while len(self._entries) > self.max_entries:
                evicted, _ = self._entries.popitem(last=False)
                cache_eviction_counter.inc()
                logging.debug("Evicted cache entry", extra={"cache_key": str(evicted)})

    def clear_scope(self, scope_prefix: Any) -> int:
        """Drop every entry whose key starts with "{scope_prefix}:"; returns the count"""
        prefix = f"{scope_prefix}{KEY_SEPARATOR}"
        with self._lock:
            doomed = [k for k in self._entries if isinstance(k, str) and k.startswith(prefix)]
            for key in doomed:
                del self._entries[key]
        logging.info("Cleared cache scope", extra={"scope": str(scope_prefix), "entries": len(doomed)})
        return len(doomed)

    def clear_all(self) -> None:
        with self._lock:
            self._entries.clear()
        logging.info("Statistics cache cleared")
