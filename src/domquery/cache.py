"""Memoization of compiled selectors."""

from __future__ import annotations

import threading


class XPathCache:
    """Maps selector strings to their compiled XPath.

    Entries are never invalidated: compilation is a pure function of the
    selector text. A lock guards writes and reads so one instance can be
    shared between threads; a lost race only means an identical value is
    computed twice.
    """

    __slots__ = ("_entries", "_lock")

    _entries: dict[str, str]
    _lock: threading.Lock

    def __init__(self) -> None:
        self._entries = {}
        self._lock = threading.Lock()

    def get(self, selector: str) -> str | None:
        with self._lock:
            return self._entries.get(selector)

    def set(self, selector: str, xpath: str) -> None:
        with self._lock:
            self._entries.setdefault(selector, xpath)

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def __contains__(self, selector: object) -> bool:
        with self._lock:
            return selector in self._entries

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def __repr__(self) -> str:
        return f"XPathCache({len(self)} entries)"
