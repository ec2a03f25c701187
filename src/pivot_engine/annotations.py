"""Annotation store for hand-edited view insights.

Dashboards let users attach free-text insight notes to a view (a table or
chart, identified by a string). The engine does not use these; this module
only defines the key-value interface display code talks to, plus an
in-memory implementation.
"""

from __future__ import annotations

import logging
import threading
from typing import Protocol

log = logging.getLogger(__name__)


class AnnotationStore(Protocol):
    """Key-value store of insight text, keyed by view identifier."""

    def get(self, view_id: str, default: str | None = None) -> str | None: ...

    def set(self, view_id: str, text: str) -> None: ...

    def delete(self, view_id: str) -> None: ...

    def items(self) -> list[tuple[str, str]]: ...


class InMemoryAnnotationStore:
    """Thread-safe dict-backed `AnnotationStore`."""

    def __init__(self, initial: dict[str, str] | None = None) -> None:
        self._data: dict[str, str] = dict(initial or {})
        self._lock = threading.Lock()

    def get(self, view_id: str, default: str | None = None) -> str | None:
        with self._lock:
            return self._data.get(view_id, default)

    def set(self, view_id: str, text: str) -> None:
        """Store `text` for `view_id`; blank text removes the annotation.

        Raises:
            ValueError: if `view_id` is empty.
        """
        if not view_id:
            raise ValueError("view_id must be a non-empty string")
        with self._lock:
            if text.strip():
                self._data[view_id] = text
            else:
                self._data.pop(view_id, None)
        log.debug("Annotation updated for view %s", view_id)

    def delete(self, view_id: str) -> None:
        with self._lock:
            self._data.pop(view_id, None)

    def items(self) -> list[tuple[str, str]]:
        with self._lock:
            return sorted(self._data.items())
