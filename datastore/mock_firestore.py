"""In-process stand-in for a hierarchical document database.

Documents are addressed by slash-separated paths that alternate collection
and document ids (``ruido/setor-a/datas/2025-01-01``). Writes go through a
:class:`WriteBatch` and are applied all-or-nothing.
"""

from __future__ import annotations

import copy
import json
import logging
from functools import lru_cache
from pathlib import Path
from threading import Lock
from typing import Any, Dict, List, Optional, Tuple

from settings import get_settings

logger = logging.getLogger(__name__)

Document = Dict[str, Any]


class StoreError(RuntimeError):
    """Raised when the document store cannot complete an operation."""


def document_path(*segments: str) -> str:
    """Join path segments, rejecting empty ids and ids containing ``/``."""
    for segment in segments:
        if not isinstance(segment, str) or not segment or "/" in segment:
            raise ValueError(f"Invalid path segment: {segment!r}")
    return "/".join(segments)


def _merge_fields(target: Document, incoming: Document) -> None:
    for key, value in incoming.items():
        current = target.get(key)
        if isinstance(value, dict) and isinstance(current, dict):
            _merge_fields(current, value)
        else:
            target[key] = copy.deepcopy(value)


class WriteBatch:
    """Collects writes and applies them together on :meth:`commit`."""

    def __init__(self, store: "MockFirestore") -> None:
        self._store = store
        self._writes: List[Tuple[str, str, Document]] = []
        self._committed = False

    def __len__(self) -> int:
        return len(self._writes)

    def set(self, path: str, data: Document, merge: bool = False) -> "WriteBatch":
        self._writes.append(("merge" if merge else "set", path, copy.deepcopy(data)))
        return self

    def set_missing(self, path: str, data: Document) -> "WriteBatch":
        """Create the document if needed and fill only the fields it lacks."""
        self._writes.append(("missing", path, copy.deepcopy(data)))
        return self

    def commit(self) -> None:
        if self._committed:
            raise StoreError("Write batch has already been committed.")
        self._store._apply(self._writes)
        self._committed = True


class MockFirestore:

    def __init__(self, persistence_path: Optional[Path] = None) -> None:
        self._documents: Dict[str, Document] = {}
        self.persistence_path = persistence_path
        self._lock = Lock()
        if persistence_path:
            persistence_path.parent.mkdir(parents=True, exist_ok=True)
            self._load_from_disk()

    def batch(self) -> WriteBatch:
        return WriteBatch(self)

    def set_document(self, path: str, data: Document, merge: bool = False) -> None:
        self.batch().set(path, data, merge=merge).commit()

    def get_document(self, path: str) -> Optional[Document]:
        with self._lock:
            document = self._documents.get(path)
            if document is None:
                return None
            return copy.deepcopy(document)

    def list_documents(self, collection_path: str) -> List[Tuple[str, Document]]:
        """Return ``(id, fields)`` pairs of a collection, ordered by id."""

        prefix = f"{collection_path}/"
        with self._lock:
            found = [
                (path[len(prefix):], copy.deepcopy(fields))
                for path, fields in self._documents.items()
                if path.startswith(prefix) and "/" not in path[len(prefix):]
            ]
        return sorted(found, key=lambda item: item[0])

    def _apply(self, writes: List[Tuple[str, str, Document]]) -> None:
        with self._lock:
            staged = copy.deepcopy(self._documents)
            for mode, path, data in writes:
                if mode == "set":
                    staged[path] = copy.deepcopy(data)
                    continue
                target = staged.setdefault(path, {})
                if mode == "merge":
                    _merge_fields(target, data)
                else:
                    for key, value in data.items():
                        target.setdefault(key, copy.deepcopy(value))
            self._persist(staged)
            self._documents = staged

    def _persist(self, documents: Dict[str, Document]) -> None:
        if not self.persistence_path:
            return
        try:
            self.persistence_path.write_text(json.dumps(documents, indent=2))
        except (OSError, TypeError, ValueError) as exc:
            raise StoreError(f"Failed to persist documents to {self.persistence_path}") from exc

    def _load_from_disk(self) -> None:
        if not self.persistence_path or not self.persistence_path.exists():
            return

        try:
            raw = self.persistence_path.read_text() or "{}"
            data = json.loads(raw)
        except (OSError, json.JSONDecodeError):
            logger.warning(
                "Ignoring unreadable store file",
                extra={"path": str(self.persistence_path)},
            )
            data = {}

        if isinstance(data, dict):
            self._documents = {
                path: fields for path, fields in data.items() if isinstance(fields, dict)
            }


@lru_cache
def build_default_store(path: Optional[str] = None) -> MockFirestore:
    settings = get_settings()
    store_path = settings.store_persistence_path if path is None else path
    persistence = Path(store_path) if store_path else None
    return MockFirestore(persistence_path=persistence)
