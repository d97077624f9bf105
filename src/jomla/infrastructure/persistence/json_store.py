"""Single-file JSON document store.

All collections live in one JSON file as ``{collection: {doc_id: doc}}``.
A transaction holds a process lock and an exclusive ``flock`` on a
sibling lock file, works on an in-memory copy and writes it back
atomically (temp file + ``os.replace``) when the outermost transaction
exits cleanly. An exception inside a transaction discards every write
made in it.
"""

from __future__ import annotations

import fcntl
import json
import logging
import os
import tempfile
import threading
from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path
from typing import Any

from jomla.application.boundary import GENERIC_MESSAGE
from jomla.domain.exceptions import InternalError

logger = logging.getLogger(__name__)

Documents = dict[str, dict[str, Any]]


class CorruptDocumentError(InternalError):
    """A stored document fails to decode into a valid entity.

    Callers only see the generic internal message; the reason stays in
    ``details`` and the log.
    """

    def __init__(self, collection: str, doc_id: str, reason: str) -> None:
        super().__init__(
            GENERIC_MESSAGE,
            details={"collection": collection, "doc_id": doc_id, "reason": reason},
        )


class JsonDocumentStore:

    def __init__(self, file_path: Path) -> None:
        self._file_path = Path(file_path)
        self._lock_path = self._file_path.with_name(f".{self._file_path.name}.lock")
        self._mutex = threading.RLock()
        self._local = threading.local()

    @property
    def file_path(self) -> Path:
        return self._file_path

    # --- Transactions ---------------------------------------------------------

    @contextmanager
    def transaction(self, write: bool = True) -> Iterator[dict[str, Documents]]:
        """Yield the whole database.

        Nested transactions on the same thread join the outer one; the file
        is rewritten once, when the outermost transaction exits, if any
        joined transaction asked to write.
        """
        with self._mutex:
            data = getattr(self._local, "data", None)
            if data is not None:
                self._local.dirty = self._local.dirty or write
                yield data
                return

            with self._file_lock():
                data = self._load()
                self._local.data = data
                self._local.dirty = write
                try:
                    yield data
                    if self._local.dirty:
                        self._persist(data)
                finally:
                    self._local.data = None
                    self._local.dirty = False

    def collection(self, name: str) -> Documents:
        """Return a copy of one collection, read under the lock."""
        with self.transaction(write=False) as data:
            return json.loads(json.dumps(data.get(name, {})))

    def document(self, name: str, doc_id: str) -> dict[str, Any] | None:
        with self.transaction(write=False) as data:
            doc = data.get(name, {}).get(doc_id)
            return json.loads(json.dumps(doc)) if doc is not None else None

    # --- File helpers ---------------------------------------------------------

    @contextmanager
    def _file_lock(self) -> Iterator[None]:
        self._lock_path.parent.mkdir(parents=True, exist_ok=True)
        with open(self._lock_path, "w") as lock_file:
            fcntl.flock(lock_file.fileno(), fcntl.LOCK_EX)
            try:
                yield
            finally:
                fcntl.flock(lock_file.fileno(), fcntl.LOCK_UN)

    def _load(self) -> dict[str, Documents]:
        if not self._file_path.exists():
            return {}
        with open(self._file_path, "r", encoding="utf-8") as f:
            return json.load(f)

    def _persist(self, data: dict[str, Documents]) -> None:
        self._file_path.parent.mkdir(parents=True, exist_ok=True)
        fd, temp_path = tempfile.mkstemp(
            dir=self._file_path.parent, prefix=f".{self._file_path.stem}_", suffix=".tmp"
        )
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(data, f, indent=2, sort_keys=True)
                f.write("\n")
            os.replace(temp_path, self._file_path)
        except Exception:
            try:
                os.unlink(temp_path)
            except OSError:
                logger.warning("Could not remove temp file %s", temp_path)
            raise
