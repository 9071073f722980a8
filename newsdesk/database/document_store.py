"""
NewsDesk Document Store
=======================

JSON document persistence with whole-collection transactions. Each document
is a flat JSON list of records; every load-modify-save cycle runs under a
per-document lock and writes atomically through a temporary file.
"""

import json
import logging
import os
import tempfile
import threading
from contextlib import contextmanager
from pathlib import Path
from typing import Any, Dict, Generator, List, Optional

from ..utils.exceptions import StorageError, ErrorCode

logger = logging.getLogger(__name__)


class JsonDocumentStore:
    """Thread-safe store for one JSON list document."""

    def __init__(self, path: str):
        """Initialize document store.

        Args:
            path: Path to the JSON document
        """
        self.path = Path(path)
        self.lock = threading.RLock()

    def ensure_exists(self) -> bool:
        """Create the parent directory and an empty document if missing.

        Returns:
            True if the document was created
        """
        with self.lock:
            if self.path.exists():
                return False
            self._write([])
            logger.info(f"Initialized empty document {self.path}")
            return True

    def load(self) -> List[Dict[str, Any]]:
        """Load all records from the document.

        A missing document is an empty collection.

        Raises:
            StorageError: If the document is unreadable or not a JSON list
        """
        with self.lock:
            return self._read()

    def save(self, records: List[Dict[str, Any]]) -> None:
        """Replace the document contents with the given records.

        Raises:
            StorageError: If the document cannot be written
        """
        with self.lock:
            self._write(records)

    @contextmanager
    def transaction(self) -> Generator[List[Dict[str, Any]], None, None]:
        """Load-modify-save cycle under the document lock.

        Usage:
            with store.transaction() as records:
                records.append({...})
                # Saved on success, discarded on exception
        """
        with self.lock:
            records = self._read()
            try:
                yield records
            except Exception as e:
                logger.error(f"Transaction on {self.path} discarded due to error: {e}")
                raise
            self._write(records)

    def _read(self) -> List[Dict[str, Any]]:
        if not self.path.exists():
            return []

        try:
            with open(self.path, 'r', encoding='utf-8') as f:
                content = f.read()
        except OSError as e:
            raise StorageError(
                f"Failed to read {self.path}: {e}",
                path=str(self.path),
                error_code=ErrorCode.STORAGE_READ
            ) from e

        if not content.strip():
            return []

        try:
            data = json.loads(content)
        except json.JSONDecodeError as e:
            raise StorageError(
                f"Corrupt document {self.path}: {e}",
                path=str(self.path),
                error_code=ErrorCode.STORAGE_CORRUPTION
            ) from e

        if not isinstance(data, list):
            raise StorageError(
                f"Document {self.path} must contain a JSON list, got {type(data).__name__}",
                path=str(self.path),
                error_code=ErrorCode.STORAGE_CORRUPTION
            )

        return data

    def _write(self, records: List[Dict[str, Any]]) -> None:
        tmp_path: Optional[str] = None
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_path = tempfile.mkstemp(
                dir=self.path.parent, prefix=f".{self.path.name}.", suffix=".tmp"
            )
            with os.fdopen(fd, 'w', encoding='utf-8') as f:
                json.dump(records, f, ensure_ascii=False, indent=2, default=str)
            os.replace(tmp_path, self.path)
            tmp_path = None
        except (OSError, TypeError, ValueError) as e:
            raise StorageError(
                f"Failed to write {self.path}: {e}",
                path=str(self.path),
                error_code=ErrorCode.STORAGE_WRITE
            ) from e
        finally:
            if tmp_path and os.path.exists(tmp_path):
                os.unlink(tmp_path)


# Stores are shared per path so every repository sees the same lock
_stores: Dict[str, JsonDocumentStore] = {}
_stores_lock = threading.Lock()


def get_document_store(path: str) -> JsonDocumentStore:
    """Get the shared document store for a path.

    Args:
        path: Path to the JSON document

    Returns:
        Document store instance
    """
    key = str(Path(path).resolve())
    with _stores_lock:
        store = _stores.get(key)
        if store is None:
            store = JsonDocumentStore(path)
            _stores[key] = store
        return store


def init_data_dir(feeds_path: str, articles_path: str) -> Dict[str, bool]:
    """Create the data directory and empty feed/article documents.

    Returns:
        Mapping of document path to whether it was newly created
    """
    return {
        str(path): get_document_store(str(path)).ensure_exists()
        for path in (feeds_path, articles_path)
    }
