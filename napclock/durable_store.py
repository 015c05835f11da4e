"""
Durable Store - Key/Value Persistence for Timer State

JsonFileStore keeps every key in one small JSON document:
- Atomic replace on write (temp file + os.replace), so a kill mid-write
  leaves either the old or the new document, never a torn one
- fcntl lock file for cross-process single-writer discipline
- Transient OSError on write retried with backoff
- Corrupt or unreadable document treated as empty (logged)

MemoryStore is the in-process equivalent used by tests and dry runs.
"""

import copy
import fcntl
import json
import os
import tempfile
import threading
from contextlib import contextmanager
from pathlib import Path
from typing import Any, Dict, Optional

import config
from napclock.base_module import BaseModule
from napclock.retry_utils import retry_transient_errors

LOCK_FILE_SUFFIX = ".lock"


class JsonFileStore(BaseModule):
    """File-backed DurableStore."""

    def __init__(
        self,
        path: str = None,
        max_retries: int = None,
        retry_delay: float = None,
        debug: bool = False,
        verbose: bool = True,
    ):
        """
        Initialize file store.

        Args:
            path: JSON document path (default: config.NAPCLOCK_STATE_PATH)
            max_retries: Write retries on OSError (default: from config)
            retry_delay: Initial retry delay in seconds (default: from config)
            debug: Enable debug logging
        """
        super().__init__(__name__, debug=debug, verbose=verbose)
        self.path = Path(path or config.NAPCLOCK_STATE_PATH)
        self._lock_path = Path(str(self.path) + LOCK_FILE_SUFFIX)

        self._rlock = threading.RLock()
        self._lock_fd = None
        self._lock_depth = 0

        max_retries = max_retries if max_retries is not None else config.STORE_MAX_RETRIES
        retry_delay = retry_delay if retry_delay is not None else config.STORE_RETRY_DELAY
        self._write_document = retry_transient_errors(
            max_retries=max_retries,
            initial_delay=retry_delay,
        )(self._write_document_once)

    @contextmanager
    def transaction(self):
        """
        Hold the store exclusively (threads and processes) for a read-modify-write.

        Re-entrant within the owning thread; get/put/delete inside the block
        reuse the held lock.
        """
        with self._rlock:
            if self._lock_depth == 0:
                self._acquire_file_lock()
            self._lock_depth += 1
            try:
                yield self
            finally:
                self._lock_depth -= 1
                if self._lock_depth == 0:
                    self._release_file_lock()

    def get(self, key: str) -> Optional[Dict[str, Any]]:
        with self.transaction():
            value = self._read_document().get(key)
            return copy.deepcopy(value) if value is not None else None

    def put(self, key: str, value: Dict[str, Any]) -> None:
        with self.transaction():
            document = self._read_document()
            document[key] = value
            self._write_document(document)

    def delete(self, key: str) -> None:
        with self.transaction():
            document = self._read_document()
            if key not in document:
                return
            del document[key]
            self._write_document(document)

    def _acquire_file_lock(self):
        self.path.parent.mkdir(parents=True, exist_ok=True)
        try:
            self._lock_fd = open(self._lock_path, "w")
            fcntl.flock(self._lock_fd.fileno(), fcntl.LOCK_EX)
        except OSError as e:
            self.logger.warning(f"Could not acquire store lock {self._lock_path}: {e}")
            if self._lock_fd is not None:
                self._lock_fd.close()
            self._lock_fd = None

    def _release_file_lock(self):
        if self._lock_fd is None:
            return
        try:
            fcntl.flock(self._lock_fd.fileno(), fcntl.LOCK_UN)
        except OSError as e:
            self.logger.warning(f"Could not release store lock {self._lock_path}: {e}")
        finally:
            self._lock_fd.close()
            self._lock_fd = None

    def _read_document(self) -> Dict[str, Any]:
        if not self.path.exists():
            return {}
        try:
            with open(self.path, 'r', encoding='utf-8') as f:
                data = json.load(f)
        except (OSError, ValueError) as e:
            self.logger.warning(f"Unreadable state file {self.path}, treating as empty: {e}")
            return {}
        if not isinstance(data, dict):
            self.logger.warning(f"State file {self.path} is not an object, treating as empty")
            return {}
        return data

    def _write_document_once(self, document: Dict[str, Any]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_path = tempfile.mkstemp(prefix=self.path.name, suffix=".tmp", dir=str(self.path.parent))
        try:
            with os.fdopen(fd, 'w', encoding='utf-8') as f:
                json.dump(document, f, indent=2, sort_keys=True)
                f.flush()
                os.fsync(f.fileno())
            os.replace(tmp_path, self.path)
        except BaseException:
            Path(tmp_path).unlink(missing_ok=True)
            raise

        if self.debug:
            self.logger.debug(f"Wrote state file {self.path} ({len(document)} keys)")


class MemoryStore:
    """In-process DurableStore (tests, dry runs)."""

    def __init__(self, initial: Optional[Dict[str, Dict[str, Any]]] = None):
        self._data: Dict[str, Dict[str, Any]] = copy.deepcopy(initial or {})
        self._lock = threading.RLock()

    @contextmanager
    def transaction(self):
        with self._lock:
            yield self

    def get(self, key: str) -> Optional[Dict[str, Any]]:
        with self._lock:
            value = self._data.get(key)
            return copy.deepcopy(value) if value is not None else None

    def put(self, key: str, value: Dict[str, Any]) -> None:
        with self._lock:
            self._data[key] = copy.deepcopy(value)

    def delete(self, key: str) -> None:
        with self._lock:
            self._data.pop(key, None)

    def keys(self):
        with self._lock:
            return list(self._data.keys())
