from dataclasses import dataclass
from typing import Any, BinaryIO, List, Optional, Tuple
import os
import time
import logging

from memcell.exceptions import KeyExistsError, KeyNotFoundError
from memcell.rwlock import ReadWriteLock
from memcell.snapshot import dump_entries, load_entries

logger = logging.getLogger(__name__)

# TTL markers accepted by set/add/update
NO_EXPIRATION = -1
DEFAULT_EXPIRATION = 0

NEVER = float('inf')


@dataclass
class Entry:
    """
    A stored value and the absolute time it expires at
    """
    value: Any
    expires_at: float = NEVER

    def is_expired(self, now: Optional[float] = None) -> bool:
        if self.expires_at == NEVER:
            return False
        if now is None:
            now = time.time()
        return now > self.expires_at


class DataStore:
    """
    A dictionary of key-Entry pairs guarded by one reader/writer lock.

    Expired entries stay in the dictionary until delete_expired() or
    delete() removes them; reads simply treat them as absent.
    """
    def __init__(self, default_ttl: float = 0):
        self._store: dict = {}
        self._count = 0
        self._lock = ReadWriteLock()
        self.default_ttl = default_ttl

    """
    -----------------------HELPERS-------------------------
    """
    def _now(self) -> float:
        return time.time()

    def _expiration(self, ttl: float) -> float:
        """
        Turn a TTL marker or duration into an absolute timestamp
        """
        if ttl == DEFAULT_EXPIRATION:
            ttl = self.default_ttl
        if ttl > 0:
            return self._now() + ttl
        return NEVER

    def _alive(self, key: str) -> Optional[Entry]:
        """
        Return the entry at key if it exists and is not expired
        """
        entry = self._store.get(key)
        if entry is None or entry.is_expired(self._now()):
            return None
        return entry

    def _put(self, key: str, entry: Entry):
        if key not in self._store:
            self._count += 1
        self._store[key] = entry

    def _remove(self, key: str) -> bool:
        if self._store.pop(key, None) is None:
            return False
        self._count -= 1
        return True

    """
    -----------------------MUTATIONS-------------------------
    """
    def set(self, key: str, value: Any, ttl: float = DEFAULT_EXPIRATION):
        """
        - Set a key-value pair
        - Overwrite the value of an existing key
        """
        entry = Entry(value, self._expiration(ttl))
        with self._lock.write_locked():
            logger.debug(f"Setting key '{key}'")
            self._put(key, entry)

    def add(self, key: str, value: Any, ttl: float = DEFAULT_EXPIRATION):
        """
        - Set a key-value pair only if the key holds no live value
        - Throw error if the key is alive
        """
        entry = Entry(value, self._expiration(ttl))
        with self._lock.write_locked():
            if self._alive(key) is not None:
                raise KeyExistsError(key)
            self._put(key, entry)

    def update(self, key: str, value: Any, ttl: float = DEFAULT_EXPIRATION):
        """
        - Replace the value of a live key
        - Throw error if the key is missing or expired
        """
        entry = Entry(value, self._expiration(ttl))
        with self._lock.write_locked():
            if self._alive(key) is None:
                raise KeyNotFoundError(key)
            self._put(key, entry)

    def delete(self, key: str) -> bool:
        """
        - Delete a key from the store, expired or not
        - Return True if key was deleted, False if it did not exist
        """
        with self._lock.write_locked():
            logger.debug(f"Deleting key '{key}'")
            return self._remove(key)

    def delete_expired(self) -> int:
        """
        - Remove every expired entry
        - Return number of entries removed
        """
        with self._lock.write_locked():
            now = self._now()
            expired = [k for k, entry in self._store.items() if entry.is_expired(now)]
            for key in expired:
                self._remove(key)
        if expired:
            logger.debug(f"Removed {len(expired)} expired keys")
        return len(expired)

    def flush(self):
        """
        - Clear the entire store
        """
        with self._lock.write_locked():
            self._store = {}
            self._count = 0

    """
    -----------------------READS-------------------------
    """
    def get(self, key: str) -> Tuple[Any, bool]:
        """
        - Get value by key
        - Return (None, False) if key does not exist or is expired
        """
        with self._lock.read_locked():
            entry = self._alive(key)
        if entry is None:
            return None, False
        return entry.value, True

    def count(self) -> int:
        """
        Number of stored entries, including expired ones not yet swept
        """
        with self._lock.read_locked():
            return self._count

    def keys(self) -> List[str]:
        """
        - List all live keys
        """
        with self._lock.read_locked():
            now = self._now()
            return [k for k, entry in self._store.items() if not entry.is_expired(now)]

    def ttl(self, key: str) -> int:
        """
        - Get the time to live for a key
        """
        with self._lock.read_locked():
            entry = self._alive(key)
            if entry is None:
                return -2  # convention: -2 when key expired or does not exist
            if entry.expires_at == NEVER:
                return -1
            return int(entry.expires_at - self._now())

    """
    -----------------------SNAPSHOTS-------------------------
    """
    def save(self, writer: BinaryIO) -> int:
        """
        - Write every entry, expired ones included, to writer
        - Return number of entries written
        """
        with self._lock.read_locked():
            dump_entries(self._store, writer)
            saved = len(self._store)
        logger.info(f"Saved snapshot of {saved} keys")
        return saved

    def load(self, reader: BinaryIO) -> int:
        """
        - Merge a snapshot from reader into the store
        - A loaded entry only replaces a missing or expired one
        - Return number of entries taken from the snapshot
        """
        records = load_entries(reader)
        loaded = 0
        with self._lock.write_locked():
            for key, (value, expires_at) in records.items():
                if self._alive(key) is None:
                    self._put(key, Entry(value, expires_at))
                    loaded += 1
        logger.info(f"Loaded {loaded} of {len(records)} keys from snapshot")
        return loaded

    def save_file(self, path: str) -> int:
        """
        - Write a snapshot to path
        - The previous file is only replaced once the new snapshot is complete
        """
        tmp_path = f"{path}.tmp"
        f = open(tmp_path, "wb")
        try:
            saved = self.save(f)
        except BaseException:
            _close_quietly(f)
            _remove_quietly(tmp_path)
            raise
        try:
            f.close()
        except OSError:
            _remove_quietly(tmp_path)
            raise
        os.replace(tmp_path, path)
        return saved

    def load_file(self, path: str) -> int:
        f = open(path, "rb")
        try:
            loaded = self.load(f)
        except BaseException:
            _close_quietly(f)
            raise
        f.close()
        return loaded


def _close_quietly(f):
    """
    Close f after a failure; the failure that got us here is the one the caller sees
    """
    try:
        f.close()
    except OSError as e:
        logger.warning(f"Error closing {getattr(f, 'name', f)!r} after failure: {e}")


def _remove_quietly(path: str):
    try:
        os.remove(path)
    except FileNotFoundError:
        pass
    except OSError as e:
        logger.warning(f"Could not remove partial snapshot {path!r}: {e}")
