from typing import Optional

from memcell.datastore import DataStore, DEFAULT_EXPIRATION
from memcell.parser import CommandParser

import logging

logger = logging.getLogger(__name__)

class Executor:
    """
    Runs console commands against a DataStore and renders the reply as text.
    """
    def __init__(self, db: DataStore, parser: CommandParser, snapshot_path: Optional[str] = None):
        self._dispatch = {
            "set": self._set,
            "get": self._get,
            "add": self._add,
            "update": self._update,
            "del": db.delete,
            "count": db.count,
            "keys": self._keys,
            "ttl": db.ttl,
            "flushdb": self._flushdb,
            "save": self._save,
            "load": self._load,
        }
        self._db = db
        self._parser = parser
        self._snapshot_path = snapshot_path

    def execute(self, command_str: str) -> str:
        """
        Execute a command on the database
        """
        logger.debug(f"Command string: {command_str}")
        try:
            cmd, args = self._parser.parse(command_str)
            logger.debug(f"Parsed command: {cmd} with args: {args}")

            # dispatch the command to get corresponding response
            result = self._dispatch[cmd](*args)

            if isinstance(result, (int, bool)):
                result = f"(integer) {int(result)}"

            logger.debug(f"Executed command: {cmd} with args: {args}, result: {result}")
            return str(result)
        except Exception as e:
            logger.debug(f"Command failed: {command_str}: {e}")
            return f"ERROR: {str(e)}"

    """
    -----------------------HANDLERS-------------------------
    """
    def _set(self, key: str, value: str, ttl: float = DEFAULT_EXPIRATION) -> str:
        self._db.set(key, value, ttl)
        return "OK"

    def _add(self, key: str, value: str, ttl: float = DEFAULT_EXPIRATION) -> str:
        self._db.add(key, value, ttl)
        return "OK"

    def _update(self, key: str, value: str, ttl: float = DEFAULT_EXPIRATION) -> str:
        self._db.update(key, value, ttl)
        return "OK"

    def _get(self, key: str):
        value, found = self._db.get(key)
        if not found:
            return "(nil)"
        if isinstance(value, bytes):
            return value.decode("utf-8", errors="replace")
        return value

    def _keys(self) -> str:
        keys = self._db.keys()
        return " ".join(keys) if keys else "(empty)"

    def _flushdb(self) -> str:
        self._db.flush()
        return "OK"

    def _save(self) -> str:
        saved = self._db.save_file(self._require_snapshot_path())
        return f"OK saved {saved} keys"

    def _load(self) -> str:
        loaded = self._db.load_file(self._require_snapshot_path())
        return f"OK loaded {loaded} keys"

    def _require_snapshot_path(self) -> str:
        if not self._snapshot_path:
            raise ValueError("Snapshot path is not configured")
        return self._snapshot_path
