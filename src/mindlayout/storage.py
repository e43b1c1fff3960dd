"""
Persistence of mind map state.

The persisted state is a single versionless record:

    {"nodes": [[id, node], ...], "nodeCounter": int,
     "viewport": {"x", "y", "scale"}, "timestamp": ISO-8601 string}

Backends only move that record in and out of a store; they never interpret
it. A missing or unreadable record loads as None ("no saved state"), while
a failed write raises WriteError.

Classes:
    MemoryStorage: Keeps the JSON text in memory (tests, embedding).
    JsonFileStorage: One JSON file on disk.
    SqliteStorage: One row of a key/value table in an SQLite database.
"""

import json
import logging
import sqlite3
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, Optional, Protocol, Tuple

from .errors import CorruptData, WriteError
from .models import Viewport
from .tree import TreeStore

logger = logging.getLogger(__name__)

STORAGE_KEY = "mindmap_data"

StateBlob = Dict[str, Any]


def build_blob(tree: TreeStore, viewport: Viewport) -> StateBlob:
    """Assemble the persisted record for the current state."""
    blob = tree.serialize()
    blob["viewport"] = viewport.to_dict()
    blob["timestamp"] = datetime.now(timezone.utc).isoformat()
    return blob


def parse_blob(blob: StateBlob) -> Tuple[TreeStore, Viewport]:
    """
    Restore the tree and viewport from a persisted record.

    Raises:
        CorruptData: If the record fails structural validation.
    """
    if not isinstance(blob, dict):
        raise CorruptData("State blob is not an object")
    tree = TreeStore.deserialize(blob)
    try:
        viewport = Viewport.from_dict(blob.get("viewport"))
    except (AttributeError, TypeError, ValueError) as e:
        raise CorruptData(f"Malformed viewport: {e}") from e
    return tree, viewport


def _decode(text: Optional[str], source: str) -> Optional[StateBlob]:
    if text is None:
        return None
    try:
        return json.loads(text)
    except json.JSONDecodeError as e:
        logger.warning("Ignoring unreadable state in %s: %s", source, e)
        return None


class Storage(Protocol):
    """Protocol for state stores."""

    def load(self) -> Optional[StateBlob]:
        """Return the saved record, or None when nothing usable is stored."""
        ...

    def save(self, blob: StateBlob) -> None:
        """Write the record, raising WriteError on failure."""
        ...

    def clear(self) -> None:
        """Remove the saved record, raising WriteError on failure."""
        ...


class MemoryStorage:
    """In-memory store holding the record as JSON text."""

    def __init__(self, text: Optional[str] = None):
        self.text = text

    def load(self) -> Optional[StateBlob]:
        return _decode(self.text, "memory")

    def save(self, blob: StateBlob) -> None:
        try:
            self.text = json.dumps(blob)
        except (TypeError, ValueError) as e:
            raise WriteError(f"State is not serializable: {e}") from e

    def clear(self) -> None:
        self.text = None


class JsonFileStorage:
    """Store keeping the record in a single JSON file."""

    def __init__(self, path):
        self.path = Path(path)

    def load(self) -> Optional[StateBlob]:
        try:
            text = self.path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return None
        except OSError as e:
            logger.warning("Could not read %s: %s", self.path, e)
            return None
        return _decode(text, str(self.path))

    def save(self, blob: StateBlob) -> None:
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            tmp_path = self.path.with_suffix(self.path.suffix + ".tmp")
            tmp_path.write_text(json.dumps(blob), encoding="utf-8")
            tmp_path.replace(self.path)
        except (OSError, TypeError, ValueError) as e:
            raise WriteError(f"Could not write {self.path}: {e}") from e

    def clear(self) -> None:
        try:
            self.path.unlink()
        except FileNotFoundError:
            pass
        except OSError as e:
            raise WriteError(f"Could not remove {self.path}: {e}") from e


class SqliteStorage:
    """Store keeping the record in a key/value table of an SQLite database."""

    def __init__(self, db_path, key: str = STORAGE_KEY):
        self.db_path = Path(db_path)
        self.key = key
        self._conn: Optional[sqlite3.Connection] = None
        self._init_db()

    @property
    def conn(self) -> sqlite3.Connection:
        if self._conn is None:
            self._conn = sqlite3.connect(str(self.db_path))
        return self._conn

    def _init_db(self):
        """Initialize the database schema."""
        self.conn.execute(
            "CREATE TABLE IF NOT EXISTS settings (key TEXT PRIMARY KEY, value JSON)"
        )
        self.conn.commit()

    def load(self) -> Optional[StateBlob]:
        try:
            row = self.conn.execute(
                "SELECT value FROM settings WHERE key = ?", (self.key,)
            ).fetchone()
        except sqlite3.Error as e:
            logger.warning("Could not read state from %s: %s", self.db_path, e)
            return None
        return _decode(row[0] if row else None, str(self.db_path))

    def save(self, blob: StateBlob) -> None:
        try:
            self.conn.execute(
                "INSERT OR REPLACE INTO settings (key, value) VALUES (?, ?)",
                (self.key, json.dumps(blob)),
            )
            self.conn.commit()
        except (sqlite3.Error, TypeError, ValueError) as e:
            raise WriteError(f"Could not write state to {self.db_path}: {e}") from e

    def clear(self) -> None:
        try:
            self.conn.execute("DELETE FROM settings WHERE key = ?", (self.key,))
            self.conn.commit()
        except sqlite3.Error as e:
            raise WriteError(f"Could not clear state in {self.db_path}: {e}") from e

    def close(self) -> None:
        if self._conn is not None:
            self._conn.close()
            self._conn = None
