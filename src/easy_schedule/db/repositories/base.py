"""Base class for the SQLite-backed repositories.

Each repository owns its table(s) and opens a short-lived connection per
operation, so a repository can be shared freely between the startup
hook, the cleanup job and interactive callers.
"""

import logging
import sqlite3
from abc import ABC, abstractmethod
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator, Optional, Union

from ...config import get_settings
from ...exceptions import StoreError

logger = logging.getLogger(__name__)


class SQLiteRepository(ABC):
    """
    Abstract base for repositories persisting to a single SQLite file.

    Subclasses create their schema in ``_ensure_table_exists``. Any
    ``sqlite3.Error`` raised inside a connection block is rolled back and
    surfaces as ``StoreError``.
    """

    def __init__(self, db_path: Optional[Union[str, Path]] = None):
        """
        Initialize the repository.

        Args:
            db_path: Path to SQLite database file. If None, uses the
                    configured ``database_path``.
        """
        self.db_path = Path(db_path) if db_path else get_settings().database_path
        self._ensure_table_exists()

    @contextmanager
    def _get_connection(self) -> Iterator[sqlite3.Connection]:
        """Get database connection with context manager."""
        try:
            conn = sqlite3.connect(str(self.db_path))
        except sqlite3.Error as e:
            raise StoreError(f"Cannot open database {self.db_path}: {e}", operation="connect") from e

        conn.row_factory = sqlite3.Row
        try:
            yield conn
            conn.commit()
        except sqlite3.Error as e:
            conn.rollback()
            logger.error(f"{self.__class__.__name__} database error: {e}")
            raise StoreError(str(e), operation=self.__class__.__name__) from e
        except Exception:
            conn.rollback()
            raise
        finally:
            conn.close()

    @abstractmethod
    def _ensure_table_exists(self) -> None:
        """Create the repository's tables and indexes if missing."""
        pass
