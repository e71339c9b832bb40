"""
Database transaction management with rollback support.
"""
import logging
import sqlite3
import time
from typing import Optional
from contextlib import contextmanager
from functools import wraps

from core.database import Database, db

logger = logging.getLogger(__name__)


class TransactionManager:
    """Runs a unit of work on one connection, committed or rolled back as a whole."""

    def __init__(self, database: Optional[Database] = None):
        self.database = database or db

    @contextmanager
    def transaction(self, isolation_level: Optional[str] = None):
        """
        Context manager for database transactions.

        Usage:
            with transaction_manager.transaction() as conn:
                conn.execute(...)
                conn.execute(...)
                # If exception raised, all writes rolled back

        Args:
            isolation_level: Optional SQLite isolation level
                - None: Default (DEFERRED)
                - "IMMEDIATE": Lock database immediately
                - "EXCLUSIVE": Exclusive lock

        Yields:
            Connection object for manual operations
        """
        conn = self.database.get_connection_raw()

        try:
            conn.execute(f"BEGIN {isolation_level}" if isolation_level else "BEGIN")

            yield conn

            conn.commit()

        except Exception:
            conn.rollback()
            raise

        finally:
            conn.close()


# Global transaction manager instance
transaction_manager = TransactionManager()


def retry_on_transient_error(max_retries: int = 3, base_delay: float = 0.5):
    """
    Decorator to retry operations when SQLite reports the database as locked.
    """
    def decorator(func):
        @wraps(func)
        def wrapper(*args, **kwargs):
            for attempt in range(max_retries):
                try:
                    return func(*args, **kwargs)
                except sqlite3.OperationalError as e:
                    if _is_transient_error(e) and attempt < max_retries - 1:
                        delay = base_delay * (2 ** attempt)
                        logger.warning(f"Database locked, retrying in {delay}s...")
                        time.sleep(delay)
                        continue
                    raise

            return func(*args, **kwargs)

        return wrapper
    return decorator


def _is_transient_error(error: Exception) -> bool:
    """Determine if error is transient (retryable)."""
    error_str = str(error).lower()
    transient_indicators = [
        "database is locked",
        "database table is locked",
        "busy",
    ]
    return any(indicator in error_str for indicator in transient_indicators)
