"""
Database transaction management with rollback support.
"""
import logging
import sqlite3
import time
from typing import Optional, Callable, List, Tuple, Type
from contextlib import contextmanager
from functools import wraps

logger = logging.getLogger(__name__)


class TransactionManager:
    """Manages database transactions with rollback and compensation."""

    def __init__(self, database=None):
        if database is None:
            from core.database import db
            database = db
        self.db = database
        self.compensation_handlers: List[Callable[[], None]] = []

    @contextmanager
    def transaction(self, isolation_level: Optional[str] = None):
        """
        Context manager for database transactions.

        Usage:
            with TransactionManager(db).transaction() as conn:
                conn.execute(...)
                conn.execute(...)
                # If exception raised, all writes rolled back and
                # compensation handlers run

        Args:
            isolation_level: Optional SQLite isolation level
                - None: Default (DEFERRED)
                - "IMMEDIATE": Lock database immediately
                - "EXCLUSIVE": Exclusive lock

        Yields:
            Connection object for manual operations
        """
        conn = self.db.get_connection_raw()
        # Explicit BEGIN below, so no implicit transactions
        conn.isolation_level = None
        begin = f"BEGIN {isolation_level}" if isolation_level else "BEGIN"

        try:
            conn.execute(begin)

            yield conn

            conn.execute("COMMIT")

            # Clear compensation handlers on success
            self.compensation_handlers.clear()

        except Exception:
            conn.execute("ROLLBACK")

            # Undo external side effects (uploaded files etc.)
            self._execute_compensation()

            raise

        finally:
            conn.close()

    def register_compensation(self, handler: Callable[[], None]):
        """
        Register a compensation handler for external operations.

        Compensation handlers execute on rollback to undo
        non-database operations (e.g., delete uploaded illustrations).

        Args:
            handler: Function to call on rollback
        """
        self.compensation_handlers.append(handler)

    def _execute_compensation(self):
        """Execute all registered compensation handlers in reverse order."""
        handlers = list(reversed(self.compensation_handlers))
        self.compensation_handlers.clear()
        for handler in handlers:
            try:
                handler()
            except Exception as e:
                # Log but don't re-raise (rollback already happened)
                logger.error(f"Compensation handler failed: {e}")


def retry_on_transient_error(
    max_retries: int = 3,
    base_delay: float = 1.0,
    retry_on: Tuple[Type[BaseException], ...] = (),
):
    """
    Decorator to retry operations on transient errors.

    Retries SQLite busy errors, exceptions of the ``retry_on`` types, and
    errors whose message looks transient (timeouts, 429, 503, ...), with
    exponential backoff. The last error is re-raised.
    """
    def decorator(func):
        @wraps(func)
        def wrapper(*args, **kwargs):
            for attempt in range(max_retries):
                is_last = attempt == max_retries - 1
                try:
                    return func(*args, **kwargs)
                except sqlite3.OperationalError as e:
                    if "locked" in str(e).lower() and not is_last:
                        delay = base_delay * (2 ** attempt)
                        logger.warning(f"Database locked, retrying in {delay}s...")
                        time.sleep(delay)
                        continue
                    raise
                except Exception as e:
                    transient = isinstance(e, retry_on) or _is_transient_error(e)
                    if transient and not is_last:
                        delay = base_delay * (2 ** attempt)
                        logger.warning(f"Transient error, retrying in {delay}s: {e}")
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
        "timeout",
        "timed out",
        "connection reset",
        "temporary failure",
        "service unavailable",
        "429",  # Rate limit
        "502",
        "503",  # Service unavailable
    ]
    return any(indicator in error_str for indicator in transient_indicators)
