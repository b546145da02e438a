"""
Base service class.

Services sit between the API/CLI and the database adapter. Reads that fail
because of storage are reported as "no data" (None or an empty list) with a
log line, writes as False/None. Validation errors are never swallowed.
"""

from typing import Callable, Optional, TypeVar
import logging

from ..db.adapters import DatabaseAdapter
from ..exceptions import DatabaseError


T = TypeVar("T")


class BaseService:
    """
    Common plumbing for services backed by a DatabaseAdapter.

    Provides:
    - Logging setup
    - Storage-error guarding
    """

    def __init__(
        self,
        adapter: DatabaseAdapter,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        self._adapter = adapter
        self._logger = logger or logging.getLogger(self.__class__.__name__)

    @property
    def logger(self) -> logging.Logger:
        """Get the logger instance."""
        return self._logger

    @property
    def adapter(self) -> DatabaseAdapter:
        return self._adapter

    def _guarded(self, operation: str, func: Callable[[], T], default: T) -> T:
        """Run a storage call, logging and returning ``default`` on DatabaseError."""
        try:
            return func()
        except DatabaseError as e:
            self._logger.error(f"{operation} failed: {e.message}")
            return default
