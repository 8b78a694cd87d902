"""Record store boundary used by the query pipeline."""

from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional

from sqlalchemy.exc import SQLAlchemyError

from ..utils.logging import get_logger
from .client import normalize_url, session_context, sqlite_file_path
from .record_repo import query_records

logger = get_logger(__name__)


class StoreUnavailableError(RuntimeError):
    """The record store could not be reached."""


class RecordStore(ABC):
    """Anything that answers Stream queries."""

    @abstractmethod
    def query(self, args: Dict[str, Any]) -> Optional[List[Dict[str, Any]]]:
        """
        Run one query.

        Returns:
            List of records, or a falsy value when the store has nothing to offer
        """


class SqlRecordStore(RecordStore):
    """Reads records straight from the Stream tables through SQLAlchemy."""

    def __init__(self, store_url: str):
        self.store_url = normalize_url(store_url)

    def query(self, args: Dict[str, Any]) -> Optional[List[Dict[str, Any]]]:
        logger.debug("Querying %s with %s", self.store_url, args)
        # SQLite would create an empty file on connect
        db_file = sqlite_file_path(self.store_url)
        if db_file is not None and not db_file.is_file():
            raise StoreUnavailableError(f"Record store unavailable: {db_file} does not exist")
        try:
            with session_context(self.store_url) as session:
                return query_records(session, args)
        except SQLAlchemyError as e:
            raise StoreUnavailableError(f"Record store unavailable: {e}") from e
