"""Abstract base fetcher interface for blog document sources."""

import logging
from abc import ABC, abstractmethod
from datetime import datetime
from typing import Any, List, Optional

from dateutil.parser import isoparse

from models import CorpusDocument, ExportSettings


class FetcherError(Exception):
    """Base exception for fetcher-related errors."""
    pass


class BaseFetcher(ABC):
    """Abstract base class for document sources."""

    def __init__(self, settings: ExportSettings, logger: Optional[logging.Logger] = None):
        """
        Initialize base fetcher with settings and logger.

        Args:
            settings: Export settings (database and collection identifiers)
            logger: Logger instance (optional, uses module logger if not provided)
        """
        self.settings = settings
        self.logger = logger or logging.getLogger('blog_markdown_migrator.fetcher')

    @abstractmethod
    def list_documents(self, collection: str) -> List[CorpusDocument]:
        """
        Enumerate every document of a collection.

        Args:
            collection: Collection (view) name within the database

        Returns:
            Documents in collection order
        """
        pass

    @staticmethod
    def _parse_datetime(value: Any) -> Optional[datetime]:
        """Parse an ISO-8601 timestamp; empty values yield None."""
        if value is None or value == '':
            return None
        if isinstance(value, datetime):
            return value
        try:
            return isoparse(str(value))
        except ValueError as e:
            raise FetcherError(f"Invalid timestamp '{value}': {e}") from e

    @staticmethod
    def _as_text(value: Any) -> str:
        """Flatten an item value to text, joining multi-value items with a space."""
        if value is None:
            return ''
        if isinstance(value, list):
            return ' '.join(str(v) for v in value)
        return str(value)

    @staticmethod
    def _as_list(value: Any) -> List[str]:
        if value is None:
            return []
        if isinstance(value, list):
            return [str(v) for v in value]
        return [str(value)]


__all__ = ['BaseFetcher', 'FetcherError']
