"""Fetchers package for reading blog documents from the document source."""

from .base_fetcher import BaseFetcher, FetcherError
from .export_fetcher import ExportFetcher

__all__ = [
    'BaseFetcher',
    'FetcherError',
    'ExportFetcher'
]
