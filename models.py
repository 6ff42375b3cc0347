"""Data models for the blog to Markdown migration pipeline."""

import logging
from dataclasses import dataclass, field, replace
from datetime import datetime
from enum import Enum
from pathlib import Path
from collections.abc import Mapping
from typing import Any, Dict, Iterator, List, Optional

logger = logging.getLogger('blog_markdown_migrator')


class LinkType(Enum):
    """Kinds of links seen while rendering a document."""
    IMAGE = "image"
    LINK = "link"
    OTHER = "other"


@dataclass(frozen=True)
class ResolvedLink:
    """A link target as discovered in HTML, possibly rewritten by a resolver."""

    link_type: LinkType
    url: str
    title: str = ''

    def with_url(self, url: str) -> 'ResolvedLink':
        return replace(self, url=url)

    def with_title(self, title: str) -> 'ResolvedLink':
        return replace(self, title=title)


@dataclass
class CorpusDocument:
    """Represents a single blog document handed over by the document source."""

    key: str
    title: str
    source_created: datetime
    created: Optional[datetime] = None
    category: str = ''
    tags: List[str] = field(default_factory=list)
    content: Optional[str] = None  # HTML content

    @property
    def effective_created(self) -> datetime:
        """Explicit creation time if the document carries one, else the source's own timestamp."""
        return self.created if self.created is not None else self.source_created


class NameIndex(Mapping):
    """
    Write-once mapping from document key to output filename.

    Entries are never overwritten. Once frozen, the index is read-only and is
    safe to share with every render step of the export pass.
    """

    def __init__(self) -> None:
        self._entries: Dict[str, str] = {}
        self._frozen = False

    def add(self, key: str, filename: str) -> bool:
        """
        Register the output filename for a key.

        Returns:
            True if the entry was added, False if the key was already present
        """
        if self._frozen:
            raise RuntimeError("NameIndex is frozen; no entries can be added")

        if key in self._entries:
            logger.warning(
                f"Duplicate document key '{key}' ignored "
                f"(already mapped to '{self._entries[key]}')"
            )
            return False

        self._entries[key] = filename
        return True

    def freeze(self) -> 'NameIndex':
        self._frozen = True
        return self

    @property
    def frozen(self) -> bool:
        return self._frozen

    def __getitem__(self, key: str) -> str:
        return self._entries[key]

    def __iter__(self) -> Iterator[str]:
        return iter(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    def __repr__(self) -> str:
        state = 'frozen' if self._frozen else 'open'
        return f"NameIndex({len(self._entries)} entries, {state})"


@dataclass(frozen=True)
class ExportSettings:
    """Run-wide settings, built once at startup and passed to every component."""

    database: str
    base_url: str
    output_directory: Path
    collection: str = 'vContent2'
    posts_directory: str = 'posts/imported'
    images_directory: str = 'images/imported'
    author: str = 'Unknown'
    html_output: bool = False
    request_timeout: float = 30
    max_retries: int = 3
    verify_ssl: bool = True
    progress_bars: bool = True

    @property
    def posts_path(self) -> Path:
        return self.output_directory / self.posts_directory

    @property
    def images_path(self) -> Path:
        return self.output_directory / self.images_directory

    @classmethod
    def from_config(cls, config: Dict[str, Any]) -> 'ExportSettings':
        """Build settings from a validated configuration dictionary."""
        source = config.get('source') or {}
        export = config.get('export') or {}
        advanced = config.get('advanced') or {}

        return cls(
            database=source['database'],
            base_url=source['base_url'],
            output_directory=Path(export['output_directory']),
            collection=source.get('collection') or cls.collection,
            posts_directory=export.get('posts_directory') or cls.posts_directory,
            images_directory=export.get('images_directory') or cls.images_directory,
            author=export.get('author') or cls.author,
            html_output=bool(export.get('html_output', False)),
            request_timeout=advanced.get('request_timeout', cls.request_timeout),
            max_retries=advanced.get('max_retries', cls.max_retries),
            verify_ssl=advanced.get('verify_ssl', cls.verify_ssl),
            progress_bars=advanced.get('progress_bars', cls.progress_bars)
        )

    def to_dict(self) -> Dict[str, Any]:
        """Serialize settings to dictionary, with the resolved post and image paths."""
        return {
            'database': self.database,
            'collection': self.collection,
            'base_url': self.base_url,
            'output_directory': str(self.output_directory),
            'posts_directory': str(self.posts_path),
            'images_directory': str(self.images_path),
            'author': self.author,
            'html_output': self.html_output,
            'request_timeout': self.request_timeout,
            'max_retries': self.max_retries,
            'verify_ssl': self.verify_ssl
        }


__all__ = [
    'LinkType',
    'ResolvedLink',
    'CorpusDocument',
    'NameIndex',
    'ExportSettings'
]
