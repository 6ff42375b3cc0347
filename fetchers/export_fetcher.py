"""Export fetcher reading blog documents from a local JSON export of the database."""

import json
import logging
from pathlib import Path
from typing import Any, Dict, List, Optional

from models import CorpusDocument, ExportSettings
from .base_fetcher import BaseFetcher, FetcherError

logger = logging.getLogger('blog_markdown_migrator.fetcher.export')


class ExportFetcher(BaseFetcher):
    """
    Fetches documents from an exported database directory.

    Layout: ``<database>/<collection>/*.json``, one document per file, read in
    file name order. Item names are those of the blog database:

    - ``res_title``: document key (e.g. ``hello-world.htm``)
    - ``Subject``: title
    - ``fulldatetime``: explicit creation time (optional)
    - ``@created``: creation time of the document itself
    - ``CustomCategory``: category (optional)
    - ``CustomTags``: tags (optional)
    - ``Rt``: rich text content rendered as HTML
    """

    KEY_ITEM = 'res_title'
    TITLE_ITEM = 'Subject'
    CREATED_ITEM = 'fulldatetime'
    SOURCE_CREATED_ITEM = '@created'
    CATEGORY_ITEM = 'CustomCategory'
    TAGS_ITEM = 'CustomTags'
    CONTENT_ITEM = 'Rt'

    def __init__(self, settings: ExportSettings, logger: Optional[logging.Logger] = None):
        super().__init__(settings, logger or logging.getLogger('blog_markdown_migrator.fetcher.export'))
        self.database_path = Path(settings.database)

        self._stats = {
            'files_read': 0,
            'files_skipped': 0
        }

    def list_documents(self, collection: str) -> List[CorpusDocument]:
        """
        Read every document of a collection.

        Args:
            collection: Collection directory name within the export

        Returns:
            Documents in file name order

        Raises:
            FetcherError: If the collection directory doesn't exist
        """
        collection_path = self.database_path / collection
        if not collection_path.is_dir():
            raise FetcherError(f"Collection '{collection}' not found in {self.database_path}")

        documents = []
        for index, file_path in enumerate(sorted(collection_path.glob('*.json'))):
            try:
                document = self._read_document(file_path)
            except (OSError, ValueError, FetcherError) as e:
                self._stats['files_skipped'] += 1
                self.logger.error(f"Skipping unreadable document {file_path.name}: {e}")
                continue

            self._stats['files_read'] += 1
            self.logger.debug(f"{index}.{document.key}: Caching...")
            documents.append(document)

        self.logger.info(f"Read {len(documents)} documents from collection '{collection}'")
        return documents

    def _read_document(self, file_path: Path) -> CorpusDocument:
        with open(file_path, 'r', encoding='utf-8') as f:
            items = json.load(f)

        if not isinstance(items, dict):
            raise FetcherError("document file must contain a JSON object")

        return self._to_document(items)

    def _to_document(self, items: Dict[str, Any]) -> CorpusDocument:
        """Map document items onto a CorpusDocument."""
        key = self._as_text(items.get(self.KEY_ITEM)).strip()
        if not key:
            raise FetcherError(f"missing '{self.KEY_ITEM}' item")

        source_created = self._parse_datetime(items.get(self.SOURCE_CREATED_ITEM))
        if source_created is None:
            raise FetcherError(f"missing '{self.SOURCE_CREATED_ITEM}' item")

        content = items.get(self.CONTENT_ITEM)

        return CorpusDocument(
            key=key,
            title=self._as_text(items.get(self.TITLE_ITEM)),
            source_created=source_created,
            created=self._parse_datetime(items.get(self.CREATED_ITEM)),
            category=self._as_text(items.get(self.CATEGORY_ITEM)),
            tags=self._as_list(items.get(self.TAGS_ITEM)),
            content=self._as_text(content) if content is not None else None
        )

    def get_stats(self) -> Dict[str, int]:
        return self._stats.copy()


__all__ = ['ExportFetcher']
