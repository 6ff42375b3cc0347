"""
Migration orchestrator for the two-pass blog export.

Pass 1 reads the whole collection, caches the documents and builds the name
index. Pass 2 exports the cached documents one by one. No document is rendered
before the index is complete, so links to documents enumerated later resolve
the same way as links to earlier ones.
"""

import logging
import sys
import time
from typing import Any, Dict, List, Optional

import requests

from models import CorpusDocument, ExportSettings, NameIndex
from converters import (
    HtmlPreprocessor,
    InvalidInputError,
    LinkResolver,
    MalformedReferenceError,
    MarkdownConverter
)
from exporters import (
    ImageFetcher,
    ImageFetchError,
    MarkdownExporter,
    WriteFailureError,
    build_name_index
)
from fetchers import BaseFetcher
from logger import ProgressTracker, log_section

logger = logging.getLogger('blog_markdown_migrator.orchestrator')


class MigrationOrchestrator:
    """Central coordinator sequencing the export passes: Index → Export → Summary."""

    def __init__(
        self,
        settings: ExportSettings,
        source: BaseFetcher,
        logger: Optional[logging.Logger] = None,
        image_fetcher: Optional[ImageFetcher] = None
    ):
        """
        Initialize migration orchestrator.

        Args:
            settings: Export settings
            source: Document source to enumerate the collection from
            logger: Optional logger instance
            image_fetcher: Optional ImageFetcher (created from settings if omitted)
        """
        self.settings = settings
        self.source = source
        self.logger = logger or logging.getLogger('blog_markdown_migrator.orchestrator')
        self.image_fetcher = image_fetcher or ImageFetcher(settings, logger=self.logger)

        # Owned for the duration of one run; filled only in pass 1
        self.document_cache: Dict[str, CorpusDocument] = {}
        self.name_index: Optional[NameIndex] = None
        self.link_resolver: Optional[LinkResolver] = None

        self.stats = {
            'documents_total': 0,
            'documents_exported': 0,
            'documents_failed': 0,
            'duplicate_keys': 0,
            'failed_documents': [],
            'exported_files': []
        }

    def run(self) -> Dict[str, Any]:
        """
        Run both passes over the configured collection.

        Returns:
            Statistics dictionary
        """
        start_time = time.time()

        self.build_index()
        self.export_documents()

        self.stats['duration_seconds'] = time.time() - start_time
        self.stats['images'] = self.image_fetcher.get_stats()
        if self.link_resolver is not None:
            self.stats['links'] = self.link_resolver.get_stats()

        self._log_export_summary()
        return self.stats

    def build_index(self) -> NameIndex:
        """
        Pass 1: cache every document of the collection and build the name index.

        Returns:
            Frozen NameIndex
        """
        log_section("Pass 1: Building name index")

        documents = self.source.list_documents(self.settings.collection)

        for document in documents:
            if document.key in self.document_cache:
                self.stats['duplicate_keys'] += 1
                self.logger.warning(f"Duplicate document key '{document.key}' - keeping the first one")
                continue
            self.document_cache[document.key] = document

        self.name_index = build_name_index(self.document_cache.values())
        self.stats['documents_total'] = len(self.document_cache)

        self.logger.info(f"Name index built with {len(self.name_index)} entries")
        return self.name_index

    def export_documents(self) -> None:
        """Pass 2: export each cached document; failures are isolated per document."""
        if self.name_index is None or not self.name_index.frozen:
            raise RuntimeError("Name index must be built before exporting documents")

        log_section("Pass 2: Exporting documents")

        self.settings.posts_path.mkdir(parents=True, exist_ok=True)
        self.settings.images_path.mkdir(parents=True, exist_ok=True)

        self.link_resolver = LinkResolver(
            name_index=self.name_index,
            image_fetcher=self.image_fetcher,
            posts_dir=self.settings.posts_path,
            logger=self.logger
        )
        exporter = MarkdownExporter(
            settings=self.settings,
            name_index=self.name_index,
            converter=MarkdownConverter(link_resolver=self.link_resolver, logger=self.logger),
            preprocessor=HtmlPreprocessor(self.logger),
            logger=self.logger
        )

        tracker = ProgressTracker(
            self.document_cache.values(),
            item_type='documents',
            show_bar=self._should_show_progress()
        )
        with tracker:
            for document in tracker:
                tracker.record(document.key, self._export_document(exporter, document))

    def _export_document(self, exporter: MarkdownExporter, document: CorpusDocument) -> bool:
        try:
            output_file = exporter.export_document(document)
        except (MalformedReferenceError, ImageFetchError, requests.RequestException) as e:
            return self._record_failure(document, f"Image resolution failed: {e}")
        except InvalidInputError as e:
            return self._record_failure(document, f"No content to convert: {e}")
        except WriteFailureError as e:
            return self._record_failure(document, str(e))
        except Exception as e:
            self.logger.debug("Unexpected export error", exc_info=True)
            return self._record_failure(document, f"Unexpected error: {e}")

        self.stats['documents_exported'] += 1
        self.stats['exported_files'].append(str(output_file))
        self.logger.info(f"Exported '{document.key}' -> {output_file.name}")
        return True

    def _record_failure(self, document: CorpusDocument, message: str) -> bool:
        self.stats['documents_failed'] += 1
        self.stats['failed_documents'].append({'key': document.key, 'error': message})
        self.logger.error(f"Failed to export '{document.key}': {message}")
        return False

    def _should_show_progress(self) -> bool:
        return self.settings.progress_bars and sys.stdout.isatty()

    def _log_export_summary(self) -> None:
        """Log final export statistics."""
        images = self.stats.get('images', {})
        links = self.stats.get('links', {})

        self.logger.info("=" * 60)
        self.logger.info("MARKDOWN EXPORT SUMMARY")
        self.logger.info("=" * 60)
        self.logger.info(f"Documents: {self.stats['documents_total']}")
        self.logger.info(f"Exported: {self.stats['documents_exported']}")
        self.logger.info(f"Failed: {self.stats['documents_failed']}")
        if self.stats['duplicate_keys']:
            self.logger.info(f"Duplicate keys skipped: {self.stats['duplicate_keys']}")
        self.logger.info(f"Images downloaded: {images.get('fetched', 0)} ({images.get('reused', 0)} reused)")
        self.logger.info(f"Internal links rewritten: {links.get('links_rewritten', 0)}")
        self.logger.info(f"Output directory: {self.settings.posts_path}")
        self.logger.info("=" * 60)

    def get_failed_keys(self) -> List[str]:
        return [failure['key'] for failure in self.stats['failed_documents']]


__all__ = ['MigrationOrchestrator']
