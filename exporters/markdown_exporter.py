"""Markdown exporter writing converted blog documents with front matter."""

import logging
from pathlib import Path
from typing import Mapping, Optional

from models import CorpusDocument, ExportSettings
from converters import HtmlPreprocessor, MarkdownConverter
from .name_index import slug_for_key


class WriteFailureError(OSError):
    """Raised when an output file can't be written."""
    pass


def escape_yaml_string(value: str) -> str:
    """Escape a value for use inside a double-quoted YAML scalar."""
    return value.replace('\\', '\\\\').replace('"', '\\"')


class MarkdownExporter:
    """
    Exports a single document of the corpus to a Markdown file.

    For each document this exporter:
    1. Removes a previous export of the same file
    2. Repairs the document HTML
    3. Renders the HTML to Markdown (resolving images and links)
    4. Writes front matter and body to the file mapped in the name index
    5. Optionally writes the repaired HTML next to it for inspection
    """

    def __init__(
        self,
        settings: ExportSettings,
        name_index: Mapping[str, str],
        converter: MarkdownConverter,
        preprocessor: Optional[HtmlPreprocessor] = None,
        logger: Optional[logging.Logger] = None
    ):
        """
        Initialize the markdown exporter.

        Args:
            settings: Export settings
            name_index: Frozen document key -> output filename mapping
            converter: MarkdownConverter wired with the run's link resolver
            preprocessor: HtmlPreprocessor (a default one is created if omitted)
            logger: Logger instance
        """
        self.settings = settings
        self.name_index = name_index
        self.converter = converter
        self.preprocessor = preprocessor or HtmlPreprocessor()
        self.logger = logger or logging.getLogger('blog_markdown_migrator.exporters.markdown_exporter')

        self.posts_dir = settings.posts_path

    def export_document(self, document: CorpusDocument) -> Path:
        """
        Convert and write one document.

        Args:
            document: Document to export; its key must be in the name index

        Returns:
            Path of the written Markdown file

        Raises:
            WriteFailureError: If the Markdown file can't be written
            InvalidInputError: If the document has no content
            MalformedReferenceError, ImageFetchError: From image resolution
        """
        slug = slug_for_key(document.key)
        target_file = self.posts_dir / self.name_index[document.key]

        self.logger.debug(f"Exporting '{document.key}' to {target_file}")

        self._remove_existing(target_file)

        html_content = self.preprocessor.preprocess(document.content)
        markdown_content = self.converter.render(html_content)
        frontmatter = self._generate_frontmatter(document)

        try:
            target_file.write_text(frontmatter + markdown_content, encoding='utf-8')
        except OSError as e:
            raise WriteFailureError(f"Error writing file {target_file}: {e}") from e

        if self.settings.html_output:
            self._write_debug_html(slug, html_content)

        return target_file

    def _remove_existing(self, target_file: Path) -> None:
        if not target_file.exists():
            return
        try:
            target_file.unlink()
        except OSError as e:
            self.logger.error(f"Error deleting existing file {target_file}: {e}")

    def _write_debug_html(self, slug: str, html_content: Optional[str]) -> None:
        """Write the repaired HTML next to the Markdown output; failures are only logged."""
        html_file = self.posts_dir / f"{slug}.html"
        try:
            html_file.write_text(html_content or '', encoding='utf-8')
        except OSError as e:
            self.logger.error(f"Error writing file {html_file}: {e}")

    def _generate_frontmatter(self, document: CorpusDocument) -> str:
        """
        Generate the YAML front matter block for a document.

        Categories are omitted when empty; tags are omitted when the list is
        empty or its first entry is empty.

        Args:
            document: CorpusDocument instance

        Returns:
            Front matter including the closing separator and a blank line
        """
        slug = slug_for_key(document.key)

        parts = [
            "---\n",
            "authors:\n", f"  - {self.settings.author}\n\n",
            f"title: \"{escape_yaml_string(document.title)}\"\n\n",
            f"slug: {slug}\n\n",
            f"date: {document.effective_created.isoformat()}\n\n",
        ]

        if document.category:
            parts.append("categories:\n")
            parts.append(f"  - {document.category}\n\n")

        if document.tags and document.tags[0]:
            parts.append("tags:\n")
            parts.extend(f"  - {tag}\n" for tag in document.tags)

        parts.append("---\n\n")

        return ''.join(parts)


__all__ = ['MarkdownExporter', 'WriteFailureError', 'escape_yaml_string']
