"""Name index construction: document key to output Markdown filename."""

import logging
from datetime import datetime
from typing import Iterable

from models import CorpusDocument, NameIndex

logger = logging.getLogger('blog_markdown_migrator.exporters.name_index')

# Extensions the blog uses for document keys, longest first
RECOGNIZED_EXTENSIONS = ('.html', '.htm')


def slug_for_key(key: str) -> str:
    """Strip a recognized extension from a document key (``hello-world.htm`` -> ``hello-world``)."""
    for extension in RECOGNIZED_EXTENSIONS:
        if key.endswith(extension):
            return key[:-len(extension)]
    return key


def format_date_prefix(created: datetime) -> str:
    """Year and month as ``YYYY-MM``."""
    return f"{created.year:d}-{created.month:02d}"


def output_filename_for(document: CorpusDocument) -> str:
    """Output filename for a document: ``YYYY-MM-<slug>.md``."""
    return f"{format_date_prefix(document.effective_created)}-{slug_for_key(document.key)}.md"


def build_name_index(documents: Iterable[CorpusDocument]) -> NameIndex:
    """
    Map every document key to its output filename.

    The returned index is frozen; it must be complete before any document is
    rendered, since any document may link to any other.

    Args:
        documents: All documents of the corpus

    Returns:
        Frozen NameIndex
    """
    name_index = NameIndex()
    for document in documents:
        name_index.add(document.key, output_filename_for(document))

    logger.debug(f"Built name index with {len(name_index)} entries")
    return name_index.freeze()


__all__ = ['slug_for_key', 'format_date_prefix', 'output_filename_for', 'build_name_index']
