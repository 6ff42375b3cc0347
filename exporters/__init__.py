"""Markdown export package for the blog to Markdown migration pipeline.

Package Structure:
- name_index: Document key -> output filename mapping, built before any export
- image_fetcher: Downloads embedded images into the image directory, once per run
- markdown_exporter: Writes one document as front matter + Markdown body

Configuration Referenced:
- export.output_directory: Base output path
- export.posts_directory / export.images_directory: Subdirectories for posts and images
- export.author: Author listed in every front matter block
- export.html_output: Also write the repaired HTML for inspection
"""

from .name_index import build_name_index, format_date_prefix, output_filename_for, slug_for_key
from .image_fetcher import (
    DownloadFailedError,
    ImageFetcher,
    ImageFetchError,
    UnknownContentTypeError
)
from .markdown_exporter import MarkdownExporter, WriteFailureError

__all__ = [
    'build_name_index',
    'format_date_prefix',
    'output_filename_for',
    'slug_for_key',
    'ImageFetcher',
    'ImageFetchError',
    'DownloadFailedError',
    'UnknownContentTypeError',
    'MarkdownExporter',
    'WriteFailureError'
]
