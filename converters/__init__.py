"""Converters package for blog HTML to Markdown conversion."""

import logging

from .filename_sanitizer import MalformedReferenceError, to_valid_filename
from .html_preprocessor import HtmlPreprocessor
from .link_resolver import LinkResolver
from .markdown_converter import EXCERPT_SEPARATOR, InvalidInputError, MarkdownConverter

logger = logging.getLogger('blog_markdown_migrator.converters')


def convert_html(html, link_resolver=None, logger=None):
    """
    Convenience function to convert raw blog HTML to Markdown.

    This runs the conversion pipeline without any file I/O:
    1. HTML repair (underline, wells, bold/line-break defects, break runs)
    2. Markdown generation using markdownify, resolving links if a resolver is given
    3. Line trimming and excerpt separator insertion

    Args:
        html: Raw document HTML
        link_resolver: Optional LinkResolver for images and internal links
        logger: Optional logger instance (uses module logger if not provided)

    Returns:
        str: Markdown text

    Example:
        >>> from converters import convert_html
        >>> convert_html('<p>Hello<br /><br /><br />World</p>')
        'Hello<br /><br />World\\n'
    """
    if logger is None:
        logger = logging.getLogger('blog_markdown_migrator.converters')

    preprocessor = HtmlPreprocessor(logger)
    converter = MarkdownConverter(link_resolver=link_resolver, logger=logger)
    return converter.render(preprocessor.preprocess(html))


__all__ = [
    'convert_html',
    'to_valid_filename',
    'MalformedReferenceError',
    'HtmlPreprocessor',
    'LinkResolver',
    'MarkdownConverter',
    'InvalidInputError',
    'EXCERPT_SEPARATOR'
]
