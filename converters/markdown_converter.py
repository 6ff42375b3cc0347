"""Markdown converter rendering preprocessed blog HTML into Markdown."""

import logging
import re
from typing import Optional

from bs4 import BeautifulSoup, NavigableString
from markdownify import MarkdownConverter as MarkdownifyConverter

from models import LinkType, ResolvedLink

from .link_resolver import LinkResolver

logger = logging.getLogger('blog_markdown_migrator.converters.markdownconverter')

EXCERPT_SEPARATOR = '<!-- more -->'

BREAK_TAG = '<br />'

# The blog's "continue reading" placeholder, with or without Markdown escaping
CONTINUE_READING_MARKER = re.compile(r'\\?<\$DXContinueReading\$\\?>')

# Hrefs that never point at another document
NON_DOCUMENT_SCHEMES = ('mailto:', 'javascript:', 'tel:')


class InvalidInputError(ValueError):
    """Raised when the converter is handed no HTML at all."""
    pass


class MarkdownConverter(MarkdownifyConverter):
    """
    Converts blog HTML into Markdown.

    This class extends markdownify.MarkdownConverter to provide:
    - Link and image resolution through a LinkResolver
    - Verbatim output for <iframe> (embedded videos) and <script> (presentations)
    - Line-level post-processing of the generated Markdown
    """

    # Tags copied into the Markdown output as raw HTML
    VERBATIM_TAGS = ('iframe', 'script')

    def __init__(self, link_resolver: Optional[LinkResolver] = None, logger: logging.Logger = None, **kwargs):
        """Initialize markdown converter with an optional link resolver."""
        markdownify_options = {
            'heading_style': 'ATX',
            'bullets': '-',
            'escape_asterisks': False,
            'escape_underscores': False,
        }
        markdownify_options.update(kwargs)

        super().__init__(**markdownify_options)

        self.link_resolver = link_resolver
        self.logger = logger or logging.getLogger('blog_markdown_migrator.converters.markdownconverter')

    def render(self, html: Optional[str]) -> str:
        """
        Convert a snippet of HTML into Markdown.

        Args:
            html: The input HTML string (must not be None)

        Returns:
            Markdown text ending with a newline

        Raises:
            InvalidInputError: If html is None
        """
        if html is None:
            raise InvalidInputError("Input HTML must not be None")

        soup = BeautifulSoup(html, 'lxml')
        markdown = self.convert_soup(soup)

        return self._post_process_markdown(markdown)

    def _post_process_markdown(self, markdown: str) -> str:
        """Trim every line and replace the continue-reading marker with an excerpt separator."""
        lines = [
            CONTINUE_READING_MARKER.sub(EXCERPT_SEPARATOR, line.strip())
            for line in markdown.split('\n')
        ]

        while lines and not lines[-1]:
            lines.pop()

        return '\n'.join(lines) + '\n'

    def _resolve(self, link: ResolvedLink) -> ResolvedLink:
        if self.link_resolver is None:
            return link
        return self.link_resolver.resolve(link)

    @staticmethod
    def _classify_href(href: str) -> LinkType:
        if href.startswith('#') or href.lower().startswith(NON_DOCUMENT_SCHEMES):
            return LinkType.OTHER
        return LinkType.LINK

    def convert_a(self, el, text, parent_tags=None, **kwargs):
        """Handle anchors, rewriting links to other blog documents."""
        href = el.get('href')
        if href:
            link = self._resolve(ResolvedLink(
                link_type=self._classify_href(href),
                url=href,
                title=el.get('title') or ''
            ))
            el['href'] = link.url
            if link.title:
                el['title'] = link.title

        return super().convert_a(el, text, parent_tags)

    def convert_img(self, el, text, parent_tags=None, **kwargs):
        """Handle images, downloading embedded ones."""
        alt = el.get('alt') or ''
        src = el.get('src') or ''
        title = el.get('title') or ''

        if src:
            link = self._resolve(ResolvedLink(link_type=LinkType.IMAGE, url=src, title=title))
            src, title = link.url, link.title

        title_part = ' "%s"' % title.replace('"', r'\"') if title else ''
        return f'![{alt}]({src}{title_part})'

    def _convert_verbatim(self, el, text, parent_tags=None, **kwargs):
        """Keep the element's original markup."""
        return str(el)

    convert_iframe = _convert_verbatim
    convert_script = _convert_verbatim

    @staticmethod
    def _adjacent_node(el, direction: str):
        """Nearest sibling in ``direction``, skipping whitespace-only text."""
        sibling = getattr(el, direction)
        while isinstance(sibling, NavigableString) and not sibling.strip():
            sibling = getattr(sibling, direction)
        return sibling

    def convert_br(self, el, text, parent_tags=None, **kwargs):
        """
        Handle line breaks.

        A break inside a run of breaks would only add blank lines, which
        Markdown discards, so such runs are kept as literal ``<br />`` tags.
        A lone break stays a regular hard line break.
        """
        parent_tags = parent_tags or set()
        if '_inline' not in parent_tags:
            neighbours = (self._adjacent_node(el, 'previous_sibling'), self._adjacent_node(el, 'next_sibling'))
            if any(getattr(node, 'name', None) == 'br' for node in neighbours):
                return BREAK_TAG + text

        return super().convert_br(el, text, parent_tags)


__all__ = ['MarkdownConverter', 'InvalidInputError', 'EXCERPT_SEPARATOR']
