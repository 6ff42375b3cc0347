"""HTML preprocessor repairing known formatting defects of the blog's rich text."""

import logging
import re
from typing import Optional

logger = logging.getLogger('blog_markdown_migrator.converters.htmlpreprocessor')


class HtmlPreprocessor:
    """
    Applies an ordered set of text-level rewrites to raw document HTML.

    The order matters: bold repair must see the markup before any other
    rewrite touches line breaks, and break collapsing runs last so it
    normalizes whatever the earlier rules left behind.
    """

    UNDERLINE_TAG = re.compile(r'<(/?)u>')
    WELL_DIV = re.compile(r'<div\s+class="well">([\s\S]*?)</div>')
    # Bold lines stick to the previous line: <strong> is emitted ahead of the <br />s
    BOLD_BEFORE_BREAKS = re.compile(r'<strong>((.?<br />)+)')
    HEADING_TRAILING_BREAK = re.compile(r'</h([1-6])><br />')
    BREAK_RUNS = re.compile(r'(<br />(\s+)?){3,}')

    def __init__(self, logger: logging.Logger = None):
        self.logger = logger or logging.getLogger('blog_markdown_migrator.converters.htmlpreprocessor')

    def preprocess(self, html: Optional[str]) -> Optional[str]:
        """
        Run all repair rules over the document body.

        Args:
            html: Raw HTML content; None or empty content is returned untouched

        Returns:
            Repaired HTML
        """
        if not html:
            return html

        html = self.remove_underline(html)
        html = self.convert_wells(html)
        html = self.fix_bold_before_breaks(html)
        html = self.remove_heading_breaks(html)
        html = self.collapse_breaks(html)

        return html

    def remove_underline(self, html: str) -> str:
        """Drop <u> tags; Markdown has no underline."""
        return self.UNDERLINE_TAG.sub('', html)

    def convert_wells(self, html: str) -> str:
        """Turn callout wells into blockquotes."""
        html, count = self.WELL_DIV.subn(r'<blockquote>\1</blockquote>', html)
        if count:
            self.logger.debug(f"Converted {count} well(s) to blockquote")
        return html

    def fix_bold_before_breaks(self, html: str) -> str:
        """Move an opening <strong> behind the line breaks it was emitted in front of."""
        return self.BOLD_BEFORE_BREAKS.sub(r'\1<strong>', html)

    def remove_heading_breaks(self, html: str) -> str:
        return self.HEADING_TRAILING_BREAK.sub(r'</h\1>', html)

    def collapse_breaks(self, html: str) -> str:
        """Collapse three or more consecutive breaks into two."""
        return self.BREAK_RUNS.sub('<br /><br />', html)


__all__ = ['HtmlPreprocessor']
