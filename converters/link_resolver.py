"""Link resolver rewriting embedded images and internal blog links to local targets."""

import logging
import os
from pathlib import Path
from typing import Dict, Mapping, Optional

from models import LinkType, ResolvedLink

from .filename_sanitizer import OPEN_ELEMENT_MARKER, to_valid_filename

logger = logging.getLogger('blog_markdown_migrator.converters.linkresolver')


class LinkResolver:
    """
    Resolves links found while rendering a document.

    1) Embedded images are downloaded and pointed at the local copy
    2) Links to other documents of the corpus point at their new filenames
    3) Everything else is left as is
    """

    def __init__(
        self,
        name_index: Mapping[str, str],
        image_fetcher,
        posts_dir: Path,
        logger: logging.Logger = None
    ):
        """
        Initialize link resolver.

        Args:
            name_index: Document key -> output filename mapping (read only)
            image_fetcher: ImageFetcher used for embedded images
            posts_dir: Directory the Markdown files are written to
            logger: Optional logger instance
        """
        self.name_index = name_index
        self.image_fetcher = image_fetcher
        self.posts_dir = Path(posts_dir)
        self.logger = logger or logging.getLogger('blog_markdown_migrator.converters.linkresolver')

        self.stats = {
            'images_localized': 0,
            'links_rewritten': 0,
            'links_unresolved': 0,
            'links_unsupported': 0
        }

    def resolve(self, link: ResolvedLink) -> ResolvedLink:
        """
        Resolve a single link.

        Args:
            link: Link as discovered in the HTML

        Returns:
            The rewritten link, or the original when nothing applies

        Raises:
            MalformedReferenceError: If an embedded image reference can't be named
            ImageFetchError: If an embedded image can't be downloaded
        """
        if link.link_type is LinkType.IMAGE:
            if self.is_embedded_image(link.url):
                return self._localize_image(link)
            return link

        if link.link_type is LinkType.LINK:
            return self._resolve_internal_link(link)

        self.stats['links_unsupported'] += 1
        self.logger.info(f"Unsupported link type: {link.link_type.value} ({link.url})")
        return link

    @staticmethod
    def is_embedded_image(url: Optional[str]) -> bool:
        """Only images served from a document's rich text carry the open-element marker."""
        return bool(url) and url.lower().endswith(OPEN_ELEMENT_MARKER.lower())

    def _localize_image(self, link: ResolvedLink) -> ResolvedLink:
        base_name = to_valid_filename(link.url)
        local_path = self.image_fetcher.fetch(link.url, base_name)

        self.stats['images_localized'] += 1
        return link.with_url(self.relative_to_posts(local_path))

    def _resolve_internal_link(self, link: ResolvedLink) -> ResolvedLink:
        new_file_name = self.name_index.get(link.url)
        if not new_file_name:
            self.stats['links_unresolved'] += 1
            return link

        self.stats['links_rewritten'] += 1
        self.logger.debug(f"Rewriting internal link {link.url} -> {new_file_name}")
        return link.with_url(new_file_name).with_title(new_file_name)

    def relative_to_posts(self, path: Path) -> str:
        """Calculate the POSIX path of a file relative to the posts directory."""
        prefix = Path(os.path.relpath(Path(path).parent, self.posts_dir)).as_posix()
        return f"{prefix}/{Path(path).name}"

    def get_stats(self) -> Dict[str, int]:
        return self.stats.copy()


__all__ = ['LinkResolver']
