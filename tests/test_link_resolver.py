"""Tests for resolving image and document links."""

import unittest
from pathlib import Path
from unittest.mock import Mock

from converters.filename_sanitizer import MalformedReferenceError
from converters.link_resolver import LinkResolver
from models import LinkType, NameIndex, ResolvedLink


class TestLinkResolver(unittest.TestCase):
    def setUp(self):
        self.name_index = NameIndex()
        self.name_index.add('hello-world.htm', '2021-03-hello-world.md')
        self.name_index.freeze()

        self.posts_dir = Path('/out/posts/imported')
        self.images_dir = Path('/out/images/imported')
        self.image_fetcher = Mock()
        self.image_fetcher.fetch.side_effect = lambda ref, base: self.images_dir / f"{base}.jpg"

        self.resolver = LinkResolver(self.name_index, self.image_fetcher, self.posts_dir)

    def test_internal_link_rewritten(self):
        """Test a key found in the name index is rewritten to its filename."""
        link = ResolvedLink(LinkType.LINK, 'hello-world.htm', 'Hello')

        resolved = self.resolver.resolve(link)

        self.assertEqual(resolved.url, '2021-03-hello-world.md')
        self.assertEqual(resolved.title, '2021-03-hello-world.md')
        self.assertEqual(self.resolver.get_stats()['links_rewritten'], 1)

    def test_unknown_link_unchanged(self):
        """Test links not in the name index are left exactly as they were."""
        link = ResolvedLink(LinkType.LINK, 'https://example.com/page?x=1&y=2', 'Ext')

        resolved = self.resolver.resolve(link)

        self.assertEqual(resolved, link)
        self.assertEqual(self.resolver.get_stats()['links_unresolved'], 1)

    def test_lookup_is_verbatim(self):
        link = ResolvedLink(LinkType.LINK, 'Hello-World.htm')

        self.assertEqual(self.resolver.resolve(link), link)

    def test_embedded_image_fetched_and_relative(self):
        link = ResolvedLink(LinkType.IMAGE, 'hello-world.htm/content/M2?OpenElement')

        resolved = self.resolver.resolve(link)

        self.image_fetcher.fetch.assert_called_once_with(
            'hello-world.htm/content/M2?OpenElement', 'hello-world-M2'
        )
        self.assertEqual(resolved.url, '../../images/imported/hello-world-M2.jpg')
        self.assertEqual(resolved.link_type, LinkType.IMAGE)

    def test_marker_match_is_case_insensitive(self):
        self.assertTrue(LinkResolver.is_embedded_image('post.htm/content/M1?openelement'))
        self.assertFalse(LinkResolver.is_embedded_image('/images/logo.png'))
        self.assertFalse(LinkResolver.is_embedded_image(''))

    def test_plain_image_not_fetched(self):
        link = ResolvedLink(LinkType.IMAGE, 'https://cdn.example.com/logo.png')

        resolved = self.resolver.resolve(link)

        self.assertEqual(resolved, link)
        self.image_fetcher.fetch.assert_not_called()

    def test_malformed_image_reference_propagates(self):
        link = ResolvedLink(LinkType.IMAGE, 'broken?OpenElement')

        with self.assertRaises(MalformedReferenceError):
            self.resolver.resolve(link)

    def test_other_link_passed_through(self):
        """Test unsupported link kinds are only counted."""
        link = ResolvedLink(LinkType.OTHER, '#top')

        resolved = self.resolver.resolve(link)

        self.assertEqual(resolved, link)
        self.assertEqual(self.resolver.get_stats()['links_unsupported'], 1)

    def test_relative_to_posts(self):
        self.assertEqual(
            self.resolver.relative_to_posts(Path('/out/posts/imported/pic.png')),
            './pic.png'
        )


if __name__ == '__main__':
    unittest.main()
