"""Tests for writing a document as front matter + Markdown."""

from datetime import datetime
from pathlib import Path
from unittest.mock import Mock, patch

import pytest

from converters import InvalidInputError, MarkdownConverter
from exporters.markdown_exporter import MarkdownExporter, WriteFailureError, escape_yaml_string
from exporters.name_index import build_name_index
from models import CorpusDocument, ExportSettings


def make_document(**overrides):
    values = {
        'key': 'hello-world.htm',
        'title': 'Hello World',
        'source_created': datetime(2021, 3, 15, 9, 30),
        'category': '',
        'tags': [],
        'content': '<p>Hi</p>',
    }
    values.update(overrides)
    return CorpusDocument(**values)


def make_exporter(tmp_path, documents, create_posts_dir=True, **settings_overrides):
    settings = ExportSettings(
        database='blog',
        base_url='https://blog.example.com/',
        output_directory=tmp_path,
        author='Jane Doe',
        **settings_overrides
    )
    if create_posts_dir:
        settings.posts_path.mkdir(parents=True)
    return MarkdownExporter(settings, build_name_index(documents), MarkdownConverter()), settings


class TestFrontMatter:
    """Test the YAML front matter block."""

    def test_full_front_matter(self, tmp_path):
        document = make_document(category='Development', tags=['python', 'domino'])
        exporter, _ = make_exporter(tmp_path, [document])

        frontmatter = exporter._generate_frontmatter(document)

        assert frontmatter == (
            '---\n'
            'authors:\n'
            '  - Jane Doe\n'
            '\n'
            'title: "Hello World"\n'
            '\n'
            'slug: hello-world\n'
            '\n'
            'date: 2021-03-15T09:30:00\n'
            '\n'
            'categories:\n'
            '  - Development\n'
            '\n'
            'tags:\n'
            '  - python\n'
            '  - domino\n'
            '---\n'
            '\n'
        )

    def test_empty_category_omitted(self, tmp_path):
        document = make_document(tags=['intro'])
        exporter, _ = make_exporter(tmp_path, [document])

        frontmatter = exporter._generate_frontmatter(document)

        assert 'categories:' not in frontmatter
        assert 'tags:\n  - intro\n' in frontmatter

    def test_empty_tags_omitted(self, tmp_path):
        document = make_document(category='News')
        exporter, _ = make_exporter(tmp_path, [document])

        assert 'tags:' not in exporter._generate_frontmatter(document)

    def test_empty_first_tag_omits_tags(self, tmp_path):
        document = make_document(tags=['', 'later'])
        exporter, _ = make_exporter(tmp_path, [document])

        assert 'tags:' not in exporter._generate_frontmatter(document)

    def test_title_escaped(self, tmp_path):
        document = make_document(title='Say "Hi" C:\\Temp')
        exporter, _ = make_exporter(tmp_path, [document])

        frontmatter = exporter._generate_frontmatter(document)

        assert 'title: "Say \\"Hi\\" C:\\\\Temp"\n' in frontmatter

    def test_explicit_creation_time_used(self, tmp_path):
        document = make_document(created=datetime(2020, 12, 24, 18, 0))
        exporter, _ = make_exporter(tmp_path, [document])

        assert 'date: 2020-12-24T18:00:00\n' in exporter._generate_frontmatter(document)


class TestEscapeYamlString:
    def test_quotes_and_backslashes(self):
        assert escape_yaml_string('a "b" \\c') == 'a \\"b\\" \\\\c'


class TestExportDocument:
    """Test writing documents to disk."""

    def test_writes_mapped_file(self, tmp_path):
        document = make_document()
        exporter, settings = make_exporter(tmp_path, [document])

        output_file = exporter.export_document(document)

        assert output_file == settings.posts_path / '2021-03-hello-world.md'
        text = output_file.read_text(encoding='utf-8')
        assert text.startswith('---\nauthors:\n')
        assert text.endswith('---\n\nHi\n')

    def test_existing_file_replaced(self, tmp_path):
        document = make_document()
        exporter, settings = make_exporter(tmp_path, [document])
        target = settings.posts_path / '2021-03-hello-world.md'
        target.write_text('stale content', encoding='utf-8')

        exporter.export_document(document)

        assert 'stale content' not in target.read_text(encoding='utf-8')

    def test_debug_html_written(self, tmp_path):
        document = make_document(content='<p>a<br /><br /><br />b</p>')
        exporter, settings = make_exporter(tmp_path, [document], html_output=True)

        exporter.export_document(document)

        html_file = settings.posts_path / 'hello-world.html'
        assert html_file.read_text(encoding='utf-8') == '<p>a<br /><br />b</p>'

    def test_debug_html_failure_keeps_markdown(self, tmp_path):
        """Test an unwritable debug file is logged and the Markdown file is still complete."""
        document = make_document(content='<p>Body text</p>')
        exporter, settings = make_exporter(tmp_path, [document], html_output=True)
        exporter.logger = Mock()
        (settings.posts_path / 'hello-world.html').mkdir()

        output_file = exporter.export_document(document)

        text = output_file.read_text(encoding='utf-8')
        assert text.startswith('---\nauthors:\n')
        assert text.endswith('---\n\nBody text\n')
        exporter.logger.error.assert_called_once()
        assert 'hello-world.html' in exporter.logger.error.call_args[0][0]

    def test_delete_failure_is_logged_and_write_attempted(self, tmp_path):
        document = make_document()
        exporter, settings = make_exporter(tmp_path, [document])
        exporter.logger = Mock()
        target = settings.posts_path / '2021-03-hello-world.md'
        target.write_text('stale content', encoding='utf-8')

        with patch.object(Path, 'unlink', side_effect=OSError('file is locked')):
            output_file = exporter.export_document(document)

        assert output_file == target
        assert target.read_text(encoding='utf-8').endswith('---\n\nHi\n')
        exporter.logger.error.assert_called_once()
        assert 'file is locked' in exporter.logger.error.call_args[0][0]

    def test_debug_html_not_written_by_default(self, tmp_path):
        document = make_document()
        exporter, settings = make_exporter(tmp_path, [document])

        exporter.export_document(document)

        assert not (settings.posts_path / 'hello-world.html').exists()

    def test_missing_content_rejected(self, tmp_path):
        document = make_document(content=None)
        exporter, _ = make_exporter(tmp_path, [document])

        with pytest.raises(InvalidInputError):
            exporter.export_document(document)

    def test_write_failure(self, tmp_path):
        """Test an unwritable target raises WriteFailureError."""
        document = make_document()
        exporter, _ = make_exporter(tmp_path, [document], create_posts_dir=False)

        with pytest.raises(WriteFailureError):
            exporter.export_document(document)
