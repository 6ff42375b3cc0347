"""Tests for reading documents from an exported blog database."""

import json
from datetime import datetime, timezone

import pytest

from fetchers import ExportFetcher, FetcherError
from models import ExportSettings


def write_document(directory, name, items):
    directory.mkdir(parents=True, exist_ok=True)
    (directory / name).write_text(json.dumps(items), encoding='utf-8')


@pytest.fixture
def database(tmp_path):
    return tmp_path / 'blog'


@pytest.fixture
def fetcher(database, tmp_path):
    settings = ExportSettings(
        database=str(database),
        base_url='https://blog.example.com/',
        output_directory=tmp_path / 'out'
    )
    return ExportFetcher(settings)


class TestExportFetcher:
    """Test mapping exported items onto documents."""

    def test_items_mapped(self, database, fetcher):
        write_document(database / 'vContent2', '001.json', {
            'res_title': 'hello-world.htm',
            'Subject': 'Hello "World"',
            'fulldatetime': '2021-03-15T10:00:00+01:00',
            '@created': '2021-03-16T08:00:00Z',
            'CustomCategory': 'News',
            'CustomTags': ['intro', 'welcome'],
            'Rt': '<p>Hi</p>'
        })

        documents = fetcher.list_documents('vContent2')

        assert len(documents) == 1
        document = documents[0]
        assert document.key == 'hello-world.htm'
        assert document.title == 'Hello "World"'
        assert document.created.year == 2021 and document.created.day == 15
        assert document.source_created == datetime(2021, 3, 16, 8, 0, tzinfo=timezone.utc)
        assert document.category == 'News'
        assert document.tags == ['intro', 'welcome']
        assert document.content == '<p>Hi</p>'

    def test_optional_items_missing(self, database, fetcher):
        write_document(database / 'vContent2', '001.json', {
            'res_title': 'minimal.htm',
            '@created': '2018-05-01T12:00:00'
        })

        document = fetcher.list_documents('vContent2')[0]

        assert document.created is None
        assert document.effective_created == datetime(2018, 5, 1, 12, 0)
        assert document.category == ''
        assert document.tags == []
        assert document.content is None

    def test_single_tag_string(self, database, fetcher):
        write_document(database / 'vContent2', '001.json', {
            'res_title': 'a.htm',
            '@created': '2018-05-01T12:00:00',
            'CustomTags': 'solo'
        })

        assert fetcher.list_documents('vContent2')[0].tags == ['solo']

    def test_file_name_order(self, database, fetcher):
        for name, key in (('002.json', 'b.htm'), ('001.json', 'a.htm'), ('010.json', 'c.htm')):
            write_document(database / 'vContent2', name, {'res_title': key, '@created': '2020-01-01'})

        keys = [document.key for document in fetcher.list_documents('vContent2')]

        assert keys == ['a.htm', 'b.htm', 'c.htm']

    def test_invalid_documents_skipped(self, database, fetcher):
        collection = database / 'vContent2'
        write_document(collection, '001.json', {'res_title': 'good.htm', '@created': '2020-01-01'})
        write_document(collection, '002.json', {'Subject': 'no key', '@created': '2020-01-01'})
        write_document(collection, '003.json', {'res_title': 'bad-date.htm', '@created': 'yesterday'})
        write_document(collection, '004.json', ['not', 'an', 'object'])
        (collection / '005.json').write_text('{broken', encoding='utf-8')

        documents = fetcher.list_documents('vContent2')

        assert [document.key for document in documents] == ['good.htm']
        assert fetcher.get_stats() == {'files_read': 1, 'files_skipped': 4}

    def test_missing_collection(self, database, fetcher):
        database.mkdir()

        with pytest.raises(FetcherError):
            fetcher.list_documents('vContent2')
