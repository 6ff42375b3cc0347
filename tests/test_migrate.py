"""Tests for the command line entry point."""

import json
import sys

import pytest

import migrate
from config_loader import ENV_OVERRIDES


@pytest.fixture(autouse=True)
def clean_environment(tmp_path, monkeypatch):
    """Run every CLI test without inherited overrides or a stray config.yaml."""
    for var_name in ENV_OVERRIDES:
        monkeypatch.delenv(var_name, raising=False)
    monkeypatch.chdir(tmp_path)


def run_cli(monkeypatch, *args):
    monkeypatch.setattr(sys, 'argv', ['migrate.py', *args])
    return migrate.main()


def write_export(database):
    collection = database / 'vContent2'
    collection.mkdir(parents=True)
    (collection / '001.json').write_text(json.dumps({
        'res_title': 'hello-world.htm',
        'Subject': 'Hello',
        '@created': '2021-03-15T10:00:00',
        'Rt': '<p>Hi</p>'
    }), encoding='utf-8')


class TestMain:
    """Test exit codes and the overall CLI flow."""

    def test_missing_required_settings(self, monkeypatch, capsys):
        assert run_cli(monkeypatch) == 2
        assert 'source.database' in capsys.readouterr().err

    def test_missing_explicit_config_file(self, monkeypatch):
        assert run_cli(monkeypatch, '--config', 'nowhere.yaml') == 2

    def test_invalid_base_url(self, monkeypatch, tmp_path):
        exit_code = run_cli(
            monkeypatch,
            '--database', str(tmp_path / 'blog'),
            '--base-url', 'blog.example.com',
            '--output-dir', str(tmp_path / 'site')
        )

        assert exit_code == 2
        assert not (tmp_path / 'site').exists()

    def test_export_from_arguments(self, monkeypatch, tmp_path):
        write_export(tmp_path / 'blog')

        exit_code = run_cli(
            monkeypatch,
            '--database', str(tmp_path / 'blog'),
            '--base-url', 'https://blog.example.com/',
            '--output-dir', str(tmp_path / 'site'),
            '--author', 'Jane Doe'
        )

        assert exit_code == 0
        text = (tmp_path / 'site' / 'posts' / 'imported' / '2021-03-hello-world.md').read_text(encoding='utf-8')
        assert '  - Jane Doe\n' in text

    def test_export_from_environment(self, monkeypatch, tmp_path):
        write_export(tmp_path / 'blog')
        monkeypatch.setenv('DB_NAME', str(tmp_path / 'blog'))
        monkeypatch.setenv('BASE_URL', 'https://blog.example.com/')
        monkeypatch.setenv('TARGET_BASE_DIR', str(tmp_path / 'site'))
        monkeypatch.setenv('POSTS_DIR', 'blog/posts')

        assert run_cli(monkeypatch) == 0
        assert (tmp_path / 'site' / 'blog' / 'posts' / '2021-03-hello-world.md').exists()

    def test_dry_run_prints_index(self, monkeypatch, tmp_path, capsys):
        write_export(tmp_path / 'blog')

        exit_code = run_cli(
            monkeypatch,
            '--database', str(tmp_path / 'blog'),
            '--base-url', 'https://blog.example.com/',
            '--output-dir', str(tmp_path / 'site'),
            '--dry-run'
        )

        assert exit_code == 0
        assert 'hello-world.htm -> 2021-03-hello-world.md' in capsys.readouterr().out
        assert not (tmp_path / 'site').exists()

    def test_failed_document_exit_code(self, monkeypatch, tmp_path):
        collection = tmp_path / 'blog' / 'vContent2'
        collection.mkdir(parents=True)
        (collection / '001.json').write_text(json.dumps({
            'res_title': 'empty.htm',
            '@created': '2021-03-15T10:00:00'
        }), encoding='utf-8')

        exit_code = run_cli(
            monkeypatch,
            '--database', str(tmp_path / 'blog'),
            '--base-url', 'https://blog.example.com/',
            '--output-dir', str(tmp_path / 'site')
        )

        assert exit_code == 1

    def test_missing_collection_exit_code(self, monkeypatch, tmp_path):
        (tmp_path / 'blog').mkdir()

        exit_code = run_cli(
            monkeypatch,
            '--database', str(tmp_path / 'blog'),
            '--base-url', 'https://blog.example.com/',
            '--output-dir', str(tmp_path / 'site')
        )

        assert exit_code == 1
