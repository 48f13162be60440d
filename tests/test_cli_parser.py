"""Tests for command-line argument parsing."""

import json

import pytest

from cli.config import Config
from cli.models import DownloadCommand, UploadCommand
from cli.parser import ParseError, parse_args

REGISTRY = 'https://registry.test/team/project/generic/chunks/a.bin?version=1'


def test_parse_upload_with_password():
    cmd = parse_args(['-u', 'alice@example.com:s3cret', '-p', 'a.bin', '-r', REGISTRY])

    assert cmd == UploadCommand(
        username='alice@example.com',
        password='s3cret',
        path='a.bin',
        registry=REGISTRY,
        concurrency=None,
    )


def test_parse_upload_without_password():
    cmd = parse_args(['--username', 'alice', '--path', 'a.bin', '--registry', REGISTRY])

    assert cmd.password is None


def test_password_may_contain_colons():
    cmd = parse_args(['-u', 'alice:a:b:c', '-p', 'a.bin', '-r', REGISTRY])

    assert cmd.username == 'alice'
    assert cmd.password == 'a:b:c'


def test_parse_directory_upload():
    cmd = parse_args(['-u', 'alice:pw', '-p', 'dist', '-r', REGISTRY, '--dir', '-c', '3', '--debug'])

    assert isinstance(cmd, UploadCommand)
    assert cmd.directory
    assert cmd.concurrency == 3
    assert cmd.debug


def test_chunk_size_is_given_in_mib():
    cmd = parse_args(['-u', 'alice:pw', '-p', 'a.bin', '-r', REGISTRY, '--chunk-size', '8'])

    assert cmd.chunk_size == 8 * 1024 * 1024


def test_parse_pull():
    cmd = parse_args(['-u', 'alice:pw', '-p', 'out', '-r', REGISTRY, '--pull'])

    assert isinstance(cmd, DownloadCommand)
    assert cmd.command == 'download'
    assert cmd.path == 'out'


@pytest.mark.parametrize('argv,message', [
    (['-u', ':pw', '-p', 'a', '-r', REGISTRY], 'username'),
    (['-u', 'alice', '-p', 'a', '-r', 'not-a-url'], 'Invalid registry URL'),
    (['-u', 'alice', '-p', 'a', '-r', REGISTRY, '-c', '0'], 'concurrency'),
    (['-u', 'alice', '-p', 'a', '-r', REGISTRY, '--pull', '--dir'], 'cannot be combined'),
    (['-u', 'alice', '-p', 'a', '-r', REGISTRY, '--chunk-size', '0'], 'chunk size'),
])
def test_invalid_arguments(argv, message):
    with pytest.raises(ParseError, match=message):
        parse_args(argv)


@pytest.mark.parametrize('argv', [
    ['-p', 'a', '-r', REGISTRY],
    ['-u', 'alice', '-r', REGISTRY],
    ['-u', 'alice', '-p', 'a'],
    ['-u', 'alice', '-p', 'a', '-r', REGISTRY, '-c', 'many'],
])
def test_argparse_errors_raise_parse_error(argv):
    with pytest.raises(ParseError):
        parse_args(argv)


def test_omitted_concurrency_uses_stored_value(tmp_path, monkeypatch):
    monkeypatch.delenv('CHUNKUP_CONCURRENCY', raising=False)
    config_path = tmp_path / 'config.json'
    config_path.write_text(json.dumps({'concurrency': 9}))
    config = Config(config_path)

    cmd = parse_args(['-u', 'alice:pw', '-p', 'a.bin', '-r', REGISTRY])

    assert cmd.concurrency is None
    assert config.transfer_options(cmd.concurrency, cmd.chunk_size).concurrency == 9


def test_omitted_concurrency_uses_environment(tmp_path, monkeypatch):
    monkeypatch.setenv('CHUNKUP_CONCURRENCY', '9')
    config = Config(tmp_path / 'config.json')

    cmd = parse_args(['-u', 'alice:pw', '-p', 'out', '-r', REGISTRY, '--pull'])

    assert config.resolve_concurrency(cmd.concurrency) == 9


def test_concurrency_flag_beats_configuration(tmp_path, monkeypatch):
    monkeypatch.setenv('CHUNKUP_CONCURRENCY', '9')
    config = Config(tmp_path / 'config.json')

    cmd = parse_args(['-u', 'alice:pw', '-p', 'a.bin', '-r', REGISTRY, '-c', '2'])

    assert config.transfer_options(cmd.concurrency, cmd.chunk_size).concurrency == 2
