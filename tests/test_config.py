from __future__ import annotations

import dataclasses
from pathlib import Path

import pytest

from dirshare.config import DEFAULT_MAX_FILE_SIZE, FileServerConfig, Settings


def test_settings_defaults(monkeypatch):
    for name in ('ROOT_DIR', 'READ_ONLY', 'ALLOW_DELETE', 'MAX_FILE_SIZE'):
        monkeypatch.delenv(name, raising=False)

    current = Settings(_env_file=None)

    assert current.root_dir == '.'
    assert current.read_only is False
    assert current.allow_delete is True
    assert current.max_file_size == DEFAULT_MAX_FILE_SIZE == 100 * 1024 * 1024


def test_settings_read_from_environment(monkeypatch, tmp_path):
    monkeypatch.setenv('ROOT_DIR', str(tmp_path))
    monkeypatch.setenv('READ_ONLY', 'true')
    monkeypatch.setenv('ALLOW_DELETE', 'false')
    monkeypatch.setenv('MAX_FILE_SIZE', '2048')

    config = FileServerConfig.from_settings(Settings(_env_file=None))

    assert config.root == tmp_path.resolve()
    assert config.read_only is True
    assert config.allow_delete is False
    assert config.max_file_size == 2048


def test_config_is_immutable(tmp_path):
    config = FileServerConfig.for_root(tmp_path)

    with pytest.raises(dataclasses.FrozenInstanceError):
        config.read_only = True  # type: ignore[misc]


def test_config_canonicalizes_root(tmp_path):
    (tmp_path / 'data').mkdir()

    config = FileServerConfig.for_root(tmp_path / 'data' / '.' / '..' / 'data')

    assert config.root == (tmp_path / 'data').resolve()
    assert config.root.is_absolute()


def test_config_rejects_missing_root(tmp_path):
    with pytest.raises(ValueError):
        FileServerConfig.for_root(tmp_path / 'nope')


def test_config_defaults():
    config = FileServerConfig()

    assert config.root == Path('.')
    assert (config.read_only, config.allow_delete, config.max_file_size) == (False, True, DEFAULT_MAX_FILE_SIZE)
