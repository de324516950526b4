from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_MAX_FILE_SIZE = 100 * 1024 * 1024


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file='.env', env_file_encoding='utf-8')

    app_name: str = 'dirshare'
    app_host: str = '0.0.0.0'
    app_port: int = 8000
    root_dir: str = '.'
    read_only: bool = False
    allow_delete: bool = True
    max_file_size: int = Field(default=DEFAULT_MAX_FILE_SIZE, ge=0)
    log_level: str = 'info'
    cors_origins: str = ''


@dataclass(frozen=True)
class FileServerConfig:
    """Policy shared by every request handler.

    Built once at startup and never mutated, so concurrent handlers can read it
    without locking. ``root`` must already be canonical; use ``from_settings``
    or ``for_root`` to get one.
    """

    root: Path = Path('.')
    read_only: bool = False
    allow_delete: bool = True
    max_file_size: int = DEFAULT_MAX_FILE_SIZE

    @classmethod
    def for_root(cls, root_dir: str | Path, **policy) -> FileServerConfig:
        root = Path(root_dir).resolve(strict=False)
        if not root.exists():
            raise ValueError(f"Cannot access root directory '{root}'")
        if not root.is_dir():
            raise ValueError(f"Root path '{root}' is not a directory")
        return cls(root=root, **policy)

    @classmethod
    def from_settings(cls, source: Settings) -> FileServerConfig:
        return cls.for_root(
            source.root_dir,
            read_only=source.read_only,
            allow_delete=source.allow_delete,
            max_file_size=source.max_file_size,
        )


settings = Settings()
