from __future__ import annotations

import asyncio
import errno
import logging
import mimetypes
import os
import stat
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import AsyncIterable, BinaryIO, Optional, Union

from ..config import FileServerConfig
from .errors import (
    AccessFailure,
    DirectoryNotEmpty,
    DirshareError,
    ErrorKind,
    Forbidden,
    MethodNotSupported,
    NotFound,
    STATUS_BY_KIND,
    TooLarge,
)
from .filesystem import FileSystem, LocalFileSystem
from .path_resolver import relative_url, resolve

logger = logging.getLogger('dirshare.dispatcher')

SUPPORTED_METHODS = ('GET', 'PUT', 'DELETE')


@dataclass(frozen=True)
class EntryMetadata:
    name: str
    is_dir: bool
    size: int
    modified: datetime
    path: str
    mime_type: Optional[str] = None


@dataclass(frozen=True)
class DirectoryListing:
    path: str
    entries: tuple[EntryMetadata, ...]
    total_size: int

    @property
    def count(self) -> int:
        return len(self.entries)


@dataclass(frozen=True)
class FileContent:
    path: Path
    size: int
    modified: datetime
    mime_type: Optional[str] = None


@dataclass(frozen=True)
class Listing:
    listing: DirectoryListing


@dataclass(frozen=True)
class Created:
    path: Path
    size: int


@dataclass(frozen=True)
class Updated:
    path: Path
    size: int


@dataclass(frozen=True)
class Deleted:
    path: Path


@dataclass(frozen=True)
class Rejected:
    kind: ErrorKind
    message: str
    detail: str = ''

    @property
    def status_code(self) -> int:
        return STATUS_BY_KIND[self.kind]

    @classmethod
    def from_error(cls, exc: DirshareError) -> Rejected:
        return cls(kind=exc.kind, message=exc.message, detail=exc.detail)


Outcome = Union[FileContent, Listing, Created, Updated, Deleted, Rejected]


def _utc(timestamp: float) -> datetime:
    return datetime.fromtimestamp(timestamp, tz=timezone.utc)


def guess_mime_type(name: str) -> Optional[str]:
    mime_type, _ = mimetypes.guess_type(name, strict=False)
    return mime_type


async def _no_content():
    return
    yield b''


def _sync_handle(handle: BinaryIO) -> None:
    handle.flush()
    os.fsync(handle.fileno())


async def _copy_capped(chunks: AsyncIterable[bytes], handle: BinaryIO, limit: int) -> int:
    written = 0
    async for chunk in chunks:
        if not chunk:
            continue
        room = limit - written
        if len(chunk) > room:
            chunk = chunk[:room]
        await asyncio.to_thread(handle.write, chunk)
        written += len(chunk)
        if written >= limit:
            break
    return written


class RequestDispatcher:
    """Turns a verb plus an untrusted request path into an ``Outcome``.

    Every operation resolves its path through the path resolver first, so the
    filesystem is only ever touched inside the configured root. Failures are
    converted to ``Rejected`` outcomes here and never retried.
    """

    def __init__(self, config: FileServerConfig, fs: FileSystem | None = None):
        self.config = config
        self.root = config.root.resolve(strict=False)
        self.fs = fs or LocalFileSystem()

    def resolve(self, request_path: str) -> Path:
        return resolve(self.root, request_path)

    async def dispatch(
        self,
        method: str,
        request_path: str,
        *,
        content: AsyncIterable[bytes] | None = None,
        declared_length: int | None = None,
        recursive: bool = False,
    ) -> Outcome:
        method = method.upper()
        if method not in SUPPORTED_METHODS:
            return Rejected.from_error(MethodNotSupported(f"Method '{method}' is not supported"))

        try:
            if method == 'PUT':
                self._check_writable()
            elif method == 'DELETE':
                self._check_deletable()
            path = self.resolve(request_path)
        except DirshareError as exc:
            return Rejected.from_error(exc)

        if method == 'GET':
            return await asyncio.to_thread(self.read, path)
        if method == 'PUT':
            return await self.write(path, content if content is not None else _no_content(), declared_length)
        return await asyncio.to_thread(self.delete, path, recursive=recursive)

    def read(self, path: Path) -> Outcome:
        try:
            info = self._stat(path)
            if stat.S_ISDIR(info.st_mode):
                return Listing(self.list_directory(path))
            return FileContent(
                path=path,
                size=info.st_size,
                modified=_utc(info.st_mtime),
                mime_type=guess_mime_type(path.name),
            )
        except DirshareError as exc:
            return Rejected.from_error(exc)

    def list_directory(self, path: Path) -> DirectoryListing:
        try:
            children = list(self.fs.iterdir(path))
        except OSError as exc:
            raise AccessFailure(str(exc), message='Cannot read directory') from exc

        base = relative_url(self.root, path)
        entries: list[EntryMetadata] = []
        total_size = 0
        for child in children:
            try:
                info = self.fs.stat(child)
            except OSError as exc:
                logger.debug('skipping unreadable entry %s: %s', child, exc)
                continue

            is_dir = stat.S_ISDIR(info.st_mode)
            size = 0 if is_dir else info.st_size
            entries.append(
                EntryMetadata(
                    name=child.name,
                    is_dir=is_dir,
                    size=size,
                    modified=_utc(info.st_mtime),
                    path=base.rstrip('/') + '/' + child.name,
                    mime_type=None if is_dir else guess_mime_type(child.name),
                )
            )
            total_size += size

        return DirectoryListing(path=base, entries=tuple(entries), total_size=total_size)

    async def write(
        self,
        path: Path,
        content: AsyncIterable[bytes],
        declared_length: int | None = None,
    ) -> Outcome:
        try:
            return await self._write(path, content, declared_length)
        except DirshareError as exc:
            return Rejected.from_error(exc)

    async def _write(self, path: Path, content: AsyncIterable[bytes], declared_length: int | None) -> Outcome:
        limit = self.config.max_file_size
        self._check_writable()
        # Advisory only: clients may omit or understate Content-Length.
        if declared_length is not None and declared_length > limit:
            raise TooLarge(f'File size {declared_length} exceeds maximum {limit}')
        if path == self.root:
            raise AccessFailure("'/' is a directory", message='Cannot create file')

        existed, handle, staging = await asyncio.to_thread(self._prepare_target, path)

        try:
            with handle:
                written = await _copy_capped(content, handle, limit + 1)
                await asyncio.to_thread(_sync_handle, handle)
            if written > limit:
                raise TooLarge(f'File size exceeds maximum {limit}')
            await asyncio.to_thread(self.fs.commit, staging, path)
        except OSError as exc:
            self.fs.discard(staging)
            raise AccessFailure(str(exc), message='Cannot write file content') from exc
        except Exception:
            self.fs.discard(staging)
            raise

        if existed:
            return Updated(path=path, size=written)
        return Created(path=path, size=written)

    def _prepare_target(self, path: Path) -> tuple[bool, BinaryIO, Path]:
        try:
            self.fs.make_dirs(path.parent)
        except OSError as exc:
            raise AccessFailure(str(exc), message='Cannot create directory') from exc

        existed = self._exists_as_file(path)

        try:
            handle, staging = self.fs.open_staging(path)
        except OSError as exc:
            raise AccessFailure(str(exc), message='Cannot create file') from exc
        return existed, handle, staging

    def delete(self, path: Path, recursive: bool = False) -> Outcome:
        try:
            self._check_deletable()
            if path == self.root:
                raise Forbidden('The root directory cannot be deleted', message='Delete operations not allowed')

            info = self._stat(path, follow_symlinks=False)
            try:
                if not stat.S_ISDIR(info.st_mode):
                    self.fs.remove_file(path)
                elif recursive:
                    self.fs.remove_tree(path)
                else:
                    self.fs.remove_dir(path)
            except OSError as exc:
                if exc.errno in (errno.ENOTEMPTY, errno.EEXIST):
                    raise DirectoryNotEmpty(f"'{relative_url(self.root, path)}' is not empty") from exc
                raise AccessFailure(str(exc), message='Cannot delete') from exc
        except DirshareError as exc:
            return Rejected.from_error(exc)
        return Deleted(path=path)

    def _check_writable(self) -> None:
        if self.config.read_only:
            raise Forbidden('Write operations are disabled', message='Server is read-only')

    def _check_deletable(self) -> None:
        if self.config.read_only:
            raise Forbidden('Delete operations are disabled', message='Server is read-only')
        if not self.config.allow_delete:
            raise Forbidden(
                'Delete operations are disabled by configuration',
                message='Delete operations not allowed',
            )

    def _stat(self, path: Path, follow_symlinks: bool = True) -> os.stat_result:
        try:
            if not follow_symlinks:
                return self.fs.lstat(path)
            return self.fs.stat(path)
        except (FileNotFoundError, NotADirectoryError) as exc:
            raise NotFound(f"'{relative_url(self.root, path)}' does not exist") from exc
        except OSError as exc:
            raise AccessFailure(str(exc)) from exc

    def _exists_as_file(self, path: Path) -> bool:
        try:
            info = self.fs.stat(path)
        except FileNotFoundError:
            return False
        except OSError as exc:
            raise AccessFailure(str(exc), message='Cannot create file') from exc
        if stat.S_ISDIR(info.st_mode):
            raise AccessFailure(f"'{relative_url(self.root, path)}' is a directory", message='Cannot create file')
        return True
