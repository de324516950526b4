from __future__ import annotations

import os
import shutil
import stat
import tempfile
from pathlib import Path
from typing import BinaryIO, Iterable, Protocol


class FileSystem(Protocol):
    def stat(self, path: Path) -> os.stat_result:
        ...

    def lstat(self, path: Path) -> os.stat_result:
        ...

    def iterdir(self, path: Path) -> Iterable[Path]:
        ...

    def make_dirs(self, path: Path) -> None:
        ...

    def open_staging(self, target: Path) -> tuple[BinaryIO, Path]:
        ...

    def commit(self, staging: Path, target: Path) -> None:
        ...

    def discard(self, staging: Path) -> None:
        ...

    def remove_file(self, path: Path) -> None:
        ...

    def remove_dir(self, path: Path) -> None:
        ...

    def remove_tree(self, path: Path) -> None:
        ...


class LocalFileSystem:
    """Direct access to the host filesystem.

    Writes go to a hidden staging file in the target's directory and are moved
    into place with ``os.replace``, so readers never observe a half-written file.
    """

    new_file_mode = 0o644

    def stat(self, path: Path) -> os.stat_result:
        return path.stat()

    def lstat(self, path: Path) -> os.stat_result:
        return path.lstat()

    def iterdir(self, path: Path) -> Iterable[Path]:
        return sorted(path.iterdir(), key=lambda p: p.name)

    def make_dirs(self, path: Path) -> None:
        path.mkdir(parents=True, exist_ok=True)

    def open_staging(self, target: Path) -> tuple[BinaryIO, Path]:
        fd, tmp_path = tempfile.mkstemp(prefix=f'.{target.name}.', suffix='.tmp', dir=str(target.parent))
        return os.fdopen(fd, 'wb'), Path(tmp_path)

    def commit(self, staging: Path, target: Path) -> None:
        try:
            mode = stat.S_IMODE(target.stat().st_mode)
        except FileNotFoundError:
            mode = self.new_file_mode
        os.chmod(staging, mode)
        os.replace(staging, target)
        dir_fd = os.open(str(target.parent), os.O_RDONLY)
        try:
            os.fsync(dir_fd)
        finally:
            os.close(dir_fd)

    def discard(self, staging: Path) -> None:
        staging.unlink(missing_ok=True)

    def remove_file(self, path: Path) -> None:
        path.unlink()

    def remove_dir(self, path: Path) -> None:
        os.rmdir(path)

    def remove_tree(self, path: Path) -> None:
        shutil.rmtree(path)
