from __future__ import annotations

import posixpath
from pathlib import Path, PurePosixPath

from .errors import OutsideRoot, PathTraversal, ResolutionFailure

_PARENT = '..'


def _segments(path: str) -> list[str]:
    return path.replace('\\', '/').split('/')


def _has_parent_segment(path: str) -> bool:
    return _PARENT in _segments(path)


def _canonical(path: Path, what: str) -> Path:
    try:
        return path.resolve(strict=False)
    except (OSError, RuntimeError, ValueError) as exc:
        raise ResolutionFailure(f'cannot resolve {what}: {exc}') from exc


def ensure_within_root(root: Path, candidate: Path) -> Path:
    # Component-wise comparison: '/data-other' does not start with root '/data'.
    if candidate != root and root not in candidate.parents:
        raise OutsideRoot('path outside of allowed directory')
    return candidate


def resolve(root: str | Path, request_path: str) -> Path:
    """Map an untrusted URL path onto a filesystem path confined to ``root``.

    Raises ``PathTraversal`` when any ``..`` segment is present (under either
    separator convention), ``OutsideRoot`` when the canonical result escapes
    ``root`` (including through symlinks) and ``ResolutionFailure`` when the
    path cannot be canonicalized at all.

    The returned path is the lexical join under the canonical root, so a
    symlink inside root is operated on as the entry the client named.
    Backslashes only count as separators for the traversal check.
    """
    if _has_parent_segment(request_path):
        raise PathTraversal('path traversal not allowed')
    if '\x00' in request_path:
        raise ResolutionFailure('cannot resolve requested path: embedded null byte')

    normalized = posixpath.normpath(request_path or '.')
    if _has_parent_segment(normalized):
        raise PathTraversal('path traversal not allowed')

    relative = normalized.lstrip('/')
    if relative in ('', '.'):
        relative = ''

    base = _canonical(Path(root), 'data directory')
    target = base / relative
    ensure_within_root(base, _canonical(target, 'requested path'))
    return target


def relative_url(root: Path, path: Path) -> str:
    """Render a confined path relative to root with forward slashes, e.g. ``/a/b.txt``."""
    parts = path.relative_to(root).parts
    return str(PurePosixPath('/', *parts))
