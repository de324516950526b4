from __future__ import annotations

from enum import Enum


class ErrorKind(str, Enum):
    PATH_TRAVERSAL = 'PathTraversal'
    OUTSIDE_ROOT = 'OutsideRoot'
    RESOLUTION_FAILURE = 'ResolutionFailure'
    NOT_FOUND = 'NotFound'
    ACCESS_FAILURE = 'AccessFailure'
    FORBIDDEN = 'Forbidden'
    TOO_LARGE = 'TooLarge'
    DIRECTORY_NOT_EMPTY = 'DirectoryNotEmpty'
    METHOD_NOT_SUPPORTED = 'MethodNotSupported'
    INTERNAL_ERROR = 'InternalError'


STATUS_BY_KIND: dict[ErrorKind, int] = {
    ErrorKind.PATH_TRAVERSAL: 400,
    ErrorKind.OUTSIDE_ROOT: 400,
    ErrorKind.RESOLUTION_FAILURE: 400,
    ErrorKind.FORBIDDEN: 403,
    ErrorKind.NOT_FOUND: 404,
    ErrorKind.METHOD_NOT_SUPPORTED: 405,
    ErrorKind.TOO_LARGE: 413,
    ErrorKind.ACCESS_FAILURE: 500,
    ErrorKind.DIRECTORY_NOT_EMPTY: 500,
    ErrorKind.INTERNAL_ERROR: 500,
}


class DirshareError(Exception):
    """Base for every failure the dispatcher turns into a ``Rejected`` outcome.

    ``message`` is the short human-readable summary shown to clients,
    ``detail`` carries the specifics (offending path, limits, OS error text).
    """

    kind: ErrorKind = ErrorKind.INTERNAL_ERROR
    message: str = 'Internal server error'

    def __init__(self, detail: str = '', message: str | None = None):
        self.detail = detail
        if message is not None:
            self.message = message
        super().__init__(detail or self.message)

    @property
    def status_code(self) -> int:
        return STATUS_BY_KIND[self.kind]


class PathRejected(DirshareError):
    message = 'Invalid path'


class PathTraversal(PathRejected):
    kind = ErrorKind.PATH_TRAVERSAL


class OutsideRoot(PathRejected):
    kind = ErrorKind.OUTSIDE_ROOT


class ResolutionFailure(PathRejected):
    kind = ErrorKind.RESOLUTION_FAILURE


class NotFound(DirshareError):
    kind = ErrorKind.NOT_FOUND
    message = 'File not found'


class AccessFailure(DirshareError):
    kind = ErrorKind.ACCESS_FAILURE
    message = 'Cannot access file'


class Forbidden(DirshareError):
    kind = ErrorKind.FORBIDDEN
    message = 'Operation not allowed'


class TooLarge(DirshareError):
    kind = ErrorKind.TOO_LARGE
    message = 'File too large'


class DirectoryNotEmpty(DirshareError):
    kind = ErrorKind.DIRECTORY_NOT_EMPTY
    message = 'Directory not empty'


class MethodNotSupported(DirshareError):
    kind = ErrorKind.METHOD_NOT_SUPPORTED
    message = 'Method not allowed'
