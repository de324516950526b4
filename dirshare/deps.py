from __future__ import annotations

from fastapi import Request

from .services.dispatcher import RequestDispatcher


def get_dispatcher(request: Request) -> RequestDispatcher:
    dispatcher = getattr(request.app.state, 'dispatcher', None)
    if dispatcher is None:
        raise RuntimeError('File server is not initialised')
    return dispatcher


def declared_length(request: Request) -> int | None:
    raw = request.headers.get('content-length')
    if raw is None:
        return None
    try:
        value = int(raw)
    except ValueError:
        return None
    return value if value >= 0 else None


def recursive_flag(request: Request) -> bool:
    return request.query_params.get('recursive', '').strip().lower() in {'true', '1'}
