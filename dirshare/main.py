from __future__ import annotations

import logging
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware

from .config import FileServerConfig, settings
from .routers import files
from .services.dispatcher import RequestDispatcher
from .services.errors import ErrorKind

logger = logging.getLogger('dirshare.main')

_SECURITY_HEADERS = {
    'X-Frame-Options': 'DENY',
    'X-Content-Type-Options': 'nosniff',
    'Referrer-Policy': 'strict-origin-when-cross-origin',
}


def configure_logging(level: str) -> None:
    root_logger = logging.getLogger('dirshare')
    root_logger.setLevel(level.upper())
    if not root_logger.handlers:
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter('%(levelname)s %(name)s - %(message)s'))
        root_logger.addHandler(handler)


@asynccontextmanager
async def lifespan(app: FastAPI):
    configure_logging(settings.log_level)
    try:
        config = FileServerConfig.from_settings(settings)
    except ValueError as exc:
        raise RuntimeError(f'Refusing to start: {exc}') from exc

    app.state.dispatcher = RequestDispatcher(config)
    logger.info(
        'Serving %s (read_only=%s, allow_delete=%s, max_file_size=%d)',
        config.root,
        config.read_only,
        config.allow_delete,
        config.max_file_size,
    )
    yield
    app.state.dispatcher = None


app = FastAPI(title=settings.app_name, lifespan=lifespan, docs_url=None, redoc_url=None, openapi_url=None)


def _parse_cors_origins(value: str) -> list[str]:
    return [origin.strip() for origin in value.split(',') if origin.strip()]


cors_origins = _parse_cors_origins(settings.cors_origins)
if cors_origins:
    app.add_middleware(
        CORSMiddleware,
        allow_origins=cors_origins,
        allow_methods=['GET', 'PUT', 'DELETE', 'OPTIONS'],
        allow_headers=['Content-Type', 'Content-Length'],
    )


def _apply_security_headers(response):
    for key, value in _SECURITY_HEADERS.items():
        response.headers[key] = value
    return response


@app.middleware('http')
async def security_middleware(request: Request, call_next):
    response = await call_next(request)
    return _apply_security_headers(response)


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception):
    logger.exception('Unhandled error for %s %s', request.method, request.url.path, exc_info=exc)
    return files.error_response(
        ErrorKind.INTERNAL_ERROR,
        'Internal server error. Please try again.',
        500,
        request.url.path,
    )


@app.get('/healthz')
def healthz():
    return {'ok': True}


app.include_router(files.router)


def run() -> None:
    uvicorn.run(app, host=settings.app_host, port=settings.app_port, log_level=settings.log_level)
