from __future__ import annotations

import pytest
from fastapi.responses import JSONResponse
from starlette.requests import Request

from dirshare import main


def _make_request(method: str, path: str) -> Request:
    scope = {
        'type': 'http',
        'http_version': '1.1',
        'method': method,
        'scheme': 'http',
        'path': path,
        'raw_path': path.encode(),
        'query_string': b'',
        'headers': [],
        'client': ('127.0.0.1', 12345),
        'server': ('testserver', 80),
    }

    async def _receive():
        return {'type': 'http.request', 'body': b'', 'more_body': False}

    return Request(scope, _receive)


@pytest.mark.asyncio
async def test_security_headers_added_on_success_response():
    request = _make_request('GET', '/a/b.txt')

    async def _next(_request: Request):
        return JSONResponse({'ok': True})

    response = await main.security_middleware(request, _next)

    assert response.status_code == 200
    assert response.headers['X-Frame-Options'] == 'DENY'
    assert response.headers['X-Content-Type-Options'] == 'nosniff'
    assert response.headers['Referrer-Policy'] == 'strict-origin-when-cross-origin'


@pytest.mark.asyncio
async def test_security_headers_added_on_error_response():
    request = _make_request('PUT', '/x.txt')

    async def _next(_request: Request):
        return JSONResponse({'error': 'Forbidden'}, status_code=403)

    response = await main.security_middleware(request, _next)

    assert response.status_code == 403
    assert response.headers['X-Content-Type-Options'] == 'nosniff'


def test_parse_cors_origins_drops_blanks():
    assert main._parse_cors_origins(' https://a.example , ,https://b.example') == [
        'https://a.example',
        'https://b.example',
    ]
