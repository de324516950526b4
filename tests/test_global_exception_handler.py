from __future__ import annotations

import asyncio
import json

from starlette.requests import Request

from dirshare import main


def _request(path: str) -> Request:
    scope = {
        'type': 'http',
        'http_version': '1.1',
        'method': 'GET',
        'scheme': 'http',
        'path': path,
        'raw_path': path.encode(),
        'query_string': b'',
        'headers': [],
        'client': ('127.0.0.1', 12345),
        'server': ('testserver', 80),
    }
    return Request(scope)


def test_unhandled_exception_handler_response_is_safe():
    request = _request('/docs/report.pdf')
    response = asyncio.run(main.unhandled_exception_handler(request, RuntimeError('boom at /tmp/private/path')))

    assert response.status_code == 500
    body = json.loads(response.body)
    assert body['error'] == 'InternalError'
    assert body['message'] == 'Internal server error. Please try again.'
    assert body['path'] == '/docs/report.pdf'
    assert b'/tmp/private/path' not in response.body
