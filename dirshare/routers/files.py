from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, Request
from fastapi.responses import FileResponse, JSONResponse, Response

from ..deps import declared_length, get_dispatcher, recursive_flag
from ..schemas import DeleteResponse, DirectoryResponse, ErrorResponse, FileInfo, UploadResponse, rfc3339
from ..services.dispatcher import (
    Created,
    Deleted,
    FileContent,
    Listing,
    Outcome,
    Rejected,
    RequestDispatcher,
    Updated,
)
from ..services.errors import ErrorKind

router = APIRouter(tags=['files'])
logger = logging.getLogger('dirshare.files')

ROUTE_METHODS = ['GET', 'HEAD', 'PUT', 'POST', 'PATCH', 'DELETE', 'OPTIONS']


def log_request(request: Request, status: int, message: str, level: int = logging.INFO) -> None:
    logger.log(level, '%s %s %d - %s', request.method, request.url.path, status, message)


def error_response(kind: ErrorKind, message: str, status_code: int, path: str | None) -> JSONResponse:
    body = ErrorResponse(error=kind.value, message=message, path=path)
    return JSONResponse(body.model_dump(by_alias=True, exclude_none=True), status_code=status_code)


def render_outcome(request: Request, outcome: Outcome) -> Response:
    url_path = request.url.path

    if isinstance(outcome, Rejected):
        log_request(request, outcome.status_code, f'{outcome.message}: {outcome.detail}', logging.WARNING)
        return error_response(outcome.kind, outcome.message, outcome.status_code, url_path)

    if isinstance(outcome, FileContent):
        log_request(request, 200, f'served file: {url_path} ({outcome.size} bytes)')
        return FileResponse(outcome.path, media_type=outcome.mime_type or 'application/octet-stream')

    if isinstance(outcome, Listing):
        listing = outcome.listing
        body = DirectoryResponse(
            path=listing.path,
            files=[
                FileInfo(
                    name=entry.name,
                    is_dir=entry.is_dir,
                    size=entry.size,
                    mod_time=rfc3339(entry.modified),
                    path=entry.path,
                    mime_type=entry.mime_type,
                )
                for entry in listing.entries
            ],
            total_size=listing.total_size,
            count=listing.count,
        )
        log_request(request, 200, f'listed directory: {listing.path} ({listing.count} items)')
        return JSONResponse(body.model_dump(by_alias=True, exclude_none=True))

    if isinstance(outcome, (Created, Updated)):
        created = isinstance(outcome, Created)
        status = 201 if created else 200
        message = 'File created successfully' if created else 'File updated successfully'
        body = UploadResponse(message=message, path=url_path, size=outcome.size)
        log_request(request, status, f'{message}: {url_path} ({outcome.size} bytes)')
        return JSONResponse(body.model_dump(by_alias=True), status_code=status)

    if isinstance(outcome, Deleted):
        body = DeleteResponse(message='Successfully deleted', path=url_path)
        log_request(request, 200, f'deleted: {url_path}')
        return JSONResponse(body.model_dump(by_alias=True))

    raise TypeError(f'Unknown outcome {outcome!r}')


@router.api_route('/{request_path:path}', methods=ROUTE_METHODS, include_in_schema=False)
async def serve(request: Request, request_path: str, dispatcher: RequestDispatcher = Depends(get_dispatcher)):
    if request.method == 'OPTIONS':
        return Response(status_code=200)

    outcome = await dispatcher.dispatch(
        request.method,
        request.url.path,
        content=request.stream() if request.method == 'PUT' else None,
        declared_length=declared_length(request),
        recursive=recursive_flag(request),
    )
    return render_outcome(request, outcome)
