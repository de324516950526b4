from __future__ import annotations

from datetime import datetime, timezone
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


def rfc3339(value: datetime | None = None) -> str:
    value = value or datetime.now(timezone.utc)
    return value.astimezone(timezone.utc).strftime('%Y-%m-%dT%H:%M:%SZ')


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class FileInfo(CamelModel):
    name: str
    is_dir: bool
    size: int
    mod_time: str
    path: str
    mime_type: Optional[str] = None


class DirectoryResponse(CamelModel):
    path: str
    files: list[FileInfo] = Field(default_factory=list)
    total_size: int
    count: int


class UploadResponse(CamelModel):
    message: str
    path: str
    size: int
    timestamp: str = Field(default_factory=rfc3339)


class DeleteResponse(CamelModel):
    message: str
    path: str
    timestamp: str = Field(default_factory=rfc3339)


class ErrorResponse(CamelModel):
    error: str
    message: str
    timestamp: str = Field(default_factory=rfc3339)
    path: Optional[str] = None
