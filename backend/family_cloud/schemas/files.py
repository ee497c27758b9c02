"""File tree schemas: the JSON shape returned by the storage endpoints."""

from __future__ import annotations

from datetime import datetime
from typing import Literal, Union

from pydantic import BaseModel, ConfigDict, Field


class File(BaseModel):
    """Leaf of a file tree. Immutable once built."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    name: str
    size: int = Field(ge=0)
    last_modified: datetime | None = Field(default=None, alias="lastModified")
    is_dir: Literal[False] = Field(default=False, alias="isDir")


class Folder(BaseModel):
    """Internal node. ``size`` is kept equal to the sum of its descendants."""

    model_config = ConfigDict(populate_by_name=True)

    name: str
    size: int = 0
    items: list[FileItem] = Field(default_factory=list)
    last_modified: datetime | None = Field(default=None, alias="lastModified")
    is_dir: Literal[True] = Field(default=True, alias="isDir")


FileItem = Union[File, Folder]

Folder.model_rebuild()


class FolderSize(BaseModel):
    size: int


class UploadRequest(BaseModel):
    file: str


class PresignedUrl(BaseModel):
    url: str
