"""Storage routes: browse the bucket and hand out presigned transfer URLs."""

from __future__ import annotations

import asyncio
import logging
from typing import Awaitable, TypeVar

from fastapi import APIRouter, Depends, HTTPException, status

from family_cloud.api.deps import get_app_settings, get_current_user, get_storage_service
from family_cloud.config import Settings
from family_cloud.schemas.files import Folder, FolderSize, PresignedUrl, UploadRequest
from family_cloud.services.listing import StorageError
from family_cloud.services.storage_service import StorageService

logger = logging.getLogger(__name__)
router = APIRouter(dependencies=[Depends(get_current_user)])

T = TypeVar("T")

_FORBIDDEN_CODES = {"AccessDenied", "InvalidAccessKeyId", "ExpiredToken", "SignatureDoesNotMatch"}
_NOT_FOUND_CODES = {"NoSuchBucket", "NoSuchKey"}


def _storage_failure(exc: StorageError) -> HTTPException:
    if exc.code in _FORBIDDEN_CODES:
        return HTTPException(status.HTTP_403_FORBIDDEN, f"Storage access denied ({exc.code})")
    if exc.code in _NOT_FOUND_CODES:
        return HTTPException(status.HTTP_404_NOT_FOUND, f"Storage not found ({exc.code})")
    return HTTPException(status.HTTP_502_BAD_GATEWAY, f"Storage request failed ({exc.code})")


async def _bounded(call: Awaitable[T], timeout: float) -> T:
    """Await ``call`` for at most ``timeout`` seconds.

    On expiry the call is cancelled, so a paginated listing stops requesting
    pages as soon as the client is answered.
    """
    try:
        return await asyncio.wait_for(call, timeout=timeout)
    except asyncio.TimeoutError:
        logger.warning("Storage call exceeded %.1fs", timeout)
        raise HTTPException(status.HTTP_504_GATEWAY_TIMEOUT, "Request timed out")
    except StorageError as exc:
        raise _storage_failure(exc)


@router.get("/list", response_model=Folder)
async def list_objects(
    storage: StorageService = Depends(get_storage_service),
    settings: Settings = Depends(get_app_settings),
):
    """Every object in the bucket as a folder tree with aggregated sizes."""
    return await _bounded(storage.list_objects(), settings.list_timeout_seconds)


@router.get("/folder", response_model=Folder)
async def list_folder(
    prefix: str = "",
    storage: StorageService = Depends(get_storage_service),
    settings: Settings = Depends(get_app_settings),
):
    """Files and sub-folders directly under ``prefix``; sub-folder sizes are not computed."""
    return await _bounded(storage.list_folder(prefix), settings.list_timeout_seconds)


@router.get("/folder/size", response_model=FolderSize)
async def get_folder_size(
    prefix: str = "",
    storage: StorageService = Depends(get_storage_service),
    settings: Settings = Depends(get_app_settings),
):
    size = await _bounded(storage.get_folder_size(prefix), settings.folder_size_timeout_seconds)
    return FolderSize(size=size)


@router.post("/upload", response_model=PresignedUrl)
async def upload_object(
    body: UploadRequest,
    storage: StorageService = Depends(get_storage_service),
):
    """Presigned PUT URL; the client uploads straight to the bucket."""
    try:
        url = await storage.presign_upload(body.file)
    except ValueError as exc:
        raise HTTPException(status.HTTP_400_BAD_REQUEST, str(exc))
    except StorageError as exc:
        raise _storage_failure(exc)
    return PresignedUrl(url=url)


@router.get("/download", response_model=PresignedUrl)
async def download_object(
    key: str = "",
    storage: StorageService = Depends(get_storage_service),
):
    try:
        url = await storage.presign_download(key)
    except ValueError as exc:
        raise HTTPException(status.HTTP_400_BAD_REQUEST, str(exc))
    except StorageError as exc:
        raise _storage_failure(exc)
    return PresignedUrl(url=url)
