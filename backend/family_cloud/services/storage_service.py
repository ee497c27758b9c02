"""Bucket browsing: recursive tree, single level, folder size, presigned URLs."""

from __future__ import annotations

import logging

from family_cloud.schemas.files import Folder
from family_cloud.services.file_tree import insert_path, list_level
from family_cloud.services.listing import (
    DELIMITER,
    ObjectEntry,
    aggregate_size,
    normalize_prefix,
    paginate,
)
from family_cloud.services.s3_store import S3ObjectStore

logger = logging.getLogger(__name__)


class StorageService:
    """Builds the storage API responses from a paginated object store.

    Every call starts from scratch; nothing is cached between requests.
    """

    def __init__(self, store: S3ObjectStore):
        self._store = store

    async def list_objects(self) -> Folder:
        """Whole bucket as a nested tree with aggregated folder sizes."""
        root = Folder(name=DELIMITER)
        count = 0
        async for page in paginate(self._store):
            for entry in page.items:
                insert_path(root, entry.key, entry.size, entry.last_modified)
            count += len(page.items)
        logger.debug("Built tree from %d objects (%d bytes)", count, root.size)
        return root

    async def list_folder(self, prefix: str | None) -> Folder:
        """Immediate files and sub-folders of ``prefix``, without recursion."""
        prefix = normalize_prefix(prefix)
        files: list[ObjectEntry] = []
        common_prefixes: list[str] = []
        async for page in paginate(self._store, prefix=prefix, delimiter=DELIMITER):
            files.extend(page.items)
            common_prefixes.extend(page.common_prefixes)
        return list_level(files, common_prefixes, prefix)

    async def get_folder_size(self, prefix: str | None) -> int:
        return await aggregate_size(self._store, normalize_prefix(prefix))

    async def presign_upload(self, key: str) -> str:
        return await self._store.presign_upload(_check_key(key))

    async def presign_download(self, key: str) -> str:
        return await self._store.presign_download(_check_key(key))


def _check_key(key: str) -> str:
    key = (key or "").lstrip(DELIMITER)
    if not key or key.endswith(DELIMITER):
        raise ValueError("Object key must name a file")
    return key
