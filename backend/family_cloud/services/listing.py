"""Paginated bucket listing contract and the folder-size aggregator."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import AsyncIterator, Optional, Protocol

logger = logging.getLogger(__name__)

DELIMITER = "/"


class StorageError(Exception):
    """An upstream bucket call failed; ``code`` is the provider error code."""

    def __init__(self, code: str, message: str = ""):
        super().__init__(message or code)
        self.code = code


class ListingError(StorageError):
    """A listing call failed (network, permission, not found)."""


@dataclass(frozen=True)
class ObjectEntry:
    key: str
    size: int
    last_modified: datetime


@dataclass
class ListPage:
    """One page of a ``list_objects_v2``-style listing."""

    items: list[ObjectEntry] = field(default_factory=list)
    common_prefixes: list[str] = field(default_factory=list)
    is_truncated: bool = False
    next_continuation_token: Optional[str] = None


class ObjectLister(Protocol):
    async def list_page(
        self,
        prefix: str = "",
        delimiter: Optional[str] = None,
        continuation_token: Optional[str] = None,
    ) -> ListPage:
        ...


def normalize_prefix(prefix: str | None) -> str:
    """``"photos"`` and ``"/photos/"`` both become ``"photos/"``; empty stays empty."""
    prefix = (prefix or "").strip(DELIMITER)
    return f"{prefix}{DELIMITER}" if prefix else ""


async def paginate(
    lister: ObjectLister,
    prefix: str = "",
    delimiter: Optional[str] = None,
) -> AsyncIterator[ListPage]:
    """Yield pages until the listing reports it is no longer truncated.

    A failing page aborts the whole iteration; callers never see a partial
    listing as if it were complete.
    """
    token: Optional[str] = None
    pages = 0
    while True:
        page = await lister.list_page(
            prefix=prefix, delimiter=delimiter, continuation_token=token
        )
        pages += 1
        yield page
        if not page.is_truncated:
            break
        if not page.next_continuation_token:
            raise ListingError(
                "MissingContinuationToken",
                f"Listing of '{prefix}' truncated after page {pages} without a continuation token",
            )
        token = page.next_continuation_token
    logger.debug("Listed prefix '%s' in %d page(s)", prefix, pages)


async def aggregate_size(lister: ObjectLister, prefix: str = "") -> int:
    """Sum the size of every object under ``prefix``, across all pages."""
    total = 0
    async for page in paginate(lister, prefix=prefix):
        total += sum(item.size for item in page.items)
    return total
