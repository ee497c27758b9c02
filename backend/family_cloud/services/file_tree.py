"""Build folder/file trees from flat bucket keys."""

from __future__ import annotations

from datetime import datetime
from typing import Iterable, Optional

from family_cloud.schemas.files import File, Folder
from family_cloud.services.listing import DELIMITER, ObjectEntry, normalize_prefix


def _touch(folder: Folder, last_modified: Optional[datetime]) -> None:
    """Latest-wins: a folder is as recent as its most recently modified file."""
    if last_modified is None:
        return
    if folder.last_modified is None or last_modified > folder.last_modified:
        folder.last_modified = last_modified


def _find_folder(parent: Folder, name: str) -> Optional[Folder]:
    # Linear scan; fine for typical fan-out, quadratic for huge flat directories.
    for item in parent.items:
        if isinstance(item, Folder) and item.name == name:
            return item
    return None


def insert_path(root: Folder, key: str, size: int, last_modified: datetime) -> None:
    """Insert one object key below ``root``, creating folders on the way.

    Every folder on the path, root included, has ``size`` added to its running
    total. Empty keys and directory markers (keys ending in ``/``) are skipped.
    """
    if not key or key.endswith(DELIMITER):
        return

    *folders, file_name = key.split(DELIMITER)

    root.size += size
    _touch(root, last_modified)

    node = root
    for part in folders:
        child = _find_folder(node, part)
        if child is None:
            child = Folder(name=part)
            node.items.append(child)
        node = child
        node.size += size
        _touch(node, last_modified)

    node.items.append(File(name=file_name, size=size, last_modified=last_modified))


def build_tree(entries: Iterable[ObjectEntry], name: str = DELIMITER) -> Folder:
    root = Folder(name=name)
    for entry in entries:
        insert_path(root, entry.key, entry.size, entry.last_modified)
    return root


def list_level(
    files: Iterable[ObjectEntry],
    common_prefixes: Iterable[str],
    prefix: str = "",
) -> Folder:
    """Turn one delimiter-scoped listing into a single-level folder.

    Files keep only their final key segment. Common prefixes become empty
    placeholder folders; this level never recurses into them.
    """
    prefix = normalize_prefix(prefix)
    root = Folder(name=prefix or DELIMITER)

    for entry in files:
        # The folder's own marker object is listed under its prefix
        if not entry.key or entry.key == prefix:
            continue
        file_name = entry.key.rsplit(DELIMITER, 1)[-1]
        if not file_name:
            continue
        root.items.append(File(name=file_name, size=entry.size, last_modified=entry.last_modified))
        root.size += entry.size
        _touch(root, entry.last_modified)

    for common_prefix in common_prefixes:
        parts = common_prefix.split(DELIMITER)
        if len(parts) < 2:
            continue
        root.items.append(Folder(name=parts[-2]))

    return root
