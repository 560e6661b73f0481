"""Resolve an item's storage record to a filesystem root for the host OS."""
from __future__ import annotations

import os
import platform
from typing import Optional

from assetlib.common.errors import UnresolvedPlatform
from assetlib.items.models import Item, Storage

PLATFORM_FIELDS = {
    "Windows": "windows",
    "Linux": "linux",
    "Darwin": "macos",
}


def resolve_storage_root(storage: Storage, system: Optional[str] = None) -> str:
    """Return the storage path recorded for ``system`` (default: the running OS)."""
    system = system or platform.system()
    field_name = PLATFORM_FIELDS.get(system)
    if field_name is None:
        raise UnresolvedPlatform(
            f"unsupported platform: {system}",
            details={"platform": system, "storage_id": storage.id},
        )
    root = getattr(storage, field_name)
    if not root:
        raise UnresolvedPlatform(
            f"storage {storage.id or '<unnamed>'} has no {field_name} path",
            details={"platform": system, "storage_id": storage.id},
        )
    return root


def resolve_output_dir(item: Item, system: Optional[str] = None) -> str:
    """Directory holding the item's distributable files.

    A relative ``output_path`` is taken below the storage root; an absolute one
    is used as is, but the storage root must still resolve.
    """
    root = resolve_storage_root(item.storage, system=system)
    if not item.output_path:
        return root
    return os.path.join(root, item.output_path)
