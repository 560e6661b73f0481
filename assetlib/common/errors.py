"""Error taxonomy shared by the item store, path resolver and download flow."""
from __future__ import annotations

from typing import Any, Dict, Optional


class AssetLibraryError(Exception):
    code = "asset_library.error"
    http_status = 500

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None) -> None:
        super().__init__(message)
        self.message = message
        self.details = details or {}


class BadRequest(AssetLibraryError):
    """Missing or invalid caller input; raised before any store or filesystem access."""

    code = "download.bad_request"
    http_status = 400


class Unauthorized(AssetLibraryError):
    """No verified identity. Rendered as a redirect, not an error payload."""

    code = "auth.unauthorized"
    http_status = 303


class NotFound(AssetLibraryError):
    code = "item.not_found"


class UnresolvedPlatform(AssetLibraryError):
    code = "storage.unresolved_platform"


class IOFailure(AssetLibraryError):
    code = "archive.io_failure"


class PersistenceFailure(AssetLibraryError):
    code = "item_store.persistence_failure"


class InternalError(AssetLibraryError):
    """Catch-all surfaced to callers for store, resolver and archive failures."""

    code = "download.internal_error"
