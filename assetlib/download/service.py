"""Packaged downloads: load an item, zip its output directory, count the use.

A request moves through::

    AUTHORIZING -> LOADING -> RESOLVING -> BUILDING -> UPDATING -> STREAMING -> DONE

and ends in FAILED from any earlier state. The download workspace is removed
on every path: by ``prepare`` itself when a step fails, and by
``PreparedDownload.release`` once the archive has been streamed.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import NoReturn, Optional

from assetlib.common.errors import AssetLibraryError, BadRequest, InternalError, IOFailure, Unauthorized
from assetlib.config import runtime_config
from assetlib.download.archive import ArchiveBuilder, DownloadWorkspace
from assetlib.download.usage import UsageTracker
from assetlib.identity.jwt_service import AuthContext
from assetlib.items.repository import ItemRepository
from assetlib.items.state import get_item_repo
from assetlib.storage.paths import resolve_output_dir

logger = logging.getLogger(__name__)

ARCHIVE_MEDIA_TYPE = "application/zip"


class DownloadState(str, Enum):
    authorizing = "AUTHORIZING"
    loading = "LOADING"
    resolving = "RESOLVING"
    building = "BUILDING"
    updating = "UPDATING"
    streaming = "STREAMING"
    done = "DONE"
    failed = "FAILED"


class DownloadFailed(Exception):
    """Terminal failure of a download, carrying the state it was reached from."""

    def __init__(self, state: DownloadState, error: AssetLibraryError, cause: Optional[AssetLibraryError] = None) -> None:
        super().__init__(error.message)
        self.state = state
        self.error = error
        self.cause = cause or error

    @property
    def http_status(self) -> int:
        return self.error.http_status


def archive_filename(item_id: str) -> str:
    return f"{item_id}.zip"


@dataclass
class PreparedDownload:
    item_type: str
    item_id: str
    archive_path: Path
    using_rate: int
    workspace: DownloadWorkspace
    state: DownloadState = DownloadState.streaming

    @property
    def filename(self) -> str:
        return archive_filename(self.item_id)

    def release(self) -> None:
        self.workspace.cleanup()
        self.state = DownloadState.done


class DownloadService:
    def __init__(
        self,
        repo: Optional[ItemRepository] = None,
        builder: Optional[ArchiveBuilder] = None,
        tracker: Optional[UsageTracker] = None,
        tmp_dir: Optional[str] = None,
        system: Optional[str] = None,
    ) -> None:
        self.repo = repo or get_item_repo()
        self.builder = builder or ArchiveBuilder()
        self.tracker = tracker or UsageTracker(self.repo)
        self.tmp_dir = tmp_dir
        self.system = system

    def prepare(self, auth: Optional[AuthContext], item_type: str, item_id: str) -> PreparedDownload:
        state = DownloadState.authorizing
        if auth is None:
            raise Unauthorized("sign in required to download items")

        state = self._advance(state, DownloadState.loading, item_type, item_id)
        if not item_type:
            self._fail(state, BadRequest("itemtype query parameter is required"))
        if not item_id:
            self._fail(state, BadRequest("id query parameter is required"))
        try:
            item = self.repo.get(item_type, item_id)
        except AssetLibraryError as exc:
            self._fail(state, exc)

        state = self._advance(state, DownloadState.resolving, item_type, item_id)
        try:
            source_dir = resolve_output_dir(item, system=self.system)
        except AssetLibraryError as exc:
            self._fail(state, exc)

        state = self._advance(state, DownloadState.building, item_type, item_id)
        try:
            workspace = DownloadWorkspace(parent=self.tmp_dir)
        except OSError as exc:
            self._fail(state, IOFailure(f"cannot create download workspace: {exc}"))
        try:
            archive_path = self.builder.build(source_dir, workspace, archive_filename(item_id))
            state = self._advance(state, DownloadState.updating, item_type, item_id)
            using_rate = self.tracker.increment(item_type, item_id)
        except AssetLibraryError as exc:
            workspace.cleanup()
            self._fail(state, exc)
        except BaseException:
            workspace.cleanup()
            raise

        state = self._advance(state, DownloadState.streaming, item_type, item_id)
        logger.info("download ready for %s/%s (using rate %d)", item_type, item_id, using_rate)
        return PreparedDownload(
            item_type=item_type,
            item_id=item_id,
            archive_path=archive_path,
            using_rate=using_rate,
            workspace=workspace,
            state=state,
        )

    @staticmethod
    def _advance(current: DownloadState, target: DownloadState, item_type: str, item_id: str) -> DownloadState:
        logger.debug("download %s/%s: %s -> %s", item_type, item_id, current.value, target.value)
        return target

    @staticmethod
    def _fail(state: DownloadState, exc: AssetLibraryError) -> NoReturn:
        if isinstance(exc, BadRequest):
            error: AssetLibraryError = exc
        else:
            error = InternalError(
                exc.message,
                details={**exc.details, "cause": exc.code, "state": state.value},
            )
        logger.warning("download failed in %s: %s (%s)", state.value, exc.message, exc.code)
        raise DownloadFailed(state, error, cause=exc) from exc


_default_service: Optional[DownloadService] = None


def get_download_service() -> DownloadService:
    global _default_service
    if _default_service is None:
        _default_service = DownloadService(tmp_dir=runtime_config.get_download_tmp_dir())
    return _default_service


def set_download_service(service: Optional[DownloadService]) -> None:
    global _default_service
    _default_service = service
