from __future__ import annotations

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query
from fastapi.responses import FileResponse, RedirectResponse
from starlette.concurrency import run_in_threadpool
from starlette.types import Receive, Scope, Send

from assetlib.common.error_envelope import raise_for_error
from assetlib.common.errors import Unauthorized
from assetlib.config import runtime_config
from assetlib.download.service import ARCHIVE_MEDIA_TYPE, DownloadFailed, PreparedDownload, get_download_service
from assetlib.identity.auth import get_optional_auth_context
from assetlib.identity.jwt_service import AuthContext

logger = logging.getLogger(__name__)

router = APIRouter(tags=["download"])


class ArchiveResponse(FileResponse):
    """Streams a prepared archive and releases its workspace afterwards."""

    def __init__(self, prepared: PreparedDownload) -> None:
        super().__init__(
            prepared.archive_path,
            media_type=ARCHIVE_MEDIA_TYPE,
            headers={"Content-Disposition": f"attachment; filename={prepared.filename}"},
        )
        self.prepared = prepared

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        try:
            await super().__call__(scope, receive, send)
        except Exception:
            logger.exception("streaming %s failed", self.prepared.filename)
            raise
        finally:
            await run_in_threadpool(self.prepared.release)


@router.get("/download-item")
def download_item(
    item_type: Optional[str] = Query(default=None, alias="itemtype"),
    item_id: Optional[str] = Query(default=None, alias="id"),
    auth: Optional[AuthContext] = Depends(get_optional_auth_context),
):
    try:
        prepared = get_download_service().prepare(auth, item_type or "", item_id or "")
    except Unauthorized:
        return RedirectResponse(runtime_config.get_signin_path(), status_code=303)
    except DownloadFailed as failed:
        raise_for_error(failed.error, resource_kind="item")
    return ArchiveResponse(prepared)
