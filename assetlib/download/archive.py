"""Build zip packages of an item's output directory inside a scoped workspace."""
from __future__ import annotations

import logging
import os
import shutil
import tempfile
import zipfile
from pathlib import Path
from typing import List, Optional

from assetlib.common.errors import IOFailure

logger = logging.getLogger(__name__)

WORKSPACE_PREFIX = "zip"
COPY_CHUNK_SIZE = 1024 * 1024


class DownloadWorkspace:
    """Temporary directory owned by a single download request.

    ``cleanup`` removes the directory and everything in it; calling it more
    than once is harmless.
    """

    def __init__(self, parent: Optional[str] = None) -> None:
        self.path = Path(tempfile.mkdtemp(prefix=WORKSPACE_PREFIX, dir=parent))
        self._released = False

    def cleanup(self) -> None:
        if self._released:
            return
        self._released = True
        shutil.rmtree(self.path, ignore_errors=True)
        if self.path.exists():
            logger.warning("download workspace %s could not be removed", self.path)

    @property
    def released(self) -> bool:
        return self._released

    def __enter__(self) -> "DownloadWorkspace":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.cleanup()


def list_source_files(source_dir: str) -> List[os.DirEntry]:
    """Direct children of ``source_dir`` that are regular files, sorted by name.

    Subdirectories, FIFOs, sockets and device nodes are skipped.
    The whole listing is read before any file is archived.
    """
    try:
        with os.scandir(source_dir) as it:
            entries = sorted(it, key=lambda e: e.name)
    except OSError as exc:
        raise IOFailure(f"cannot list {source_dir}: {exc}", details={"path": source_dir}) from exc
    files = []
    for entry in entries:
        if not entry.is_file():
            logger.debug("skipping non-file entry %s", entry.path)
            continue
        files.append(entry)
    return files


class ArchiveBuilder:
    def __init__(self, compression: int = zipfile.ZIP_DEFLATED) -> None:
        self._compression = compression

    def build(self, source_dir: str, workspace: DownloadWorkspace, archive_name: str) -> Path:
        """Write every file directly under ``source_dir`` into ``workspace/archive_name``.

        Raises IOFailure on any read, header or write error; the partial
        archive is removed before the error propagates.
        """
        archive_path = workspace.path / archive_name
        files = list_source_files(source_dir)
        try:
            with zipfile.ZipFile(archive_path, mode="w", compression=self._compression) as zf:
                for entry in files:
                    self._add_file(zf, entry)
        except (OSError, ValueError, RuntimeError, zipfile.LargeZipFile) as exc:
            logger.warning("archive build for %s aborted: %s", source_dir, exc)
            archive_path.unlink(missing_ok=True)
            raise IOFailure(
                f"failed to archive {source_dir}: {exc}",
                details={"path": source_dir},
            ) from exc
        logger.debug("archived %d files from %s into %s", len(files), source_dir, archive_path)
        return archive_path

    def _add_file(self, zf: zipfile.ZipFile, entry: os.DirEntry) -> None:
        with open(entry.path, "rb") as src:
            info = zipfile.ZipInfo.from_file(entry.path, arcname=entry.name, strict_timestamps=False)
            info.compress_type = self._compression
            with zf.open(info, mode="w") as dst:
                shutil.copyfileobj(src, dst, COPY_CHUNK_SIZE)
