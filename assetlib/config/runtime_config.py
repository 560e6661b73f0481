"""Runtime configuration helpers for the asset library."""
from __future__ import annotations

import os
from typing import Optional

DEFAULT_STORE_TIMEOUT_SECONDS = 5.0
DEFAULT_SIGNIN_PATH = "/signin"


def _get_env(name: str, default: Optional[str] = None) -> Optional[str]:
    return os.getenv(name, default)


def get_item_store_backend() -> str:
    return (_get_env("ITEM_STORE_BACKEND") or "memory").lower()


def get_firestore_project() -> Optional[str]:
    return _get_env("GCP_PROJECT_ID") or _get_env("GCP_PROJECT")


def get_item_store_database() -> Optional[str]:
    return _get_env("ITEM_STORE_DATABASE")


def get_item_store_collection_prefix() -> str:
    return _get_env("ITEM_STORE_COLLECTION_PREFIX") or ""


def get_item_store_timeout() -> float:
    raw = _get_env("ITEM_STORE_TIMEOUT_SECONDS")
    if not raw:
        return DEFAULT_STORE_TIMEOUT_SECONDS
    try:
        value = float(raw)
    except ValueError as exc:
        raise RuntimeError(f"ITEM_STORE_TIMEOUT_SECONDS must be a number, got: {raw}") from exc
    if value <= 0:
        raise RuntimeError("ITEM_STORE_TIMEOUT_SECONDS must be positive")
    return value


def get_download_tmp_dir() -> Optional[str]:
    return _get_env("DOWNLOAD_TMP_DIR")


def get_signin_path() -> str:
    return _get_env("SIGNIN_PATH") or DEFAULT_SIGNIN_PATH


def get_jwt_signing_secret() -> Optional[str]:
    return _get_env("AUTH_JWT_SIGNING")
