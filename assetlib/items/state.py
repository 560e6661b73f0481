"""Shared item store handle for routes/services."""
from __future__ import annotations

from typing import Optional

from assetlib.items.repository import ItemRepository, ItemStoreConfig, build_item_repository


class LazyItemRepo:
    def __init__(self, config: Optional[ItemStoreConfig] = None) -> None:
        self._config = config
        self._impl: Optional[ItemRepository] = None

    @property
    def _repo(self) -> ItemRepository:
        if self._impl is None:
            self._impl = build_item_repository(self._config or ItemStoreConfig.from_env())
        return self._impl

    def __getattr__(self, name):
        return getattr(self._repo, name)


item_repo: ItemRepository = LazyItemRepo()  # type: ignore


def get_item_repo() -> ItemRepository:
    return item_repo


def set_item_repo(repo: ItemRepository) -> None:
    # Swap the proxy's implementation so modules holding the proxy see the new store.
    if isinstance(item_repo, LazyItemRepo):
        item_repo._impl = repo
