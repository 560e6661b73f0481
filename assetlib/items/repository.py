from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Protocol, Tuple

from assetlib.common.errors import NotFound, PersistenceFailure
from assetlib.config import runtime_config
from assetlib.items.models import Item

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ItemStoreConfig:
    """Connection parameters every persistence call needs."""

    backend: str = "memory"
    project: Optional[str] = None
    database: Optional[str] = None
    collection_prefix: str = ""
    timeout: float = runtime_config.DEFAULT_STORE_TIMEOUT_SECONDS

    @classmethod
    def from_env(cls) -> "ItemStoreConfig":
        return cls(
            backend=runtime_config.get_item_store_backend(),
            project=runtime_config.get_firestore_project(),
            database=runtime_config.get_item_store_database(),
            collection_prefix=runtime_config.get_item_store_collection_prefix(),
            timeout=runtime_config.get_item_store_timeout(),
        )


def _check_key(item_type: str, item_id: str) -> None:
    if not item_type:
        raise PersistenceFailure("item type is required to address the item store")
    if not item_id:
        raise PersistenceFailure("item id is required to address the item store")


class ItemRepository(Protocol):
    def create(self, item: Item) -> Item: ...
    def get(self, item_type: str, item_id: str) -> Item: ...
    def update(self, item_type: str, item: Item) -> Item: ...
    def delete(self, item_type: str, item_id: str) -> None: ...
    def list(self, item_type: str) -> List[Item]: ...


class InMemoryItemRepository:
    def __init__(self) -> None:
        self._items: Dict[Tuple[str, str], Item] = {}

    def create(self, item: Item) -> Item:
        _check_key(item.item_type, item.id)
        key = (item.item_type, item.id)
        if key in self._items:
            raise PersistenceFailure(f"item already exists: {item.item_type}/{item.id}")
        self._items[key] = item.model_copy(deep=True)
        return item

    def get(self, item_type: str, item_id: str) -> Item:
        _check_key(item_type, item_id)
        item = self._items.get((item_type, item_id))
        if item is None:
            raise NotFound(f"item not found: {item_type}/{item_id}")
        return item.model_copy(deep=True)

    def update(self, item_type: str, item: Item) -> Item:
        _check_key(item_type, item.id)
        key = (item_type, item.id)
        if key not in self._items:
            raise NotFound(f"item not found: {item_type}/{item.id}")
        self._items[key] = item.model_copy(deep=True)
        return item

    def delete(self, item_type: str, item_id: str) -> None:
        _check_key(item_type, item_id)
        self._items.pop((item_type, item_id), None)

    def list(self, item_type: str) -> List[Item]:
        return [i.model_copy(deep=True) for (t, _), i in self._items.items() if t == item_type]


class FirestoreItemRepository:
    """Firestore implementation; one collection per item type."""

    def __init__(self, config: ItemStoreConfig, client: Optional[Any] = None) -> None:
        self._config = config
        self._client = client or self._default_client(config)

    @staticmethod
    def _default_client(config: ItemStoreConfig) -> Any:  # pragma: no cover - optional dep
        try:
            from google.cloud import firestore  # type: ignore
        except Exception as exc:
            raise RuntimeError("google-cloud-firestore not installed") from exc
        if not config.project:
            raise RuntimeError("GCP project is required for the Firestore item store")
        if config.database:
            return firestore.Client(project=config.project, database=config.database)  # type: ignore[arg-type]
        return firestore.Client(project=config.project)  # type: ignore[arg-type]

    def _col(self, item_type: str):
        return self._client.collection(f"{self._config.collection_prefix}{item_type}")

    def _fail(self, op: str, item_type: str, exc: Exception) -> PersistenceFailure:
        logger.warning("item store %s failed for %s: %s", op, item_type, exc)
        return PersistenceFailure(f"item store {op} failed: {exc}", details={"item_type": item_type})

    def create(self, item: Item) -> Item:
        _check_key(item.item_type, item.id)
        try:
            self._col(item.item_type).document(item.id).create(
                item.model_dump(), timeout=self._config.timeout
            )
        except Exception as exc:
            raise self._fail("create", item.item_type, exc) from exc
        return item

    def get(self, item_type: str, item_id: str) -> Item:
        _check_key(item_type, item_id)
        try:
            snap = self._col(item_type).document(item_id).get(timeout=self._config.timeout)
        except Exception as exc:
            raise self._fail("get", item_type, exc) from exc
        if not snap or not getattr(snap, "exists", False):
            raise NotFound(f"item not found: {item_type}/{item_id}")
        try:
            return Item(**(snap.to_dict() or {}))
        except ValueError as exc:
            raise self._fail("decode", item_type, exc) from exc

    def update(self, item_type: str, item: Item) -> Item:
        _check_key(item_type, item.id)
        doc = self._col(item_type).document(item.id)
        try:
            snap = doc.get(timeout=self._config.timeout)
            if not snap or not getattr(snap, "exists", False):
                raise NotFound(f"item not found: {item_type}/{item.id}")
            doc.set(item.model_dump(), timeout=self._config.timeout)
        except NotFound:
            raise
        except Exception as exc:
            raise self._fail("update", item_type, exc) from exc
        return item

    def delete(self, item_type: str, item_id: str) -> None:
        _check_key(item_type, item_id)
        try:
            self._col(item_type).document(item_id).delete(timeout=self._config.timeout)
        except Exception as exc:
            raise self._fail("delete", item_type, exc) from exc

    def list(self, item_type: str) -> List[Item]:
        try:
            return [Item(**d.to_dict()) for d in self._col(item_type).stream(timeout=self._config.timeout)]
        except Exception as exc:
            raise self._fail("list", item_type, exc) from exc


def build_item_repository(config: ItemStoreConfig, client: Optional[Any] = None) -> ItemRepository:
    if config.backend == "firestore":
        return FirestoreItemRepository(config, client=client)
    if config.backend == "memory":
        return InMemoryItemRepository()
    raise RuntimeError(f"ITEM_STORE_BACKEND must be 'memory' or 'firestore'. Got: '{config.backend}'")
