import pytest

from assetlib.common.errors import NotFound, PersistenceFailure
from assetlib.download.usage import UsageTracker
from assetlib.items.models import MAX_USING_RATE, Item
from assetlib.items.repository import InMemoryItemRepository


class _RejectingUpdates(InMemoryItemRepository):
    def update(self, item_type, item):
        raise PersistenceFailure("write rejected")


def test_increment_adds_exactly_one():
    repo = InMemoryItemRepository()
    item = repo.create(Item(item_type="maya", using_rate=5))
    tracker = UsageTracker(repo)
    assert tracker.increment("maya", item.id) == 6
    assert repo.get("maya", item.id).using_rate == 6
    assert tracker.increment("maya", item.id) == 7


def test_increment_leaves_other_fields_alone():
    repo = InMemoryItemRepository()
    item = repo.create(Item(item_type="maya", author="choi", tags=["rig"], status="done"))
    UsageTracker(repo).increment("maya", item.id)
    stored = repo.get("maya", item.id)
    assert stored.model_dump(exclude={"using_rate"}) == item.model_dump(exclude={"using_rate"})


def test_increment_unknown_item_raises():
    with pytest.raises(NotFound):
        UsageTracker(InMemoryItemRepository()).increment("maya", "missing")


def test_update_failure_is_surfaced():
    repo = _RejectingUpdates()
    item = repo.create(Item(item_type="maya"))
    with pytest.raises(PersistenceFailure):
        UsageTracker(repo).increment("maya", item.id)


def test_counter_overflow_is_refused():
    repo = InMemoryItemRepository()
    item = repo.create(Item(item_type="maya", using_rate=MAX_USING_RATE))
    with pytest.raises(PersistenceFailure):
        UsageTracker(repo).increment("maya", item.id)
    assert repo.get("maya", item.id).using_rate == MAX_USING_RATE
