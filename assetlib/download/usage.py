from __future__ import annotations

import logging
from typing import Optional

from assetlib.common.errors import PersistenceFailure
from assetlib.items.models import MAX_USING_RATE
from assetlib.items.repository import ItemRepository
from assetlib.items.state import get_item_repo

logger = logging.getLogger(__name__)


class UsageTracker:
    """Counts successful downloads on the item record.

    Read-modify-write through the item store: two concurrent downloads of the
    same item can both read N and both write N + 1.
    """

    def __init__(self, repo: Optional[ItemRepository] = None) -> None:
        self.repo = repo or get_item_repo()

    def increment(self, item_type: str, item_id: str) -> int:
        item = self.repo.get(item_type, item_id)
        if item.using_rate >= MAX_USING_RATE:
            raise PersistenceFailure(f"using rate overflow for {item_type}/{item_id}")
        item.using_rate += 1
        self.repo.update(item_type, item)
        logger.debug("using rate for %s/%s is now %d", item_type, item_id, item.using_rate)
        return item.using_rate
