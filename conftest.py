import sys
from pathlib import Path
import os

import pytest

# Ensure repo root on sys.path for imports from anywhere in tests tree.
ROOT = Path(__file__).resolve().parent
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from assetlib.download.service import set_download_service  # noqa: E402
from assetlib.items.repository import InMemoryItemRepository  # noqa: E402
from assetlib.items.state import set_item_repo  # noqa: E402

os.environ.setdefault("ITEM_STORE_BACKEND", "memory")
os.environ.setdefault("AUTH_JWT_SIGNING", "test-signing-secret")
set_item_repo(InMemoryItemRepository())


@pytest.fixture(autouse=True)
def _reset_download_service():
    set_download_service(None)
    yield
    set_download_service(None)
