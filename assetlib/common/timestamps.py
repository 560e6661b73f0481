"""RFC 3339 timestamp helpers for item create/update times."""
from __future__ import annotations

import re
from datetime import datetime, timezone

# 2019-09-09T02:46:52+09:00; the Z shorthand is not accepted.
RFC3339_PATTERN = re.compile(
    r"^\d{4}-(0?[1-9]|1[012])-(0?[1-9]|[12][0-9]|3[01])T\d{2}:\d{2}:\d{2}[-+]\d{2}:\d{2}$",
    re.ASCII,
)


def is_rfc3339(value: str) -> bool:
    return bool(value) and RFC3339_PATTERN.fullmatch(value) is not None


def now_rfc3339() -> str:
    return datetime.now(timezone.utc).isoformat(timespec="seconds")
