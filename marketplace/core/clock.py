from __future__ import annotations

import datetime


def now_ts() -> int:
    """Current time as integer unix seconds (the storage format for timestamps)."""
    return int(datetime.datetime.now(datetime.UTC).timestamp())
