from datetime import datetime, timedelta, timezone

from utils.errors import TooManyRequests


async def rate_limit(
    db,
    key: str,
    max_requests: int,
    window_seconds: int,
):
    """
    Count a request against `key` and raise TooManyRequests once the window is full.

    Counters live in `rate_limits`; the TTL index on `created_at` reaps
    finished windows.
    """
    now = datetime.now(timezone.utc)
    window_start = now - timedelta(seconds=window_seconds)
    current = {"key": key, "created_at": {"$gte": window_start}}

    record = await db.rate_limits.find_one(current)

    if record and record["count"] >= max_requests:
        raise TooManyRequests()

    await db.rate_limits.update_one(
        current,
        {
            "$inc": {"count": 1},
            "$setOnInsert": {"created_at": now},
        },
        upsert=True,
    )
