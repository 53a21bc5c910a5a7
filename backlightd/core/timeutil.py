import time
from datetime import datetime, timezone


def now_utc() -> datetime:
    return datetime.now(timezone.utc)


def monotonic_s() -> float:
    return time.monotonic()
