import time
from typing import Dict
from fastapi import HTTPException, status

# In-memory store (process-level)
_RATE_LIMIT_STORE: Dict[str, list] = {}

def rate_limit(
    key: str,
    max_requests: int,
    window_seconds: int,
):
    """
    Sliding window limiter for credential endpoints.
    key = scope + email, e.g. "login:vendor@example.com"
    """

    now = time.time()
    window_start = now - window_seconds

    timestamps = [t for t in _RATE_LIMIT_STORE.get(key, []) if t > window_start]

    if len(timestamps) >= max_requests:
        _RATE_LIMIT_STORE[key] = timestamps
        raise HTTPException(
            status_code=status.HTTP_429_TOO_MANY_REQUESTS,
            detail="Too many attempts. Please try again later.",
        )

    timestamps.append(now)
    _RATE_LIMIT_STORE[key] = timestamps


def reset_rate_limit(key: str | None = None):
    if key is None:
        _RATE_LIMIT_STORE.clear()
    else:
        _RATE_LIMIT_STORE.pop(key, None)
