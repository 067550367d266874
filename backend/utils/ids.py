import secrets
import string
import time

_BASE36 = string.digits + string.ascii_lowercase


def _random_suffix(length: int = 9) -> str:
    return "".join(secrets.choice(_BASE36) for _ in range(length))


def make_id(prefix: str | None = None, sep: str = "-") -> str:
    """
    ``<ms-epoch><sep><9 base36 chars>``, optionally prefixed
    (``ORD-...``, ``TXN-...``, ``commission_..._...``).
    """
    parts = [str(int(time.time() * 1000)), _random_suffix()]
    if prefix:
        parts.insert(0, prefix)
    return sep.join(parts)
