import logging

from fastapi import HTTPException
from passlib.context import CryptContext

logger = logging.getLogger(__name__)

account_hasher = CryptContext(schemes=["bcrypt"], deprecated="auto")

MIN_PASSWORD_LENGTH = 6
# bcrypt only reads this many bytes
BCRYPT_BYTE_LIMIT = 72


def require_acceptable_password(password: str | None) -> str:
    """
    Signup, admin bootstrap and hashing share these limits.
    Failures surface as 400s with the message shown to the vendor.
    """
    if not password or len(password) < MIN_PASSWORD_LENGTH:
        raise HTTPException(400, f"Password must be at least {MIN_PASSWORD_LENGTH} characters long.")
    if len(password.encode("utf-8")) > BCRYPT_BYTE_LIMIT:
        raise HTTPException(400, f"Password too long (max {BCRYPT_BYTE_LIMIT} bytes)")
    return password


def hash_account_password(password: str) -> str:
    return account_hasher.hash(require_acceptable_password(password))


def account_password_matches(account: dict | None, password: str | None) -> bool:
    """
    Check a password against a stored customer, vendor or admin record.
    A record without a usable hash fails instead of raising.
    """
    stored = (account or {}).get("passwordHash")
    if not password or not stored:
        return False
    if len(password.encode("utf-8")) > BCRYPT_BYTE_LIMIT:
        return False
    try:
        return account_hasher.verify(password, stored)
    except (ValueError, TypeError):
        logger.warning("Unreadable password hash on account %s", account.get("id"))
        return False
