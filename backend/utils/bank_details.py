import base64
import hashlib

from cryptography.fernet import Fernet, InvalidToken
from fastapi import HTTPException

from config.env import BANK_DATA_ENCRYPTION_KEY, JWT_SECRET

VISIBLE_ACCOUNT_DIGITS = 4


def _payout_cipher() -> Fernet:
    # falls back to the JWT secret so local setups work without a dedicated key
    seed = (BANK_DATA_ENCRYPTION_KEY or JWT_SECRET or "").strip()
    if not seed:
        raise HTTPException(500, "Bank data encryption key is not configured")
    return Fernet(base64.urlsafe_b64encode(hashlib.sha256(seed.encode("utf-8")).digest()))


def mask_account_number(account_number: str | None) -> str:
    """``0123456789`` -> ``******6789``"""
    digits = (account_number or "").strip()
    hidden = max(len(digits) - VISIBLE_ACCOUNT_DIGITS, 0)
    if not hidden:
        return "*" * len(digits)
    return "*" * hidden + digits[hidden:]


def seal_account_number(account_number: str) -> dict:
    """
    The withdrawal record fields for a payout account: the encrypted number
    for reconciliation and the masked one for every listing.
    """
    if not account_number:
        raise HTTPException(400, "Account number missing")
    token = _payout_cipher().encrypt(account_number.encode("utf-8")).decode("utf-8")
    return {
        "accountNumberEncrypted": token,
        "accountNumberMasked": mask_account_number(account_number),
    }


def open_account_number(withdrawal: dict) -> str:
    token = withdrawal.get("accountNumberEncrypted")
    if not token:
        raise HTTPException(400, "Withdrawal has no stored account number")
    try:
        return _payout_cipher().decrypt(token.encode("utf-8")).decode("utf-8")
    except InvalidToken:
        raise HTTPException(400, "Stored account number cannot be read")
