import hashlib
import hmac
import json
import logging
from urllib import request, error
from urllib.parse import quote

from fastapi import HTTPException

from config.env import PAYSTACK_SECRET_KEY, PAYSTACK_CALLBACK_URL
from utils.money import naira_to_kobo

PAYSTACK_API_BASE = "https://api.paystack.co"
PAYSTACK_CURRENCY = "NGN"

logger = logging.getLogger(__name__)


def _require_paystack_config() -> str:
    if not PAYSTACK_SECRET_KEY:
        raise HTTPException(status_code=500, detail="Paystack secret key is not configured")
    return PAYSTACK_SECRET_KEY


def _headers(secret_key: str) -> dict:
    return {
        "Authorization": f"Bearer {secret_key}",
        "Content-Type": "application/json",
    }


def _provider_message(raw: str, fallback: str) -> str:
    try:
        return json.loads(raw).get("message") or fallback
    except (ValueError, AttributeError):
        return fallback


def _send(req: request.Request, failure: str) -> dict:
    try:
        with request.urlopen(req, timeout=20) as resp:
            body = json.loads(resp.read().decode("utf-8"))
    except error.HTTPError as e:
        details = e.read().decode("utf-8", errors="ignore")
        logger.warning("PAYSTACK_HTTP_ERROR status=%s body=%s", e.code, details)
        raise HTTPException(status_code=400, detail=_provider_message(details, failure))
    except Exception:
        logger.exception("PAYSTACK_REQUEST_FAILED")
        raise HTTPException(status_code=502, detail=failure)

    if not body.get("status"):
        logger.warning("PAYSTACK_REJECTED body=%s", body)
        raise HTTPException(status_code=400, detail=body.get("message") or failure)

    return body.get("data") or {}


def _post(path: str, payload: dict, failure: str) -> dict:
    req = request.Request(
        url=f"{PAYSTACK_API_BASE}{path}",
        data=json.dumps(payload).encode("utf-8"),
        headers=_headers(_require_paystack_config()),
        method="POST",
    )
    return _send(req, failure)


def _get(path: str, failure: str) -> dict:
    req = request.Request(
        url=f"{PAYSTACK_API_BASE}{path}",
        headers=_headers(_require_paystack_config()),
        method="GET",
    )
    return _send(req, failure)


# ==============================
# Charges
# ==============================

def initialize_transaction(*, email: str, amount: float, reference: str, metadata: dict | None = None) -> dict:
    """
    Start a checkout. Returns Paystack's ``data`` block
    (authorization_url, access_code, reference).
    """
    payload = {
        "email": email,
        "amount": naira_to_kobo(amount),
        "currency": PAYSTACK_CURRENCY,
        "reference": reference,
        "metadata": metadata or {},
        "callback_url": PAYSTACK_CALLBACK_URL,
    }
    return _post("/transaction/initialize", payload, "Failed to initialize payment")


def verify_transaction(reference: str) -> dict:
    return _get(f"/transaction/verify/{quote(reference, safe='')}", "Failed to verify payment")


def extract_order_id(transaction: dict) -> str | None:
    metadata = transaction.get("metadata") or {}
    if not isinstance(metadata, dict):
        return None

    order_id = metadata.get("orderId")
    if order_id:
        return order_id

    for field in metadata.get("custom_fields") or []:
        if field.get("variable_name") == "order_id":
            return field.get("value")
    return None


# ==============================
# Transfers (vendor payouts)
# ==============================

def create_transfer_recipient(*, name: str, account_number: str, bank_code: str) -> dict:
    payload = {
        "type": "nuban",
        "name": name,
        "account_number": account_number,
        "bank_code": bank_code,
        "currency": PAYSTACK_CURRENCY,
    }
    return _post("/transferrecipient", payload, "Failed to create recipient")


def initiate_transfer(*, amount: float, recipient_code: str, reason: str, reference: str) -> dict:
    payload = {
        "source": "balance",
        "amount": naira_to_kobo(amount),
        "recipient": recipient_code,
        "reason": reason,
        "reference": reference,
    }
    return _post("/transfer", payload, "Failed to initiate transfer")


def verify_transfer(reference: str) -> dict:
    return _get(f"/transfer/verify/{quote(reference, safe='')}", "Failed to verify transfer")


# ==============================
# Webhooks
# ==============================

def verify_webhook_signature(*, raw_body: bytes, received_signature: str) -> bool:
    secret = _require_paystack_config()
    expected = hmac.new(secret.encode("utf-8"), raw_body, hashlib.sha512).hexdigest()
    # compare_digest rejects non-ASCII str
    return hmac.compare_digest(expected.encode("ascii"), (received_signature or "").encode("utf-8", "ignore"))
