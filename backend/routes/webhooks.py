import json
import logging

from fastapi import APIRouter, Depends, HTTPException, Request

from database import get_db
from utils.idempotency import get_completed_response, complete_idempotency_key
from utils.kv_store import kv_get, kv_get_by_prefix
from utils.paystack import verify_webhook_signature, extract_order_id
from utils.wallet_service import settle_payment, apply_transfer_outcome

router = APIRouter(prefix="/webhooks", tags=["Webhooks"])
logger = logging.getLogger(__name__)

TRANSFER_EVENTS = {
    "transfer.success": "success",
    "transfer.failed": "failed",
    "transfer.reversed": "reversed",
}


async def _find_withdrawal(db, reference: str | None, transfer_code: str | None):
    for withdrawal in await kv_get_by_prefix(db, "withdrawal:"):
        if reference and withdrawal.get("reference") == reference:
            return withdrawal
        if transfer_code and withdrawal.get("transferCode") == transfer_code:
            return withdrawal
    return None


async def _handle_charge_success(db, data: dict) -> dict:
    if data.get("status") != "success":
        return {"ok": True, "ignored": True}

    order_id = extract_order_id(data)
    if not order_id:
        return {"ok": True, "order": "missing"}

    order = await kv_get(db, f"order:{order_id}")
    if not order:
        return {"ok": True, "order": "not_found"}

    result = await settle_payment(
        db,
        order=order,
        reference=data.get("reference"),
        amount_kobo=data.get("amount") or 0,
        channel="paystack_webhook",
    )
    return {"ok": True, "orderId": order_id, "message": result["message"]}


async def _handle_transfer(db, event: str, data: dict) -> dict:
    withdrawal = await _find_withdrawal(db, data.get("reference"), data.get("transfer_code"))
    if not withdrawal:
        return {"ok": True, "withdrawal": "not_found"}

    outcome = await apply_transfer_outcome(db, withdrawal, TRANSFER_EVENTS[event], transfer=data)
    return {"ok": True, **outcome}


@router.post("/paystack")
async def paystack_webhook(request: Request, db=Depends(get_db)):
    signature = request.headers.get("x-paystack-signature")
    if not signature:
        raise HTTPException(401, "Missing Paystack signature")

    raw_body = await request.body()
    if not verify_webhook_signature(raw_body=raw_body, received_signature=signature):
        raise HTTPException(401, "Invalid Paystack signature")

    try:
        payload = json.loads(raw_body.decode("utf-8"))
    except Exception:
        raise HTTPException(400, "Invalid JSON payload")

    event = payload.get("event")
    data = payload.get("data") or {}
    reference = data.get("reference") or data.get("transfer_code")

    if not reference:
        return {"ok": True, "ignored": True}

    idempotency_key = f"{event}:{reference}"
    existing = await get_completed_response(db=db, key=idempotency_key, scope="paystack_webhook")
    if existing:
        return existing

    if event == "charge.success":
        response = await _handle_charge_success(db, data)
    elif event in TRANSFER_EVENTS:
        response = await _handle_transfer(db, event, data)
    else:
        response = {"ok": True, "ignored": True, "event": event}

    logger.info("Paystack webhook %s %s handled: %s", event, reference, response)

    await complete_idempotency_key(
        db=db,
        key=idempotency_key,
        scope="paystack_webhook",
        response=response,
    )
    return response
