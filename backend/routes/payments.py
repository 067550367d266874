import asyncio
import time

from fastapi import APIRouter, Depends, HTTPException
from fastapi.responses import JSONResponse

from config.constants import PAYMENT_INITIALIZED, PAYMENT_COMPLETED
from database import get_db
from models.payment import PaymentInitialize, PaymentVerify
from utils.kv_store import kv_get, kv_update_fields
from utils.paystack import initialize_transaction, verify_transaction, extract_order_id
from utils.serializers import utc_now_iso
from utils.wallet_service import settle_payment

router = APIRouter(prefix="/payment", tags=["Payments"])


@router.post("/initialize")
async def initialize_payment(data: PaymentInitialize, db=Depends(get_db)):
    if not data.order_id or not data.email:
        raise HTTPException(400, "Missing required fields")

    order = await kv_get(db, f"order:{data.order_id}")
    if not order:
        raise HTTPException(404, "Order not found")

    if order.get("paymentStatus") == PAYMENT_COMPLETED:
        raise HTTPException(400, "Order already paid")

    reference = f"{data.order_id}_{int(time.time() * 1000)}"
    metadata = {
        "orderId": data.order_id,
        "vendorId": order.get("vendorId"),
        "custom_fields": [
            {
                "display_name": "Order ID",
                "variable_name": "order_id",
                "value": data.order_id,
            }
        ],
    }

    paystack_data = await asyncio.to_thread(
        initialize_transaction,
        email=data.email,
        amount=order["amount"],
        reference=reference,
        metadata=metadata,
    )

    await kv_update_fields(
        db,
        f"order:{data.order_id}",
        {
            "paymentReference": paystack_data.get("reference", reference),
            "paymentStatus": PAYMENT_INITIALIZED,
            "updatedAt": utc_now_iso(),
        },
        guard={"paymentStatus": {"$ne": PAYMENT_COMPLETED}},
    )

    return {
        "success": True,
        "authorizationUrl": paystack_data.get("authorization_url"),
        "accessCode": paystack_data.get("access_code"),
        "reference": paystack_data.get("reference", reference),
    }


@router.post("/verify")
async def verify_payment(data: PaymentVerify, db=Depends(get_db)):
    if not data.reference:
        raise HTTPException(400, "Payment reference is required")

    transaction = await asyncio.to_thread(verify_transaction, data.reference)

    if transaction.get("status") != "success":
        return JSONResponse(
            status_code=400,
            content={"error": "Payment was not successful", "status": transaction.get("status")},
        )

    order_id = extract_order_id(transaction)
    if not order_id:
        raise HTTPException(400, "Order ID not found in transaction")

    order = await kv_get(db, f"order:{order_id}")
    if not order:
        raise HTTPException(404, "Order not found")

    result = await settle_payment(
        db,
        order=order,
        reference=data.reference,
        amount_kobo=transaction.get("amount") or 0,
        channel="paystack",
    )
    if not result["success"]:
        return JSONResponse(status_code=400, content={"error": result["message"], "orderId": order_id})
    return result
