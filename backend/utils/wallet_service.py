import asyncio
import logging

from config.constants import (
    ORDER_PENDING,
    ORDER_CONFIRMED,
    PAYMENT_COMPLETED,
    PAYMENT_UNDERPAID,
    STAT_ORDER_COMPLETED,
    TRANSFER_SUCCESS,
    TRANSFER_FAILED,
    TRANSFER_REVERSED,
)
from utils.commission import calculate_commission, track_commission
from utils.ids import make_id
from utils.kv_store import kv_get, kv_set, kv_ensure, kv_increment, kv_update_fields
from utils.money import kobo_to_naira, naira_to_kobo, normalize_amount, format_naira
from utils.paystack import verify_transfer
from utils.serializers import utc_now_iso
from utils.vendors import update_vendor_stats

logger = logging.getLogger(__name__)


def wallet_key(vendor_id: str) -> str:
    return f"wallet:{vendor_id}"


def default_wallet(vendor_id: str) -> dict:
    return {
        "vendorId": vendor_id,
        "walletBalance": 0,
        "totalEarnings": 0,
        "pendingBalance": 0,
        "totalWithdrawn": 0,
        "lastUpdated": utc_now_iso(),
    }


# ==============================
# Wallet balance
# ==============================

async def get_wallet(db, vendor_id: str) -> dict:
    return await kv_get(db, wallet_key(vendor_id)) or default_wallet(vendor_id)


async def credit_wallet(db, vendor_id: str, amount: float):
    if amount < 0:
        raise ValueError("Credit cannot be negative")

    key = wallet_key(vendor_id)
    await kv_ensure(db, key, default_wallet(vendor_id))
    await kv_increment(
        db,
        key,
        {"walletBalance": amount, "totalEarnings": amount},
        set_fields={"lastUpdated": utc_now_iso()},
    )


async def debit_wallet(db, vendor_id: str, amount: float) -> bool:
    """
    Move ``amount`` from balance to withdrawn.
    Returns False (and changes nothing) when the balance does not cover it.
    """
    if amount <= 0:
        raise ValueError("Debit must be positive")

    return await kv_increment(
        db,
        wallet_key(vendor_id),
        {"walletBalance": -amount, "totalWithdrawn": amount},
        guard={"walletBalance": {"$gte": amount}},
        set_fields={"lastUpdated": utc_now_iso()},
    )


async def restore_wallet(db, vendor_id: str, amount: float):
    """Undo a debit after a failed or reversed transfer."""
    await kv_increment(
        db,
        wallet_key(vendor_id),
        {"walletBalance": amount, "totalWithdrawn": -amount},
        set_fields={"lastUpdated": utc_now_iso()},
    )


# ==============================
# Settlement (payment verified)
# ==============================

async def _record_underpayment(db, *, order: dict, reference: str, total_amount, channel: str) -> dict:
    """A short charge is logged against the order but never confirms it or pays the vendor."""
    order_id = order["id"]
    transaction_id = make_id("TXN")
    now = utc_now_iso()

    marked = await kv_update_fields(
        db,
        f"order:{order_id}",
        {
            "paymentStatus": PAYMENT_UNDERPAID,
            "paymentReference": reference,
            "amountPaid": total_amount,
            "updatedAt": now,
        },
        guard={"paymentStatus": {"$ne": PAYMENT_COMPLETED}},
    )
    if not marked:
        return {"success": True, "message": "Payment already processed", "orderId": order_id}

    await kv_set(db, f"transaction:{transaction_id}", {
        "id": transaction_id,
        "orderId": order_id,
        "vendorId": order.get("vendorId"),
        "customerId": order.get("customerId") or "guest",
        "totalAmount": total_amount,
        "commissionAmount": 0,
        "vendorAmount": 0,
        "status": PAYMENT_UNDERPAID,
        "paymentReference": reference,
        "paymentMethod": channel,
        "createdAt": now,
    })

    logger.warning(
        "Underpaid charge %s for order %s: got %s, expected %s",
        reference,
        order_id,
        format_naira(total_amount),
        format_naira(order["amount"]),
    )
    return {
        "success": False,
        "message": "Payment amount does not cover the order",
        "orderId": order_id,
        "transactionId": transaction_id,
    }


async def settle_payment(db, *, order: dict, reference: str, amount_kobo: int, channel: str = "paystack") -> dict:
    """
    Split a verified charge into platform commission and vendor credit.
    Runs once per order: the paymentStatus guard makes repeats a no-op.
    """
    order_id = order["id"]
    vendor_id = order.get("vendorId")

    total_amount = kobo_to_naira(amount_kobo)
    commission_amount = calculate_commission(total_amount)
    vendor_amount = normalize_amount(total_amount - commission_amount)

    if order.get("amount") is not None and amount_kobo < naira_to_kobo(order["amount"]):
        return await _record_underpayment(db, order=order, reference=reference, total_amount=total_amount, channel=channel)

    if order.get("amount") is not None and normalize_amount(order["amount"]) != total_amount:
        logger.warning(
            "Paid amount %s exceeds order amount %s for order %s",
            total_amount,
            order["amount"],
            order_id,
        )

    transaction_id = make_id("TXN")
    now = utc_now_iso()

    fields = {
        "paymentStatus": PAYMENT_COMPLETED,
        "paymentReference": reference,
        "transactionId": transaction_id,
        "paidAt": now,
        "updatedAt": now,
        "amountPaid": total_amount,
        "platformCommission": commission_amount,
    }
    if order.get("status", ORDER_PENDING) == ORDER_PENDING:
        fields["status"] = ORDER_CONFIRMED

    claimed = await kv_update_fields(
        db,
        f"order:{order_id}",
        fields,
        guard={"paymentStatus": {"$ne": PAYMENT_COMPLETED}},
    )
    if not claimed:
        return {"success": True, "message": "Payment already processed", "orderId": order_id}

    await kv_set(db, f"transaction:{transaction_id}", {
        "id": transaction_id,
        "orderId": order_id,
        "vendorId": vendor_id,
        "customerId": order.get("customerId") or "guest",
        "totalAmount": total_amount,
        "commissionAmount": commission_amount,
        "vendorAmount": vendor_amount,
        "status": "completed",
        "paymentReference": reference,
        "paymentMethod": channel,
        "createdAt": now,
    })

    await credit_wallet(db, vendor_id, vendor_amount)

    await track_commission(
        db,
        order_id=order_id,
        vendor_id=vendor_id,
        order_amount=total_amount,
        commission_amount=commission_amount,
    )

    await update_vendor_stats(db, vendor_id, STAT_ORDER_COMPLETED, amount=vendor_amount)

    logger.info(
        "Payment verified: %s | Vendor gets: %s | Commission: %s",
        format_naira(total_amount),
        format_naira(vendor_amount),
        format_naira(commission_amount),
    )

    return {
        "success": True,
        "message": "Payment verified and wallet credited",
        "orderId": order_id,
        "transactionId": transaction_id,
        "vendorCredited": vendor_amount,
    }


# ==============================
# Transfer outcome (withdrawals)
# ==============================

async def apply_transfer_outcome(db, withdrawal: dict, provider_status: str, *, transfer: dict | None = None) -> dict:
    """
    Record Paystack's final word on a vendor transfer.
    A failed or reversed transfer puts the money back in the wallet once.
    """
    status = (provider_status or "").lower()
    key = f"withdrawal:{withdrawal['id']}"
    now = utc_now_iso()

    fields = {"status": status, "updatedAt": now}
    if status == TRANSFER_SUCCESS:
        fields["completedAt"] = now
    if transfer and transfer.get("transfer_code"):
        fields["transferCode"] = transfer["transfer_code"]
    if transfer and transfer.get("reason") and status in {TRANSFER_FAILED, TRANSFER_REVERSED}:
        fields["failureReason"] = transfer["reason"]

    await kv_update_fields(db, key, fields)

    refunded = False
    if status in {TRANSFER_FAILED, TRANSFER_REVERSED}:
        refunded = await kv_update_fields(
            db,
            key,
            {"refunded": True, "refundedAt": now},
            guard={"refunded": {"$ne": True}},
        )
        if refunded:
            await restore_wallet(db, withdrawal["vendorId"], withdrawal["amount"])
            logger.info(
                "Withdrawal %s %s, %s returned to wallet",
                withdrawal["id"],
                status,
                format_naira(withdrawal["amount"]),
            )

    return {"id": withdrawal["id"], "status": status, "refunded": refunded}


async def reconcile_withdrawal(db, withdrawal: dict) -> dict:
    """Ask Paystack for the transfer's current status and record it."""
    transfer = await asyncio.to_thread(verify_transfer, withdrawal["reference"])
    provider_status = (transfer.get("status") or "").lower()

    if not provider_status or provider_status == (withdrawal.get("status") or "").lower():
        return {"id": withdrawal["id"], "status": withdrawal.get("status"), "refunded": False}

    return await apply_transfer_outcome(db, withdrawal, provider_status, transfer=transfer)
