import logging

from fastapi import APIRouter, Depends, HTTPException

from config.constants import (
    ORDER_PENDING,
    ORDER_DELIVERED,
    ORDER_STATUSES,
    ORDER_TRANSITIONS,
    PAYMENT_PENDING,
    STAT_NEW_ORDER,
    STAT_ORDER_DELIVERED,
)
from config.env import COMMISSION_RATE
from database import get_db
from models.order import OrderCreate, OrderStatusUpdate
from utils.commission import calculate_commission
from utils.ids import make_id
from utils.kv_store import kv_get, kv_set, kv_update_fields
from utils.money import format_naira
from utils.pricing import price_order
from utils.security import require_role
from utils.serializers import utc_now_iso
from utils.vendors import vendor_key, update_vendor_stats

router = APIRouter(
    prefix="/orders",
    tags=["Orders"]
)
logger = logging.getLogger(__name__)


def order_key(order_id: str) -> str:
    return f"order:{order_id}"


def assert_transition(current: str, requested: str):
    if requested not in ORDER_STATUSES:
        raise HTTPException(
            status_code=400,
            detail=f"Invalid order status. Allowed: {', '.join(ORDER_STATUSES)}",
        )
    if requested not in ORDER_TRANSITIONS.get(current, set()):
        raise HTTPException(400, f"Cannot change order from {current} to {requested}")


# ======================================================
# CREATE ORDER (CUSTOMER)
# ======================================================

@router.post("")
async def create_order(
    data: OrderCreate,
    db=Depends(get_db),
):
    vendor = await kv_get(db, vendor_key(data.vendor_id))
    if not vendor:
        raise HTTPException(404, "Vendor not found")
    if vendor.get("status") != "active":
        raise HTTPException(403, "Vendor is not accepting orders")

    pricing = await price_order(db, data.vendor_id, data.items)

    order_id = make_id("ORD")
    order = {
        "id": order_id,
        "vendorId": data.vendor_id,
        "customerId": data.customer_id,
        "customerEmail": data.customer_email,
        "customerName": data.customer_name,
        "customerPhone": data.customer_phone,
        "deliveryAddress": data.delivery_address,
        "deliveryNotes": data.delivery_notes,
        **pricing,
        "status": ORDER_PENDING,
        "paymentStatus": PAYMENT_PENDING,
        "createdAt": utc_now_iso(),
        # platform-only, stripped from vendor/customer views
        "platformCommission": calculate_commission(pricing["amount"]),
        "commissionRate": COMMISSION_RATE,
    }

    await kv_set(db, order_key(order_id), order)
    await update_vendor_stats(db, data.vendor_id, STAT_NEW_ORDER)

    logger.info("New order created: %s - Amount: %s", order_id, format_naira(pricing["amount"]))

    return {"success": True, "orderId": order_id, "amount": pricing["amount"]}


# ======================================================
# STATUS (VENDOR)
# ======================================================

@router.put("/{order_id}/status")
async def update_order_status(
    order_id: str,
    data: OrderStatusUpdate,
    vendor=Depends(require_role("vendor")),
    db=Depends(get_db),
):
    order = await kv_get(db, order_key(order_id))
    if not order:
        raise HTTPException(404, "Order not found")

    if order.get("vendorId") != vendor["id"]:
        raise HTTPException(403, "Order belongs to another vendor")

    current = order.get("status", ORDER_PENDING)
    if data.status == current:
        return {"success": True}

    assert_transition(current, data.status)

    now = utc_now_iso()
    fields = {"status": data.status, "updatedAt": now}
    if data.status == ORDER_DELIVERED:
        fields["deliveredAt"] = now

    # guarded against a concurrent status change
    changed = await kv_update_fields(db, order_key(order_id), fields, guard={"status": current})
    if not changed:
        raise HTTPException(409, "Order status changed, please refresh")

    if data.status == ORDER_DELIVERED:
        await update_vendor_stats(db, vendor["id"], STAT_ORDER_DELIVERED)

    return {"success": True}
