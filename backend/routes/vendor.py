from fastapi import APIRouter, Depends

from config.constants import (
    VENDOR_PROTECTED_FIELDS,
    RECENT_ORDERS_LIMIT,
    STAT_PROFILE_UPDATED,
)
from database import get_db
from models.vendor import VendorProfileUpdate
from utils.audit import log_audit
from utils.kv_store import kv_get, kv_set, kv_get_by_prefix
from utils.security import require_role
from utils.serializers import serialize_orders, newest_first, today_key, utc_now_iso
from utils.vendors import (
    vendor_key,
    analytics_key,
    fresh_analytics,
    get_or_create_vendor,
    count_active_menu_items,
    update_vendor_stats,
    delete_vendor_cascade,
)

router = APIRouter(
    prefix="/vendor",
    tags=["Vendor"]
)


# ----------------------------------------
# VENDOR PROFILE
# ----------------------------------------

@router.get("/profile")
async def get_vendor_profile(
    vendor=Depends(require_role("vendor")),
    db=Depends(get_db),
):
    profile = await kv_get(db, vendor_key(vendor["id"]))
    return {"vendor": profile}


@router.post("/profile")
async def save_vendor_profile(
    data: VendorProfileUpdate,
    vendor=Depends(require_role("vendor")),
    db=Depends(get_db),
):
    current = await get_or_create_vendor(db, vendor)

    updates = {
        k: v for k, v in data.to_record().items()
        if k not in VENDOR_PROTECTED_FIELDS
    }

    await kv_set(db, vendor_key(vendor["id"]), {
        **current,
        **updates,
        "id": vendor["id"],
        "lastActive": utc_now_iso(),
    })
    await update_vendor_stats(db, vendor["id"], STAT_PROFILE_UPDATED)

    await log_audit(
        db,
        actor_id=vendor["id"],
        actor_role="vendor",
        action="VENDOR_PROFILE_UPDATED",
        metadata={"fields": sorted(updates)},
    )

    return {"success": True}


# ----------------------------------------
# DASHBOARD STATS
# ----------------------------------------

@router.get("/stats")
async def vendor_stats(
    vendor=Depends(require_role("vendor")),
    db=Depends(get_db),
):
    profile = await get_or_create_vendor(db, vendor)
    analytics = await kv_get(db, analytics_key(vendor["id"])) or fresh_analytics()

    today_stats = (analytics.get("dailyStats") or {}).get(today_key()) or {"orders": 0, "revenue": 0}

    vendor_orders = [
        o for o in await kv_get_by_prefix(db, "order:")
        if o.get("vendorId") == vendor["id"]
    ]
    recent_orders = newest_first(vendor_orders)[:RECENT_ORDERS_LIMIT]

    now = utc_now_iso()
    stats = {
        "totalOrders": profile.get("totalOrders") or 0,
        "todaysOrders": today_stats.get("orders") or 0,
        "revenue": profile.get("revenue") or 0,
        "todaysRevenue": today_stats.get("revenue") or 0,
        "rating": profile.get("rating") or 0.0,
        "activeMenuItems": await count_active_menu_items(db, vendor["id"]),
        "averageOrderValue": profile.get("averageOrderValue") or 0,
        "completionRate": profile.get("completionRate") or 0,
        "recentOrders": serialize_orders(recent_orders),
        "isVerified": profile.get("isVerified", False),
        "businessName": profile.get("businessName") or vendor.get("businessName") or "Your Restaurant",
        "joinDate": profile.get("joinDate") or now,
        "lastActive": profile.get("lastActive") or now,
    }

    return {"stats": stats}


# ----------------------------------------
# ORDERS
# ----------------------------------------

@router.get("/orders")
async def vendor_orders(
    vendor=Depends(require_role("vendor")),
    db=Depends(get_db),
):
    orders = [
        o for o in await kv_get_by_prefix(db, "order:")
        if o.get("vendorId") == vendor["id"]
    ]
    return {"orders": serialize_orders(newest_first(orders))}


# ----------------------------------------
# ACCOUNT
# ----------------------------------------

@router.delete("/account")
async def delete_vendor_account(
    vendor=Depends(require_role("vendor")),
    db=Depends(get_db),
):
    removed = await delete_vendor_cascade(db, vendor["id"])

    await log_audit(
        db,
        actor_id=vendor["id"],
        actor_role="vendor",
        action="VENDOR_ACCOUNT_DELETED",
        metadata=removed,
    )

    return {"success": True, "message": "Account deleted successfully"}
