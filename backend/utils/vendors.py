import logging

from config.constants import (
    STAT_NEW_ORDER,
    STAT_ORDER_COMPLETED,
    STAT_ORDER_DELIVERED,
    STAT_MENU_ITEM_ADDED,
    STAT_MENU_CHANGED,
    STAT_PROFILE_UPDATED,
    BASE_VENDOR_RATING,
    ASSUMED_COMPLETION_BONUS,
    MAX_VOLUME_BONUS,
    MAX_RATING,
)
from utils.kv_store import (
    kv_get,
    kv_set,
    kv_delete,
    kv_ensure,
    kv_increment,
    kv_update_fields,
    kv_get_by_prefix,
)
from utils.money import normalize_amount
from utils.serializers import utc_now_iso, today_key
from utils.users import delete_user

logger = logging.getLogger(__name__)


def vendor_key(vendor_id: str) -> str:
    return f"vendor:{vendor_id}"


def analytics_key(vendor_id: str) -> str:
    return f"vendor_analytics:{vendor_id}"


def menu_prefix(vendor_id: str) -> str:
    return f"menu:{vendor_id}:"


def menu_key(vendor_id: str, item_id: str) -> str:
    return f"menu:{vendor_id}:{item_id}"


# ==============================
# Fresh records
# ==============================

def fresh_vendor_profile(user: dict) -> dict:
    now = utc_now_iso()
    return {
        "id": user["id"],
        "email": user.get("email"),
        "businessName": user.get("businessName") or "Your Restaurant",
        "location": user.get("location") or "",
        "phone": user.get("phone") or "",
        "cuisine": user.get("cuisine") or "",
        "rating": 0.0,
        "totalOrders": 0,
        "completedOrders": 0,
        "revenue": 0,
        "todaysOrders": 0,
        "activeMenuItems": 0,
        "status": "active",
        "joinDate": now,
        "lastActive": now,
        "isVerified": False,
        "thisWeekOrders": 0,
        "thisMonthOrders": 0,
        "averageOrderValue": 0,
        "completionRate": 0,
        "responseTime": 0,
        "orderHistory": [],
        "revenueHistory": [],
        "customerRetention": 0,
        "peakHours": [],
        "popularItems": [],
    }


def fresh_analytics() -> dict:
    return {
        "dailyStats": {},
        "weeklyStats": {},
        "monthlyStats": {},
        "yearlyStats": {},
        "lastUpdated": utc_now_iso(),
    }


async def create_vendor_records(db, user: dict) -> dict:
    profile = fresh_vendor_profile(user)
    await kv_set(db, vendor_key(user["id"]), profile)
    await kv_set(db, analytics_key(user["id"]), fresh_analytics())
    return profile


async def get_or_create_vendor(db, user: dict) -> dict:
    vendor = await kv_get(db, vendor_key(user["id"]))
    if vendor:
        return vendor
    return await create_vendor_records(db, user)


async def count_active_menu_items(db, vendor_id: str) -> int:
    items = await kv_get_by_prefix(db, menu_prefix(vendor_id))
    return sum(1 for item in items if item.get("isAvailable") is not False)


# ==============================
# Derived metrics
# ==============================

def compute_rating(total_orders: int) -> float:
    volume_bonus = min(total_orders / 100, MAX_VOLUME_BONUS)
    return round(min(BASE_VENDOR_RATING + ASSUMED_COMPLETION_BONUS + volume_bonus, MAX_RATING), 2)


def _derived_fields(vendor: dict) -> dict:
    total_orders = vendor.get("totalOrders") or 0
    if total_orders <= 0:
        return {}

    return {
        "averageOrderValue": normalize_amount((vendor.get("revenue") or 0) / total_orders),
        "completionRate": round((vendor.get("completedOrders") or 0) * 100 / total_orders),
        "rating": compute_rating(total_orders),
    }


# ==============================
# Stats update (never raises)
# ==============================

async def update_vendor_stats(db, vendor_id: str, action: str, *, amount: float = 0):
    try:
        vkey = vendor_key(vendor_id)
        vendor = await kv_get(db, vkey)
        if not vendor:
            return

        akey = analytics_key(vendor_id)
        today = today_key()
        now = utc_now_iso()
        await kv_ensure(db, akey, fresh_analytics())

        if action == STAT_NEW_ORDER:
            await kv_increment(db, vkey, {"totalOrders": 1, "todaysOrders": 1})
            await kv_increment(
                db,
                akey,
                {f"dailyStats.{today}.orders": 1, f"dailyStats.{today}.revenue": 0},
                set_fields={"lastUpdated": now},
            )

        elif action == STAT_ORDER_COMPLETED:
            await kv_increment(db, vkey, {"revenue": amount})
            await kv_increment(
                db,
                akey,
                {f"dailyStats.{today}.orders": 0, f"dailyStats.{today}.revenue": amount},
                set_fields={"lastUpdated": now},
            )

        elif action == STAT_ORDER_DELIVERED:
            await kv_increment(db, vkey, {"completedOrders": 1})

        elif action in (STAT_MENU_ITEM_ADDED, STAT_MENU_CHANGED):
            active = await count_active_menu_items(db, vendor_id)
            await kv_update_fields(db, vkey, {"activeMenuItems": active})

        elif action == STAT_PROFILE_UPDATED:
            await kv_update_fields(db, vkey, {"lastActive": now})

        else:
            logger.warning("Unknown vendor stats action %s", action)
            return

        refreshed = await kv_get(db, vkey)
        derived = _derived_fields(refreshed or {})
        if derived:
            await kv_update_fields(db, vkey, derived)

    except Exception:
        logger.exception("VENDOR_STATS_ERROR vendor=%s action=%s", vendor_id, action)


# ==============================
# Cascading delete
# ==============================

async def delete_vendor_cascade(db, vendor_id: str) -> dict:
    """
    Remove the vendor, its analytics, menu, orders and login.
    Wallet, transactions and withdrawals are kept as financial history.
    """
    await kv_delete(db, vendor_key(vendor_id))
    await kv_delete(db, analytics_key(vendor_id))

    menu_items = await kv_get_by_prefix(db, menu_prefix(vendor_id))
    for item in menu_items:
        await kv_delete(db, menu_key(vendor_id, item["id"]))

    orders_removed = 0
    for order in await kv_get_by_prefix(db, "order:"):
        if order.get("vendorId") == vendor_id:
            await kv_delete(db, f"order:{order['id']}")
            orders_removed += 1

    await delete_user(db, vendor_id)

    logger.info(
        "Vendor %s deleted: %s menu items, %s orders",
        vendor_id,
        len(menu_items),
        orders_removed,
    )
    return {"menuItems": len(menu_items), "orders": orders_removed}
