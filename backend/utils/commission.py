import logging

from config.env import COMMISSION_RATE, PLATFORM_OWNER_ID
from utils.ids import make_id
from utils.kv_store import kv_get, kv_set, kv_ensure, kv_increment
from utils.money import round_naira, format_naira
from utils.serializers import utc_now_iso, month_key

logger = logging.getLogger(__name__)


def platform_earnings_key() -> str:
    return f"platform_earnings:{PLATFORM_OWNER_ID}"


def default_platform_earnings() -> dict:
    return {
        "totalEarnings": 0,
        "totalOrders": 0,
        "totalWithdrawn": 0,
        "monthlyEarnings": {},
        "lastUpdated": utc_now_iso(),
    }


def calculate_commission(order_amount: float) -> int:
    return round_naira(order_amount * COMMISSION_RATE)


async def get_platform_earnings(db) -> dict:
    earnings = await kv_get(db, platform_earnings_key())
    if not earnings:
        return default_platform_earnings()
    earnings.setdefault("totalWithdrawn", 0)
    earnings.setdefault("monthlyEarnings", {})
    return earnings


async def track_commission(db, *, order_id: str, vendor_id: str, order_amount: float, commission_amount: int) -> dict:
    month = month_key()
    record = {
        "id": make_id("commission", sep="_"),
        "orderId": order_id,
        "vendorId": vendor_id,
        "orderAmount": order_amount,
        "commissionAmount": commission_amount,
        "commissionRate": COMMISSION_RATE,
        "platformOwnerId": PLATFORM_OWNER_ID,
        "createdAt": utc_now_iso(),
        "status": "earned",
        "month": month,
    }
    await kv_set(db, f"commission:{record['id']}", record)

    key = platform_earnings_key()
    await kv_ensure(db, key, default_platform_earnings())
    await kv_increment(
        db,
        key,
        {
            "totalEarnings": commission_amount,
            "totalOrders": 1,
            f"monthlyEarnings.{month}": commission_amount,
        },
        set_fields={"lastUpdated": utc_now_iso()},
    )

    logger.info(
        "Commission tracked: %s on order %s (%.1f%%)",
        format_naira(commission_amount),
        order_id,
        COMMISSION_RATE * 100,
    )
    return record


def summarize_earnings(earnings: dict) -> dict:
    total_earnings = earnings.get("totalEarnings") or 0
    total_orders = earnings.get("totalOrders") or 0
    current_month = month_key()

    return {
        "totalEarnings": total_earnings,
        "totalOrders": total_orders,
        "averageCommissionPerOrder": round_naira(total_earnings / total_orders) if total_orders > 0 else 0,
        "currentMonth": current_month,
        "currentMonthEarnings": (earnings.get("monthlyEarnings") or {}).get(current_month, 0),
    }


def available_commission_balance(earnings: dict) -> float:
    return (earnings.get("totalEarnings") or 0) - (earnings.get("totalWithdrawn") or 0)
