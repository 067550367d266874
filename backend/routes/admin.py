import logging

from fastapi import APIRouter, Depends, HTTPException

from config.constants import (
    VENDOR_STATUSES,
    RECENT_COMMISSIONS_LIMIT,
    RECENT_AUDIT_LIMIT,
    STAT_PROFILE_UPDATED,
)
from config.env import COMMISSION_RATE
from database import get_db
from models.vendor import VendorStatusUpdate
from models.wallet import WithdrawalRequest
from routes.auth import verify_admin_password
from utils.audit import log_audit
from utils.commission import (
    platform_earnings_key,
    get_platform_earnings,
    summarize_earnings,
    available_commission_balance,
)
from utils.bank_details import mask_account_number
from utils.ids import make_id
from utils.kv_store import kv_get, kv_set, kv_get_by_prefix, kv_increment, kv_update_fields
from utils.money import normalize_amount, format_naira
from utils.security import require_role
from utils.serializers import newest_first, serialize_withdrawal, utc_now_iso
from utils.vendors import vendor_key, delete_vendor_cascade, update_vendor_stats
from utils.wallet_service import reconcile_withdrawal


router = APIRouter(prefix="/admin", tags=["Admin"])
logger = logging.getLogger(__name__)


# =====================================================
# VENDORS
# =====================================================

@router.get("/vendors")
async def list_vendors(
    admin=Depends(require_role("admin")),
    db=Depends(get_db),
):
    vendors = await kv_get_by_prefix(db, "vendor:")
    return {"vendors": vendors}


@router.put("/vendors/{vendor_id}/status")
async def update_vendor_status(
    vendor_id: str,
    data: VendorStatusUpdate,
    admin=Depends(require_role("admin")),
    db=Depends(get_db),
):
    if data.status not in VENDOR_STATUSES:
        raise HTTPException(
            status_code=400,
            detail=f"Invalid vendor status. Allowed: {', '.join(sorted(VENDOR_STATUSES))}",
        )

    vendor = await kv_get(db, vendor_key(vendor_id))
    if not vendor:
        raise HTTPException(404, "Vendor not found")

    fields = {"status": data.status, "updatedAt": utc_now_iso()}
    if data.is_verified is not None:
        fields["isVerified"] = data.is_verified

    await kv_update_fields(db, vendor_key(vendor_id), fields)
    await update_vendor_stats(db, vendor_id, STAT_PROFILE_UPDATED)

    await log_audit(
        db,
        actor_id=admin["id"],
        actor_role="admin",
        action="VENDOR_STATUS_UPDATED",
        metadata={
            "vendorId": vendor_id,
            "from": vendor.get("status"),
            "to": data.status,
            "isVerified": data.is_verified,
        },
    )

    return {"success": True, "message": "Vendor status updated"}


@router.delete("/vendors/{vendor_id}")
async def delete_vendor(
    vendor_id: str,
    admin=Depends(require_role("admin")),
    db=Depends(get_db),
):
    removed = await delete_vendor_cascade(db, vendor_id)

    await log_audit(
        db,
        actor_id=admin["id"],
        actor_role="admin",
        action="VENDOR_DELETED",
        metadata={"vendorId": vendor_id, **removed},
    )

    return {"success": True, "message": "Vendor deleted successfully"}


# =====================================================
# ORDERS
# =====================================================

@router.get("/orders")
async def list_all_orders(
    admin=Depends(require_role("admin")),
    db=Depends(get_db),
):
    orders = await kv_get_by_prefix(db, "order:")
    return {"orders": newest_first(orders)}


# =====================================================
# COMMISSIONS
# =====================================================

@router.get("/commissions")
async def commission_overview(
    admin=Depends(require_role("admin")),
    db=Depends(get_db),
):
    earnings = await get_platform_earnings(db)
    commissions = await kv_get_by_prefix(db, "commission:")

    return {
        "platformEarnings": earnings,
        "recentCommissions": newest_first(commissions)[:RECENT_COMMISSIONS_LIMIT],
        "commissionRate": COMMISSION_RATE,
        "summary": summarize_earnings(earnings),
    }


# =====================================================
# PLATFORM WITHDRAWALS
# =====================================================

@router.post("/withdraw")
async def withdraw_commission(
    data: WithdrawalRequest,
    admin=Depends(require_role("admin")),
    db=Depends(get_db),
):
    if not data.amount or not data.password:
        raise HTTPException(400, "Missing required fields")

    if not await verify_admin_password(db, data.password):
        raise HTTPException(401, "Invalid admin password")

    amount = normalize_amount(data.amount)
    if amount <= 0:
        raise HTTPException(400, "Withdrawal amount must be positive")

    earnings = await get_platform_earnings(db)
    available = available_commission_balance(earnings)
    if amount > available:
        raise HTTPException(400, "Insufficient commission balance")

    withdrawn = earnings.get("totalWithdrawn") or 0

    # only applies if nobody withdrew since the balance was read
    claimed = await kv_increment(
        db,
        platform_earnings_key(),
        {"totalWithdrawn": amount},
        guard={"totalWithdrawn": withdrawn},
        set_fields={"lastUpdated": utc_now_iso()},
    )
    if not claimed:
        raise HTTPException(409, "Commission balance changed, please retry")

    withdrawal_id = make_id("ADMIN-WD")
    remaining = normalize_amount(available - amount)

    await kv_set(db, f"admin_withdrawal:{withdrawal_id}", {
        "id": withdrawal_id,
        "adminId": admin["id"],
        "amount": amount,
        "bankCode": data.bank_code,
        "accountNumber": mask_account_number(data.account_number) if data.account_number else None,
        "accountName": data.account_name,
        "status": "completed",
        "createdAt": utc_now_iso(),
    })

    await log_audit(
        db,
        actor_id=admin["id"],
        actor_role="admin",
        action="PLATFORM_WITHDRAWAL",
        metadata={"withdrawalId": withdrawal_id, "amount": amount},
    )

    logger.info("Platform withdrawal %s: %s (remaining %s)", withdrawal_id, format_naira(amount), format_naira(remaining))

    return {
        "success": True,
        "message": "Withdrawal processed successfully",
        "withdrawal": {
            "id": withdrawal_id,
            "amount": amount,
            "availableBalance": remaining,
        },
    }


@router.get("/withdrawals")
async def list_platform_withdrawals(
    admin=Depends(require_role("admin")),
    db=Depends(get_db),
):
    withdrawals = await kv_get_by_prefix(db, "admin_withdrawal:")
    return {"withdrawals": newest_first(withdrawals)}


@router.post("/withdrawals/{withdrawal_id}/reconcile")
async def reconcile_vendor_withdrawal(
    withdrawal_id: str,
    admin=Depends(require_role("admin")),
    db=Depends(get_db),
):
    withdrawal = await kv_get(db, f"withdrawal:{withdrawal_id}")
    if not withdrawal:
        raise HTTPException(404, "Withdrawal not found")
    if not withdrawal.get("reference"):
        raise HTTPException(400, "Withdrawal has no transfer reference")

    outcome = await reconcile_withdrawal(db, withdrawal)

    await log_audit(
        db,
        actor_id=admin["id"],
        actor_role="admin",
        action="WITHDRAWAL_RECONCILED",
        metadata=outcome,
    )

    updated = await kv_get(db, f"withdrawal:{withdrawal_id}")
    return {"success": True, **outcome, "withdrawal": serialize_withdrawal(updated)}


# =====================================================
# AUDIT
# =====================================================

@router.get("/audit")
async def audit_log(
    admin=Depends(require_role("admin")),
    db=Depends(get_db),
):
    entries = await kv_get_by_prefix(db, "audit:")
    return {"audit": newest_first(entries)[:RECENT_AUDIT_LIMIT]}
