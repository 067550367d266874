import asyncio
import logging

from fastapi import APIRouter, Depends, HTTPException

from config.constants import BANK_CODES, RECENT_TRANSACTIONS_LIMIT
from config.env import MIN_WITHDRAWAL_AMOUNT, MAX_WITHDRAWAL_AMOUNT
from database import get_db
from models.wallet import WithdrawalRequest
from utils.audit import log_audit
from utils.bank_details import seal_account_number, mask_account_number
from utils.passwords import account_password_matches
from utils.ids import make_id
from utils.kv_store import kv_get_by_prefix, kv_set
from utils.money import normalize_amount, format_naira
from utils.paystack import create_transfer_recipient, initiate_transfer
from utils.security import require_role
from utils.serializers import newest_first, serialize_withdrawal, utc_now_iso
from utils.wallet_service import get_wallet, debit_wallet, restore_wallet

router = APIRouter(
    prefix="/vendor",
    tags=["Wallet"]
)
logger = logging.getLogger(__name__)


def _project_transaction(txn: dict) -> dict:
    return {
        "id": txn.get("id"),
        "orderId": txn.get("orderId"),
        "amount": txn.get("vendorAmount"),
        "status": txn.get("status"),
        "createdAt": txn.get("createdAt"),
        "paymentReference": txn.get("paymentReference"),
    }


def validate_withdrawal_amount(amount: float):
    if amount < MIN_WITHDRAWAL_AMOUNT:
        raise HTTPException(400, f"Minimum withdrawal amount is {format_naira(MIN_WITHDRAWAL_AMOUNT)}")
    if amount > MAX_WITHDRAWAL_AMOUNT:
        raise HTTPException(400, f"Maximum withdrawal amount is {format_naira(MAX_WITHDRAWAL_AMOUNT)}")


def validate_bank_details(bank_code: str, account_number: str):
    if bank_code not in BANK_CODES:
        raise HTTPException(400, "Unsupported bank")
    if len(account_number) != 10 or not account_number.isdigit():
        raise HTTPException(400, "Account number must be 10 digits")


# =====================================================
# WALLET
# =====================================================

@router.get("/wallet")
async def vendor_wallet(
    vendor=Depends(require_role("vendor")),
    db=Depends(get_db),
):
    wallet = await get_wallet(db, vendor["id"])

    transactions = [
        t for t in await kv_get_by_prefix(db, "transaction:")
        if t.get("vendorId") == vendor["id"]
    ]
    recent = newest_first(transactions)[:RECENT_TRANSACTIONS_LIMIT]

    return {
        "wallet": wallet,
        "transactions": [_project_transaction(t) for t in recent],
    }


# =====================================================
# WITHDRAW
# =====================================================

@router.post("/withdraw")
async def withdraw(
    data: WithdrawalRequest,
    vendor=Depends(require_role("vendor")),
    db=Depends(get_db),
):
    if not data.amount or not data.password or not data.bank_code or not data.account_number:
        raise HTTPException(400, "Missing required fields")

    if not account_password_matches(vendor, data.password):
        raise HTTPException(401, "Invalid password")

    amount = normalize_amount(data.amount)
    validate_withdrawal_amount(amount)

    bank_code = data.bank_code.strip()
    account_number = data.account_number.strip()
    validate_bank_details(bank_code, account_number)

    if not await debit_wallet(db, vendor["id"], amount):
        raise HTTPException(400, "Insufficient balance")

    account_name = data.account_name or vendor.get("businessName") or vendor.get("name") or "Vendor"
    reference = make_id("TRANSFER")

    try:
        recipient = await asyncio.to_thread(
            create_transfer_recipient,
            name=account_name,
            account_number=account_number,
            bank_code=bank_code,
        )
        transfer = await asyncio.to_thread(
            initiate_transfer,
            amount=amount,
            recipient_code=recipient["recipient_code"],
            reason=f"FoodHub withdrawal for {account_name}",
            reference=reference,
        )
    except Exception:
        await restore_wallet(db, vendor["id"], amount)
        logger.exception("WITHDRAWAL_TRANSFER_FAILED vendor=%s amount=%s", vendor["id"], amount)
        raise

    withdrawal_id = make_id("WD")
    status = (transfer.get("status") or "pending").lower()
    now = utc_now_iso()

    await kv_set(db, f"withdrawal:{withdrawal_id}", {
        "id": withdrawal_id,
        "vendorId": vendor["id"],
        "amount": amount,
        "bankCode": bank_code,
        **seal_account_number(account_number),
        "accountName": account_name,
        "status": status,
        "transferCode": transfer.get("transfer_code"),
        "recipientCode": recipient.get("recipient_code"),
        "reference": transfer.get("reference") or reference,
        "createdAt": now,
        "updatedAt": now,
    })

    await log_audit(
        db,
        actor_id=vendor["id"],
        actor_role="vendor",
        action="VENDOR_WITHDRAWAL_REQUESTED",
        metadata={"withdrawalId": withdrawal_id, "amount": amount, "status": status},
    )

    logger.info("Withdrawal %s: %s to %s", withdrawal_id, format_naira(amount), mask_account_number(account_number))

    return {
        "success": True,
        "message": "Withdrawal initiated successfully",
        "withdrawal": {
            "id": withdrawal_id,
            "amount": amount,
            "status": status,
            "reference": transfer.get("reference") or reference,
        },
    }


@router.get("/withdrawals")
async def vendor_withdrawals(
    vendor=Depends(require_role("vendor")),
    db=Depends(get_db),
):
    withdrawals = [
        w for w in await kv_get_by_prefix(db, "withdrawal:")
        if w.get("vendorId") == vendor["id"]
    ]
    return {"withdrawals": [serialize_withdrawal(w) for w in newest_first(withdrawals)]}
