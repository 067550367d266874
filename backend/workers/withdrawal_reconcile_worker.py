import asyncio
import logging

from config.constants import TRANSFER_OPEN_STATUSES
from config.env import WITHDRAWAL_RECONCILE_INTERVAL_SECONDS
from database import get_db
from utils.kv_store import kv_get_by_prefix
from utils.wallet_service import reconcile_withdrawal

logger = logging.getLogger(__name__)


async def reconcile_open_withdrawals(db) -> int:
    """Reconcile every vendor withdrawal Paystack has not settled yet."""
    reconciled = 0
    for withdrawal in await kv_get_by_prefix(db, "withdrawal:"):
        if (withdrawal.get("status") or "").lower() not in TRANSFER_OPEN_STATUSES:
            continue
        if not withdrawal.get("reference"):
            continue

        try:
            await reconcile_withdrawal(db, withdrawal)
            reconciled += 1
        except Exception:
            logger.exception("WITHDRAWAL_RECONCILE_ERROR withdrawal=%s", withdrawal.get("id"))

    return reconciled


async def withdrawal_reconcile_worker():
    db = get_db()

    while True:
        try:
            count = await reconcile_open_withdrawals(db)
            if count:
                logger.info("Reconciled %s open withdrawals", count)
        except Exception:
            logger.exception("WITHDRAWAL_RECONCILE_WORKER_ERROR")

        await asyncio.sleep(WITHDRAWAL_RECONCILE_INTERVAL_SECONDS)
