from fastapi import APIRouter, Depends

from config.constants import NIGERIAN_BANKS
from database import get_db
from utils.kv_store import kv_get_by_prefix
from utils.vendors import menu_prefix

router = APIRouter(tags=["Public"])


# =====================================================
# VENDORS
# =====================================================

@router.get("/vendors")
async def list_active_vendors(db=Depends(get_db)):
    vendors = await kv_get_by_prefix(db, "vendor:")
    return {"vendors": [v for v in vendors if v.get("status") == "active"]}


@router.get("/vendors/{vendor_id}/menu")
async def vendor_available_menu(vendor_id: str, db=Depends(get_db)):
    items = await kv_get_by_prefix(db, menu_prefix(vendor_id))
    return {"menuItems": [item for item in items if item.get("isAvailable")]}


@router.get("/vendor/menu-items/{vendor_id}")
async def vendor_menu_items(vendor_id: str, db=Depends(get_db)):
    items = await kv_get_by_prefix(db, menu_prefix(vendor_id))
    return {"menuItems": items or []}


# =====================================================
# BANKS
# =====================================================

@router.get("/banks")
async def supported_banks():
    return {"banks": NIGERIAN_BANKS}
