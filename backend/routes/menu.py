from fastapi import APIRouter, Depends, HTTPException

from config.constants import STAT_MENU_ITEM_ADDED, STAT_MENU_CHANGED
from database import get_db
from models.menu import MenuItemCreate, MenuItemUpdate
from utils.ids import make_id
from utils.kv_store import kv_get, kv_set, kv_delete, kv_get_by_prefix
from utils.security import require_role
from utils.serializers import utc_now_iso
from utils.vendors import menu_key, menu_prefix, update_vendor_stats

router = APIRouter(prefix="/menu", tags=["Menu"])


@router.post("/items")
async def add_menu_item(
    data: MenuItemCreate,
    vendor=Depends(require_role("vendor")),
    db=Depends(get_db),
):
    item_id = make_id()

    await kv_set(db, menu_key(vendor["id"], item_id), {
        **data.to_record(),
        "id": item_id,
        "vendorId": vendor["id"],
        "rating": 0,
        "orders": 0,
        "createdAt": utc_now_iso(),
    })

    await update_vendor_stats(db, vendor["id"], STAT_MENU_ITEM_ADDED)

    return {"success": True, "itemId": item_id}


@router.get("/items")
async def list_menu_items(
    vendor=Depends(require_role("vendor")),
    db=Depends(get_db),
):
    items = await kv_get_by_prefix(db, menu_prefix(vendor["id"]))
    return {"menuItems": items}


@router.put("/items/{item_id}")
async def update_menu_item(
    item_id: str,
    data: MenuItemUpdate,
    vendor=Depends(require_role("vendor")),
    db=Depends(get_db),
):
    key = menu_key(vendor["id"], item_id)
    existing = await kv_get(db, key)
    if not existing:
        raise HTTPException(404, "Menu item not found")

    await kv_set(db, key, {
        **existing,
        **data.to_record(),
        "id": item_id,
        "vendorId": vendor["id"],
        "updatedAt": utc_now_iso(),
    })

    # availability may have changed
    await update_vendor_stats(db, vendor["id"], STAT_MENU_CHANGED)

    return {"success": True}


@router.delete("/items/{item_id}")
async def delete_menu_item(
    item_id: str,
    vendor=Depends(require_role("vendor")),
    db=Depends(get_db),
):
    await kv_delete(db, menu_key(vendor["id"], item_id))
    await update_vendor_stats(db, vendor["id"], STAT_MENU_CHANGED)

    return {"success": True}
