from fastapi import HTTPException

from config.env import DELIVERY_FEE, TAX_RATE
from utils.kv_store import kv_mget
from utils.money import round_naira, normalize_amount
from utils.vendors import menu_key


async def price_order(db, vendor_id: str, items) -> dict:
    """
    Price a cart from the vendor's stored menu. Client-sent prices are ignored.
    """
    stored = await kv_mget(db, [menu_key(vendor_id, item.id) for item in items])

    lines = []
    subtotal = 0
    for item, menu_item in zip(items, stored):
        if not menu_item or menu_item.get("isAvailable") is False:
            raise HTTPException(400, f"Menu item {item.id} is not available")

        price = menu_item["price"]
        line = {
            "id": item.id,
            "name": menu_item.get("name"),
            "price": price,
            "quantity": item.quantity,
        }
        if item.special_instructions:
            line["specialInstructions"] = item.special_instructions
        lines.append(line)
        subtotal += price * item.quantity

    subtotal = normalize_amount(subtotal)
    tax = round_naira(subtotal * TAX_RATE)
    delivery_fee = DELIVERY_FEE

    return {
        "items": lines,
        "subtotal": subtotal,
        "deliveryFee": delivery_fee,
        "tax": tax,
        "amount": normalize_amount(subtotal + delivery_fee + tax),
    }
