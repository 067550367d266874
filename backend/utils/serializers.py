from datetime import datetime

# Platform-only fields never shown to vendors or customers
ORDER_PRIVATE_FIELDS = ("platformCommission", "commissionRate")
USER_PRIVATE_FIELDS = ("passwordHash",)


def utc_now_iso() -> str:
    return datetime.utcnow().isoformat() + "Z"


def today_key() -> str:
    return datetime.utcnow().strftime("%Y-%m-%d")


def month_key() -> str:
    return datetime.utcnow().strftime("%Y-%m")


def _without(doc: dict | None, fields) -> dict | None:
    if not doc:
        return doc
    return {k: v for k, v in doc.items() if k not in fields}


def serialize_order(order: dict) -> dict:
    return _without(order, ORDER_PRIVATE_FIELDS)


def serialize_orders(orders):
    return [serialize_order(o) for o in orders]


def serialize_user(user: dict) -> dict:
    return _without(user, USER_PRIVATE_FIELDS)


def serialize_withdrawal(withdrawal: dict) -> dict:
    doc = _without(withdrawal, ("accountNumberEncrypted",))
    if doc and "accountNumberMasked" in doc:
        doc["accountNumber"] = doc.pop("accountNumberMasked")
    return doc


def newest_first(records, field: str = "createdAt"):
    return sorted(records, key=lambda r: r.get(field) or "", reverse=True)
