"""
Key-value access over the ``kv_store`` collection.

Every domain record lives in one document ``{key, value, created_at, updated_at}``.
Keys follow ``<kind>:<id>`` (``order:ORD-...``, ``menu:<vendorId>:<itemId>``) so a
prefix scan returns all records of one kind.
"""

import re
from datetime import datetime


def _collection(db):
    return db.kv_store


def _value_path(field: str) -> str:
    return f"value.{field}"


def _guard_filter(key: str, guard: dict | None) -> dict:
    query = {"key": key}
    for field, condition in (guard or {}).items():
        query[_value_path(field)] = condition
    return query


async def kv_get(db, key: str):
    doc = await _collection(db).find_one({"key": key})
    if not doc:
        return None
    return doc.get("value")


async def kv_mget(db, keys: list[str]) -> list:
    if not keys:
        return []

    found = {}
    async for doc in _collection(db).find({"key": {"$in": list(keys)}}):
        found[doc["key"]] = doc.get("value")

    return [found.get(k) for k in keys]


async def kv_set(db, key: str, value: dict):
    now = datetime.utcnow()
    await _collection(db).update_one(
        {"key": key},
        {
            "$set": {"value": value, "updated_at": now},
            "$setOnInsert": {"created_at": now},
        },
        upsert=True,
    )


async def kv_delete(db, key: str) -> bool:
    result = await _collection(db).delete_one({"key": key})
    return result.deleted_count > 0


async def kv_get_by_prefix(db, prefix: str) -> list:
    cursor = _collection(db).find({"key": {"$regex": f"^{re.escape(prefix)}"}})
    return [doc.get("value") async for doc in cursor]


async def kv_ensure(db, key: str, default: dict):
    """
    Insert ``default`` when the key is absent. Existing values are left untouched.
    """
    now = datetime.utcnow()
    await _collection(db).update_one(
        {"key": key},
        {"$setOnInsert": {"value": default, "created_at": now, "updated_at": now}},
        upsert=True,
    )


async def kv_update_fields(db, key: str, fields: dict, *, guard: dict | None = None) -> bool:
    """
    Set individual fields of a stored value.
    ``guard`` holds Mongo conditions on value fields; the write only happens when
    they match. Returns True when a record was changed.
    """
    if not fields:
        return False

    update = {_value_path(k): v for k, v in fields.items()}
    update["updated_at"] = datetime.utcnow()

    result = await _collection(db).update_one(
        _guard_filter(key, guard),
        {"$set": update},
    )
    return result.modified_count == 1


async def kv_increment(
    db,
    key: str,
    amounts: dict,
    *,
    guard: dict | None = None,
    set_fields: dict | None = None,
) -> bool:
    """
    Atomically add ``amounts`` to numeric value fields (dotted paths allowed).
    The record must already exist; use ``kv_ensure`` first.
    """
    update = {"$inc": {_value_path(k): v for k, v in amounts.items()}}

    extra = {_value_path(k): v for k, v in (set_fields or {}).items()}
    extra["updated_at"] = datetime.utcnow()
    update["$set"] = extra

    result = await _collection(db).update_one(_guard_filter(key, guard), update)
    return result.modified_count == 1
