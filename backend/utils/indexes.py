from pymongo import ASCENDING
from pymongo.errors import OperationFailure


def _normalize_key_pairs(keys):
    return [(k, v) for k, v in keys]


async def _create_index_safe(collection, keys, **kwargs):
    """
    Create index safely.
    If Mongo reports IndexOptionsConflict/IndexKeySpecsConflict for same key pattern,
    drop the conflicting index and recreate with desired options.
    """
    desired_key = _normalize_key_pairs(keys)
    desired_name = kwargs.get("name")
    try:
        await collection.create_index(keys, **kwargs)
        return
    except OperationFailure as e:
        if getattr(e, "code", None) not in {85, 86}:
            raise

        conflicting_names = []
        async for idx in collection.list_indexes():
            idx_key = _normalize_key_pairs(list(idx.get("key", {}).items()))
            if idx_key == desired_key:
                idx_name = idx.get("name")
                if idx_name and idx_name != desired_name:
                    conflicting_names.append(idx_name)

        for idx_name in conflicting_names:
            await collection.drop_index(idx_name)

        await collection.create_index(keys, **kwargs)


async def ensure_indexes(db):
    # Key lookups and prefix scans
    await _create_index_safe(
        db.kv_store,
        [("key", ASCENDING)],
        name="kv_store_key_unique_idx",
        unique=True,
    )

    # Worker scan for open transfers
    await _create_index_safe(
        db.kv_store,
        [("value.status", ASCENDING), ("key", ASCENDING)],
        name="kv_store_status_key_idx",
    )
