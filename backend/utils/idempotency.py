from utils.kv_store import kv_get, kv_set
from utils.serializers import utc_now_iso


def _key(scope: str, key: str) -> str:
    return f"idempotency:{scope}:{key}"


async def get_completed_response(
    *,
    db,
    key: str,
    scope: str,
):
    """
    Return the stored response when this event was already handled, else None.
    """
    existing = await kv_get(db, _key(scope, key))
    if existing and existing.get("status") == "completed":
        return existing.get("response")
    return None


async def complete_idempotency_key(
    *,
    db,
    key: str,
    scope: str,
    response: dict,
):
    await kv_set(db, _key(scope, key), {
        "key": key,
        "scope": scope,
        "status": "completed",
        "response": response,
        "completedAt": utc_now_iso(),
    })
