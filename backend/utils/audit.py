from utils.ids import make_id
from utils.kv_store import kv_set
from utils.serializers import utc_now_iso

async def log_audit(
    db,
    actor_id: str,
    actor_role: str,
    action: str,
    metadata: dict | None = None
):
    audit_id = make_id()
    await kv_set(db, f"audit:{audit_id}", {
        "id": audit_id,
        "actorId": actor_id,
        "actorRole": actor_role,
        "action": action,
        "metadata": metadata or {},
        "createdAt": utc_now_iso(),
    })
