from fastapi import HTTPException

from utils.kv_store import kv_get, kv_set, kv_delete
from utils.passwords import hash_account_password
from utils.ids import make_id
from utils.serializers import utc_now_iso


def user_key(user_id: str) -> str:
    return f"user:{user_id}"


def email_key(email: str) -> str:
    return f"user_email:{normalize_email(email)}"


def normalize_email(email: str) -> str:
    return (email or "").strip().lower()


async def get_user(db, user_id: str):
    return await kv_get(db, user_key(user_id))


async def get_user_by_email(db, email: str):
    ref = await kv_get(db, email_key(email))
    if not ref:
        return None
    return await get_user(db, ref["userId"])


async def create_user(db, *, email: str, password: str, role: str, profile: dict | None = None) -> dict:
    email = normalize_email(email)
    if await kv_get(db, email_key(email)):
        raise HTTPException(400, "An account with this email already exists. Please try logging in.")

    user = {
        "id": make_id(),
        "email": email,
        "passwordHash": hash_account_password(password),
        "role": role,
        "isVerified": role == "admin",
        "createdAt": utc_now_iso(),
        **(profile or {}),
    }

    await kv_set(db, user_key(user["id"]), user)
    await kv_set(db, email_key(email), {"userId": user["id"]})
    return user


async def save_user(db, user: dict):
    await kv_set(db, user_key(user["id"]), user)


async def delete_user(db, user_id: str):
    user = await get_user(db, user_id)
    if user and user.get("email"):
        await kv_delete(db, email_key(user["email"]))
    await kv_delete(db, user_key(user_id))
