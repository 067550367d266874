import hmac
import logging

from fastapi import APIRouter, Depends, HTTPException

from config.env import ADMIN_EMAIL, ADMIN_PASSWORD
from database import get_db
from models.user import SignupRequest, LoginRequest, AdminCredentials
from utils.audit import log_audit
from utils.passwords import account_password_matches, require_acceptable_password
from utils.jwt import create_access_token
from utils.rate_limiter import rate_limit
from utils.security import get_current_user
from utils.serializers import serialize_user
from utils.users import create_user, get_user_by_email, normalize_email, save_user
from utils.vendors import create_vendor_records

router = APIRouter(tags=["Auth"])
logger = logging.getLogger(__name__)

LOGIN_MAX_ATTEMPTS = 10
ADMIN_AUTH_MAX_ATTEMPTS = 5
AUTH_WINDOW_SECONDS = 300

ADMIN_PROFILE = {
    "role": "admin",
    "businessName": "FoodHub Admin",
    "isVerified": True,
}


def _token_response(user: dict) -> dict:
    return {
        "access_token": create_access_token(user),
        "token_type": "bearer",
        "user": serialize_user(user),
    }


# ======================
# Signup / Login
# ======================

@router.post("/signup")
async def signup(data: SignupRequest, db=Depends(get_db)):
    if _is_admin_email(data.email):
        logger.warning("Signup attempted with the admin email")
        raise HTTPException(400, "This email cannot be used for signup")

    profile = {
        "businessName": data.business_name,
        "location": data.location,
        "phone": data.phone,
        "cuisine": data.cuisine,
    }
    user = await create_user(
        db,
        email=data.email,
        password=data.password,
        role=data.role,
        profile={k: v for k, v in profile.items() if v is not None},
    )

    if data.role == "vendor" and data.business_name:
        await create_vendor_records(db, user)

    logger.info("New %s account %s", data.role, user["id"])
    return {"user": serialize_user(user)}


@router.post("/login")
async def login(data: LoginRequest, db=Depends(get_db)):
    email = normalize_email(data.email)
    rate_limit(f"login:{email}", LOGIN_MAX_ATTEMPTS, AUTH_WINDOW_SECONDS)

    user = await get_user_by_email(db, email)
    if not user or not account_password_matches(user, data.password):
        raise HTTPException(401, "Invalid email or password")

    return _token_response(user)


@router.get("/me")
async def me(user=Depends(get_current_user)):
    return {"user": serialize_user(user)}


# ======================
# Admin
# ======================

def _is_admin_email(email: str) -> bool:
    return bool(ADMIN_EMAIL) and normalize_email(email) == ADMIN_EMAIL


def _matches_env_password(password: str) -> bool:
    return bool(ADMIN_PASSWORD) and hmac.compare_digest(password.encode("utf-8"), ADMIN_PASSWORD.encode("utf-8"))


async def verify_admin_password(db, password: str) -> bool:
    """
    The stored admin account wins; the configured password is the bootstrap fallback.
    Only an account that already holds the admin role counts as stored.
    """
    admin = await get_user_by_email(db, ADMIN_EMAIL) if ADMIN_EMAIL else None
    if admin and admin.get("role") == "admin" and admin.get("passwordHash"):
        return account_password_matches(admin, password)
    return _matches_env_password(password)


async def _upsert_admin(db, email: str, password: str) -> tuple[dict, str]:
    """
    Create the admin account, or refresh its role metadata. An existing password is kept.
    """
    existing = await get_user_by_email(db, email)
    if existing and existing.get("role") != "admin":
        logger.warning("Refusing to promote non-admin account %s", existing["id"])
        raise HTTPException(403, "Admin email belongs to a non-admin account")
    if existing:
        existing.update(ADMIN_PROFILE)
        await save_user(db, existing)
        return existing, "updated"

    user = await create_user(db, email=email, password=password, role="admin", profile=ADMIN_PROFILE)
    return user, "created"


@router.post("/admin/authenticate")
async def admin_authenticate(data: AdminCredentials, db=Depends(get_db)):
    email = normalize_email(data.email)
    rate_limit(f"admin_auth:{email}", ADMIN_AUTH_MAX_ATTEMPTS, AUTH_WINDOW_SECONDS)

    if not _is_admin_email(email) or not await verify_admin_password(db, data.password):
        logger.warning("Invalid admin credentials for %s", email)
        raise HTTPException(401, "Invalid admin credentials")

    admin, action = await _upsert_admin(db, email, data.password)

    await log_audit(db, actor_id=admin["id"], actor_role="admin", action="ADMIN_AUTHENTICATED", metadata={"account": action})

    response = _token_response(admin)
    response["success"] = True
    return response


@router.post("/admin/create")
async def admin_create(data: AdminCredentials, db=Depends(get_db)):
    email = normalize_email(data.email)
    if not _is_admin_email(email):
        logger.warning("Invalid admin email attempted: %s", email)
        raise HTTPException(403, "Invalid admin email")

    require_acceptable_password(data.password)

    if not await verify_admin_password(db, data.password):
        raise HTTPException(401, "Invalid admin credentials")

    admin, action = await _upsert_admin(db, email, data.password)

    await log_audit(db, actor_id=admin["id"], actor_role="admin", action=f"ADMIN_ACCOUNT_{action.upper()}")

    return {
        "success": True,
        "message": f"Admin user {action} successfully",
        "userId": admin["id"],
        "action": action,
    }
