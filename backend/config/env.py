import os
from dotenv import load_dotenv

load_dotenv()

# =====================================================
# ENV
# =====================================================
ENV = os.getenv("ENV", "development")
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")

# =====================================================
# DATABASE
# =====================================================
MONGO_URI = os.getenv("MONGO_URI") or os.getenv("MONGODB_URI")

# =====================================================
# JWT
# =====================================================
JWT_SECRET = os.getenv("JWT_SECRET")
JWT_ALGORITHM = os.getenv("JWT_ALGORITHM", "HS256")
ACCESS_TOKEN_DAYS = int(os.getenv("ACCESS_TOKEN_DAYS", 7))

# =====================================================
# ADMIN
# =====================================================
ADMIN_EMAIL = (os.getenv("ADMIN_EMAIL") or "").strip().lower()
ADMIN_PASSWORD = os.getenv("ADMIN_PASSWORD")

# =====================================================
# PAYSTACK
# =====================================================
PAYSTACK_SECRET_KEY = os.getenv("PAYSTACK_SECRET_KEY")
APP_URL = os.getenv("APP_URL", "http://localhost:3000")
PAYSTACK_CALLBACK_URL = os.getenv("PAYSTACK_CALLBACK_URL") or f"{APP_URL.rstrip('/')}/payment/callback"

# =====================================================
# PRICING / COMMISSION
# =====================================================
COMMISSION_RATE = float(os.getenv("COMMISSION_RATE", 0.04))
PLATFORM_OWNER_ID = os.getenv("PLATFORM_OWNER_ID", "platform_owner_flourish")
DELIVERY_FEE = int(os.getenv("DELIVERY_FEE", 250))
TAX_RATE = float(os.getenv("TAX_RATE", 0.05))

# =====================================================
# WITHDRAWALS
# =====================================================
MIN_WITHDRAWAL_AMOUNT = int(os.getenv("MIN_WITHDRAWAL_AMOUNT", 1000))
MAX_WITHDRAWAL_AMOUNT = int(os.getenv("MAX_WITHDRAWAL_AMOUNT", 5000000))
WITHDRAWAL_RECONCILE_INTERVAL_SECONDS = int(os.getenv("WITHDRAWAL_RECONCILE_INTERVAL_SECONDS", 60 * 10))

# =====================================================
# CORS
# =====================================================
CORS_ALLOWED_ORIGINS = os.getenv("CORS_ALLOWED_ORIGINS", "").split(",")

# --------------------------------------------------
# DATA ENCRYPTION
# --------------------------------------------------
BANK_DATA_ENCRYPTION_KEY = os.getenv("BANK_DATA_ENCRYPTION_KEY")


def validate_production_env() -> None:
    if (ENV or "").lower() != "production":
        return

    required = {
        "JWT_SECRET": JWT_SECRET,
        "ADMIN_EMAIL": ADMIN_EMAIL,
        "ADMIN_PASSWORD": ADMIN_PASSWORD,
        "PAYSTACK_SECRET_KEY": PAYSTACK_SECRET_KEY,
        "BANK_DATA_ENCRYPTION_KEY": BANK_DATA_ENCRYPTION_KEY,
        "MONGODB_URI": MONGO_URI,
    }

    invalid = []
    for key, value in required.items():
        val = (value or "").strip()
        if not val or val.startswith("CHANGE_THIS"):
            invalid.append(key)

    if invalid:
        raise RuntimeError(f"Production env misconfigured. Invalid keys: {', '.join(sorted(invalid))}")
