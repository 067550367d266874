from dotenv import load_dotenv
load_dotenv()

import asyncio
import logging
from fastapi import FastAPI, Depends, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from database import get_db

# ENV
from config.env import ENV, LOG_LEVEL, CORS_ALLOWED_ORIGINS, validate_production_env

# ROUTES
from routes.auth import router as auth_router
from routes.vendor import router as vendor_router
from routes.menu import router as menu_router
from routes.public import router as public_router
from routes.orders import router as orders_router
from routes.payments import router as payments_router
from routes.wallet import router as wallet_router
from routes.webhooks import router as webhook_router
from routes.admin import router as admin_router

# WORKERS
from utils.indexes import ensure_indexes
from workers.withdrawal_reconcile_worker import withdrawal_reconcile_worker

logging.basicConfig(
    level=LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)
logger.info("ENV: %s", ENV)

app = FastAPI(
    title="FoodHub API",
    version="1.0.0",
    docs_url=None if ENV == "production" else "/docs",
    redoc_url=None if ENV == "production" else "/redoc",
    openapi_url=None if ENV == "production" else "/openapi.json",
)

# -----------------------------
# CORS
# -----------------------------

allowed_origins = [origin.strip() for origin in CORS_ALLOWED_ORIGINS if origin.strip()]
if not allowed_origins:
    allowed_origins = [
        "http://localhost:3000",
        "http://localhost:5173",
        "http://127.0.0.1:5173",
    ]

app.add_middleware(
    CORSMiddleware,
    allow_origins=allowed_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# -----------------------------
# ERRORS
# -----------------------------

@app.exception_handler(StarletteHTTPException)
async def http_error_handler(request: Request, exc: StarletteHTTPException):
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": exc.detail},
        headers=getattr(exc, "headers", None),
    )


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError):
    details = [
        {"field": ".".join(str(p) for p in err.get("loc", ())[1:]), "message": err.get("msg")}
        for err in exc.errors()
    ]
    return JSONResponse(
        status_code=422,
        content={"error": "Invalid request", "details": details},
    )


@app.exception_handler(Exception)
async def unhandled_error_handler(request: Request, exc: Exception):
    logger.exception("UNHANDLED_ERROR %s %s", request.method, request.url.path)
    return JSONResponse(status_code=500, content={"error": "Internal server error"})

# -----------------------------
# ROUTES
# -----------------------------

app.include_router(auth_router, prefix="/api")
app.include_router(vendor_router, prefix="/api")
app.include_router(menu_router, prefix="/api")
app.include_router(public_router, prefix="/api")
app.include_router(orders_router, prefix="/api")
app.include_router(payments_router, prefix="/api")
app.include_router(wallet_router, prefix="/api")
app.include_router(webhook_router, prefix="/api")
app.include_router(admin_router, prefix="/api")

# -----------------------------
# HEALTH CHECKS
# -----------------------------

@app.get("/api/health")
async def health():

    return {"status": "ok"}

@app.get("/api/health/db")
async def health_db(db=Depends(get_db)):
    await db.command("ping")
    return {"status": "mongodb connected"}

# -----------------------------
# STARTUP (ONE PLACE ONLY)
# -----------------------------

@app.on_event("startup")
async def start_background_workers():
    validate_production_env()
    await ensure_indexes(get_db())
    asyncio.create_task(withdrawal_reconcile_worker())
