from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
import logging

from sqlalchemy import text

from core.config import settings
from core.database import engine
from core.exceptions import register_exception_handlers
from app.startup import run_startup_checks, configure_startup_logging

# ========== QR Codes ==========
from modules.qr_codes.routes.qr_code_routes import router as qr_code_router

# ========== Sales Agents & Commissions ==========
from modules.commissions.routes.commission_routes import (
    agent_router,
    referral_router,
    commission_router,
)

# ========== Settlement ==========
from modules.settlement.routes.settlement_routes import router as settlement_router

logger = logging.getLogger(__name__)

app = FastAPI(
    title="QR Redemption & Commission Settlement API",
    description="""
    Merchant QR code redemption and three-party commission settlement.

    ## Features

    * **QR Codes** - Discount, loyalty and info codes with expiry and scan limits
    * **Scans** - Atomic scan counting; rejections report INACTIVE, EXPIRED or LIMIT_REACHED
    * **Settlement** - Idempotent platform / business / agent splits
    * **Sales Agents** - Referral tracking, team overrides and recruitment bonuses
    * **Proration** - Partial-period charges and refunds

    All monetary values are exchanged as decimal strings.
    """,
    version="1.0.0",
)

# Register exception handlers for consistent error responses
register_exception_handlers(app)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["http://localhost:3000"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(qr_code_router)
app.include_router(settlement_router)
app.include_router(agent_router)
app.include_router(referral_router)
app.include_router(commission_router)


@app.on_event("startup")
async def startup_event():
    """Initialize services on application startup"""
    configure_startup_logging()
    run_startup_checks()


@app.get("/")
def read_root():
    return {"message": "QR settlement backend is running"}


@app.get("/health")
def health_check():
    """Liveness plus a database round trip"""
    database = "ok"
    try:
        with engine.connect() as conn:
            conn.execute(text("SELECT 1"))
    except Exception as e:
        logger.warning(f"Health check database probe failed: {e}")
        database = "unavailable"

    return {
        "status": "healthy" if database == "ok" else "degraded",
        "environment": settings.environment,
        "database": database,
    }
