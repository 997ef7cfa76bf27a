from contextlib import asynccontextmanager
import logging

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from dotenv import load_dotenv

# ----------------------------------------------------
# 🔐 LOAD .ENV
# ----------------------------------------------------
load_dotenv(override=True)

from app.config import settings
from app.db import engine, dispose_engine
from app.errors import LedgerError
from models import Base

# Routers
from routers import amazon_orders, ebay_orders
from routers import payouts, ledger

logging.basicConfig(
    level=settings.log_level.upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


# ----------------------------------------------------
# 🗄️ DB LIFECYCLE: one pool per process
# ----------------------------------------------------
@asynccontextmanager
async def lifespan(app: FastAPI):
    # dev only
    if settings.env == "dev" and settings.db_auto_create:
        logger.info("DB_AUTO_CREATE=1: creating tables")
        Base.metadata.create_all(bind=engine)
    yield
    dispose_engine()


# ----------------------------------------------------
# 🚀 FASTAPI APP
# ----------------------------------------------------
app = FastAPI(
    title="Seller Ledger",
    version="1.0.0",
    lifespan=lifespan,
)

# ----------------------------------------------------
# 🌐 CORS CONFIG
# ----------------------------------------------------
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origin_list,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# ----------------------------------------------------
# ❗ LEDGER ERRORS → {"detail": ...}
# ----------------------------------------------------
@app.exception_handler(LedgerError)
async def ledger_error_handler(request: Request, exc: LedgerError):
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.message})


# ----------------------------------------------------
# 🔌 ROUTERS
# ----------------------------------------------------
app.include_router(amazon_orders.router)
app.include_router(ebay_orders.router)

app.include_router(payouts.router)
app.include_router(ledger.router)


# ----------------------------------------------------
# 🏠 BASE
# ----------------------------------------------------
@app.get("/")
def root():
    return {"message": "Seller Ledger backend is up."}


@app.get("/health")
def health():
    return {"ok": True}
