import os
from decimal import Decimal

from dotenv import load_dotenv

# Load .env from the project root
load_dotenv()


def _flag(name: str, default: str) -> bool:
    return os.getenv(name, default).strip().lower() in {"1", "true", "yes", "on"}


DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./boba_pos.db")
ENV = os.getenv("ENV", "dev")
ENV_NORMALIZED = ENV.lower()
IS_DEV = ENV_NORMALIZED in {"dev", "development", "local"}
IS_PROD = ENV_NORMALIZED in {"prod", "production"}

# Pool: bounded checkout, fail fast when exhausted
DB_POOL_SIZE = int(os.getenv("DB_POOL_SIZE", os.getenv("PG_MAX_CLIENTS", "10")))
DB_MAX_OVERFLOW = int(os.getenv("DB_MAX_OVERFLOW", "0"))
DB_POOL_TIMEOUT_SECONDS = float(os.getenv("DB_POOL_TIMEOUT_SECONDS", "5"))
DB_CONNECT_TIMEOUT_SECONDS = int(os.getenv("DB_CONNECT_TIMEOUT_SECONDS", "5"))
DB_POOL_RECYCLE_SECONDS = int(os.getenv("DB_POOL_RECYCLE_SECONDS", "1800"))
DB_SSL = _flag("PG_SSL", "0")
DB_ECHO = _flag("DB_ECHO", "0")

# Pricing
TAX_RATE = Decimal(os.getenv("TAX_RATE", "0.08"))
PRICE_VERIFICATION = os.getenv("PRICE_VERIFICATION", "trust").strip().lower()
if PRICE_VERIFICATION not in {"trust", "warn", "enforce"}:
    PRICE_VERIFICATION = "trust"
PRICE_TOLERANCE = Decimal(os.getenv("PRICE_TOLERANCE", "0.01"))

# Orders
MAX_ORDER_ITEMS = int(os.getenv("MAX_ORDER_ITEMS", "50"))

# Reports
POPULAR_ITEMS_LIMIT = int(os.getenv("POPULAR_ITEMS_LIMIT", "20"))
REPORT_TIMEZONE = os.getenv("REPORT_TIMEZONE", "local").strip()

# CORS
_cors_env = os.getenv("CORS_ORIGINS", "")
CORS_ORIGINS = [origin.strip() for origin in _cors_env.split(",") if origin.strip() and origin.strip() != "*"]

if not CORS_ORIGINS and IS_DEV:
    CORS_ORIGINS = [
        "http://localhost:3000",
        "http://127.0.0.1:3000",
        "http://localhost:5173",
    ]

MANAGER_EMAIL_HEADER = os.getenv("MANAGER_EMAIL_HEADER", "X-Manager-Email")
