from fastapi import APIRouter
from sqlalchemy import text

from orderflow.api.deps import get_cart_cache
from orderflow.db import engine

router = APIRouter()


@router.get("/health", tags=["health"])
def health():
    db_ok = False
    try:
        with engine.connect() as conn:
            conn.execute(text("SELECT 1"))
            db_ok = True
    except Exception:
        db_ok = False

    cache_ok = get_cart_cache().ping()

    return {
        "status": "ok" if db_ok and cache_ok else "degraded",
        "db": db_ok,
        "cart_cache": cache_ok,
    }
