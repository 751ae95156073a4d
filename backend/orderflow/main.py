from contextlib import asynccontextmanager

from apscheduler.schedulers.background import BackgroundScheduler
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from orderflow.api.deps import get_cart_cache
from orderflow.api.health import router as health_router
from orderflow.api.routes_cart import router as cart_router
from orderflow.api.routes_delivery import router as delivery_router
from orderflow.api.routes_order import router as order_router
from orderflow.api.routes_payment import router as payment_router
from orderflow.config import settings
from orderflow.db import init_db
from orderflow.errors import OrderflowError
from orderflow.utils.log import get_logger

log = get_logger("app")


@asynccontextmanager
async def lifespan(app: FastAPI):
    # startup
    init_db()
    get_cart_cache()

    # scheduler for sweeping expired carts out of the in-process cache
    scheduler = BackgroundScheduler()

    def sweep_job():
        get_cart_cache().purge_expired()

    scheduler.add_job(
        sweep_job,
        "interval",
        seconds=settings.CART_SWEEP_INTERVAL_SECONDS,
        id="sweep_expired_carts",
    )
    scheduler.start()

    try:
        yield
    finally:
        scheduler.shutdown(wait=False)


app = FastAPI(title="Orderflow - Order fulfilment core", version="0.1.0", lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.FRONTEND_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(OrderflowError)
async def orderflow_error_handler(request: Request, exc: OrderflowError):
    if exc.http_status >= 500:
        log.error(f"{request.method} {request.url.path} failed: {exc.code} {exc}")
    return JSONResponse(
        status_code=exc.http_status,
        content={"detail": str(exc), "code": exc.code},
    )


app.include_router(health_router, prefix="/api", tags=["health"])

app.include_router(cart_router, tags=["cart"])

app.include_router(order_router, tags=["orders"])

app.include_router(payment_router, tags=["payments"])

app.include_router(delivery_router, tags=["deliveries"])
