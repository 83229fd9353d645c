# billing/main.py
from typing import Any, Awaitable, Dict, List, Optional

from fastapi import Body, FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware

from .config import get_settings
from .emulator import StoreEmulator
from .engine import CorrelationEngine
from .errors import BillingError
from .logging_config import configure_logging
from .models import FetchProductsIn, ProductDescriptor, PurchaseIn, StoreSettingsIn, SubscribeIn
from .service import BillingService

settings = get_settings()
configure_logging(settings.log_level)

app = FastAPI(title=f"{settings.app_name} (emulated store)")

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# ---------------------------
# Session runtime (in-memory)
# ---------------------------
def build_runtime():
    store = StoreEmulator(latency=settings.store_latency)
    engine = CorrelationEngine(store)
    store.attach(engine)
    return store, engine, BillingService(engine)


STORE, ENGINE, SERVICE = build_runtime()


async def _call(pending: Awaitable[Any]) -> Any:
    try:
        return await pending
    except BillingError as e:
        raise HTTPException(status_code=e.status_code, detail=e.to_dict())

# ---------------------------
# Store emulator admin
# ---------------------------
@app.post("/store/products", status_code=201)
async def store_register_product(payload: ProductDescriptor):
    STORE.register_product(payload)
    return {"product": payload}


@app.post("/store/settings")
async def store_settings(payload: StoreSettingsIn):
    if payload.owned is not None:
        STORE.grant(payload.owned)
    if payload.declined is not None:
        STORE.decline(payload.declined)
    if payload.fail_products is not None:
        STORE.fail_products = payload.fail_products
    if payload.fail_restore is not None:
        STORE.fail_restore = payload.fail_restore
    if payload.supports_subscriptions is not None:
        STORE.subscriptions_enabled = payload.supports_subscriptions
    return {
        "owned": list(STORE.owned),
        "declined": sorted(STORE.declined),
        "fail_products": STORE.fail_products,
        "fail_restore": STORE.fail_restore,
        "supports_subscriptions": STORE.subscriptions_enabled,
    }

# ---------------------------
# Billing endpoints
# ---------------------------
@app.post("/products/fetch", response_model=List[ProductDescriptor])
async def fetch_products(payload: FetchProductsIn):
    return await _call(SERVICE.fetch_products(payload.identifiers))


@app.post("/subscriptions/fetch", response_model=List[ProductDescriptor])
async def fetch_subscriptions(payload: FetchProductsIn):
    return await _call(SERVICE.fetch_subscriptions(payload.identifiers))


@app.post("/purchase", response_model=List[str])
async def purchase(payload: PurchaseIn):
    return await _call(SERVICE.purchase(payload.identifier, consume=payload.consume))


@app.post("/subscribe", response_model=List[str])
async def subscribe(payload: SubscribeIn):
    return await _call(SERVICE.subscribe(payload.identifier))


@app.get("/purchases", response_model=List[str])
async def fetch_purchases():
    return await _call(SERVICE.fetch_purchases())


@app.post("/method/{method}")
async def method_call(method: str, arguments: Optional[Dict[str, Any]] = Body(None)):
    return {"result": await _call(SERVICE.handle(method, arguments))}

# ---------------------------
# Utility: reset (for tests/demo)
# ---------------------------
@app.post("/reset")
async def reset_all():
    global STORE, ENGINE, SERVICE
    STORE, ENGINE, SERVICE = build_runtime()
    return {"status": "reset"}


@app.get("/debug/state")
async def debug_state():
    return {
        "entitlements": ENGINE.entitlements(),
        "products": [p.identifier for p in ENGINE.products()],
        "pending": ENGINE.pending(),
        "unacknowledged": list(STORE.unacknowledged),
    }


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host=settings.api_host, port=settings.api_port)
