"""Bistro Orders FastAPI application.

Serves the dining domain over HTTP and WebSocket. Commands are processed
synchronously on the request path, so writes reach the store one at a time.

Usage:
    uvicorn app:app --app-dir src --host 0.0.0.0 --port 8000 --reload
"""

# ---------------------------------------------------------------------------
# Domain initialization
# ---------------------------------------------------------------------------
# The domain is initialized at module level so uvicorn workers share it.
# PROTEAN_ENV selects the config overlay from domain.toml.
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from dining.domain import dining

dining.init()

# ---------------------------------------------------------------------------
# FastAPI app
# ---------------------------------------------------------------------------
from dining.api import ROUTERS  # noqa: E402
from dining.api.errors import register_error_handlers  # noqa: E402
from dining.api.middleware import add_domain_context  # noqa: E402

app = FastAPI(
    title="Bistro Orders API",
    description="Menu, carts, checkout, the staff order board and restaurant administration",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

add_domain_context(app, dining)
register_error_handlers(app)

for router in ROUTERS:
    app.include_router(router)


# ---------------------------------------------------------------------------
# Health / root
# ---------------------------------------------------------------------------
@app.get("/health")
async def health():
    return JSONResponse(content={"status": "ok", "domain": dining.name})
