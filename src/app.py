"""Storefront FastAPI application.

Serves the cart, checkout, order history, auth and product endpoints over
per-session storefront contexts. Every request runs inside the storefront
domain context.

Usage:
    uvicorn app:app --app-dir src --host 0.0.0.0 --port 8000 --reload
"""

from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from protean.integrations.fastapi import DomainContextMiddleware, register_exception_handlers
from storefront.api import ROUTERS, SessionRegistry, register_storefront_handlers
from storefront.domain import storefront
from storefront.utils.logging import configure_logging, get_logger

# PROTEAN_ENV selects the config overlay from storefront/domain.toml
storefront.init()

logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    configure_logging()
    app.state.sessions = SessionRegistry()
    logger.info("storefront_started", domain=storefront.name)
    yield
    app.state.sessions.close_all()
    logger.info("storefront_stopped")


app = FastAPI(
    title="Storefront API",
    description="Perfume storefront: cart, checkout and order history",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)
app.add_middleware(DomainContextMiddleware, route_domain_map={"/": storefront})

register_exception_handlers(app)
register_storefront_handlers(app)

for router in ROUTERS:
    app.include_router(router)


@app.get("/health")
async def health():
    return JSONResponse(
        content={
            "status": "ok",
            "domain": storefront.name,
            "sessions": len(app.state.sessions),
        }
    )
