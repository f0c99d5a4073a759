"""FastAPI application factory"""

import asyncio
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from legal_contract_ai import __version__
from legal_contract_ai.api.routes import session as session_routes
from legal_contract_ai.api.routes.credential import router as credential_router
from legal_contract_ai.api.routes.functions import router as functions_router
from legal_contract_ai.api.session_store import SessionStore
from legal_contract_ai.utils.config import configure_logging, get_settings


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup and shutdown events"""
    task = asyncio.create_task(_evict_loop())
    yield
    task.cancel()
    try:
        await task
    except asyncio.CancelledError:
        pass


async def _evict_loop():
    """Periodically evict expired sessions"""
    while True:
        await asyncio.sleep(300)  # every 5 minutes
        await session_routes.store.evict_expired()


def create_app() -> FastAPI:
    """Create and configure the FastAPI application"""
    settings = get_settings()
    configure_logging(settings)

    session_routes.init_store(
        SessionStore(
            ttl_minutes=settings.session_ttl_minutes,
            max_sessions=settings.max_sessions,
        )
    )

    app = FastAPI(
        title="Legal Contract AI",
        description="Drafting, review and revision of contracts under Indonesian law",
        version=__version__,
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(session_routes.router)
    app.include_router(credential_router)
    app.include_router(functions_router)

    return app
