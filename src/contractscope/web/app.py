"""FastAPI application factory for the ContractScope web API."""

from __future__ import annotations

from fastapi import FastAPI

from contractscope import __version__
from contractscope.config import ContractScopeConfig
from contractscope.storage.db import get_db


async def create_app(
    config: ContractScopeConfig | None = None,
) -> FastAPI:
    """Build and return the FastAPI application."""
    config = config or ContractScopeConfig.load()

    app = FastAPI(
        title="ContractScope",
        version=__version__,
        docs_url="/api/docs",
    )

    # Shared collaborators live in app state
    app.state.config = config
    app.state.policy = config.load_scoring_policy()
    app.state.source = config.build_source()
    app.state.db = await get_db(config.db_path)

    from contractscope.web.api.audits import router as audits_router
    from contractscope.web.api.live import router as live_router
    from contractscope.web.api.market import router as market_router

    app.include_router(audits_router, prefix="/api")
    app.include_router(market_router, prefix="/api")
    app.include_router(live_router, prefix="/api")

    @app.on_event("shutdown")
    async def shutdown() -> None:
        if hasattr(app.state, "db"):
            await app.state.db.close()

    return app
