from __future__ import annotations

from fastapi import FastAPI

from accessor_nav.api.lifespan import lifespan
from accessor_nav.api.routes.cache import router as cache_router
from accessor_nav.api.routes.health import router as health_router
from accessor_nav.api.routes.navigation import router as navigation_router


def create_app(watch: bool = False) -> FastAPI:
    app = FastAPI(
        title="Accessor Nav API",
        description="Resolve PHP accessors and properties across generated proxies.",
        version="0.1.0",
        lifespan=lifespan,
    )
    app.state.watch = watch

    app.include_router(health_router, include_in_schema=False)
    app.include_router(navigation_router)
    app.include_router(cache_router)
    return app
