import traceback
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles

from aurora.core.config import settings
from aurora.core.exceptions import NotFoundError, SoftFailure
from aurora.core.logger import get_logger
from aurora.db.catalog import CatalogStore
from aurora.db.session import SessionStore, set_session_cookie

logger = get_logger("main")


def _with_session_cookie(request: Request, response: JSONResponse) -> JSONResponse:
    # Handlers raising after the visitor was resolved still hand the cookie back
    session_id = getattr(request.state, "session_id", None)
    if session_id:
        set_session_cookie(response, session_id)
    return response


def create_app(catalog: Optional[CatalogStore] = None) -> FastAPI:
    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger.info("%s ready with %d products", settings.PROJECT_NAME, len(app.state.catalog))
        yield
        logger.info("%s shutting down, %d sessions dropped", settings.PROJECT_NAME, len(app.state.session_store))

    app = FastAPI(
        title=settings.PROJECT_NAME,
        version=settings.VERSION,
        lifespan=lifespan,
        description="Catalog, cart and checkout API for the Aurora Apparel demo store"
    )

    # Both stores live for the lifetime of this app instance
    app.state.catalog = catalog if catalog is not None else CatalogStore.from_file(settings.CATALOG_PATH)
    app.state.session_store = SessionStore()

    @app.exception_handler(NotFoundError)
    async def not_found_handler(request: Request, exc: NotFoundError):
        return _with_session_cookie(request, JSONResponse(status_code=404, content={"error": exc.message}))

    @app.exception_handler(SoftFailure)
    async def soft_failure_handler(request: Request, exc: SoftFailure):
        return _with_session_cookie(
            request,
            JSONResponse(status_code=200, content={"success": False, "message": exc.message})
        )

    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception):
        logger.error("Unhandled exception: %s\n%s", exc, traceback.format_exc())
        return JSONResponse(status_code=500, content={"error": "Internal server error"})

    @app.get("/")
    def read_root():
        return {"service": settings.PROJECT_NAME, "version": settings.VERSION, "status": "operational"}

    @app.get("/api/health")
    def health():
        return {
            "status": "ok",
            "products": len(app.state.catalog),
            "sessions": len(app.state.session_store)
        }

    from aurora.routers import cart, orders, products

    app.include_router(products.router, prefix="/api/products", tags=["products"])
    app.include_router(cart.router, prefix="/api/cart", tags=["cart"])
    app.include_router(orders.router, prefix="/api", tags=["orders"])

    if settings.STATIC_DIR and Path(settings.STATIC_DIR).is_dir():
        app.mount("/static", StaticFiles(directory=settings.STATIC_DIR), name="static")

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    return app


app = create_app()
