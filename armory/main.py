import logging
import time
from contextlib import asynccontextmanager
import aiohttp
import uvicorn
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import PlainTextResponse

from armory.core.config import Settings, get_settings
from armory.core.context import AppContext
from armory.core.database import build_engine, build_session_factory, init_db
from armory.core.errors import register_exception_handlers
from armory.api import tripo as tripo_router
from armory.api import weapons as weapons_router

logger = logging.getLogger(__name__)


def configure_logging(settings: Settings) -> None:
    logging.basicConfig(
        level=settings.log_level.upper(),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )


@asynccontextmanager
async def lifespan(app: FastAPI):
    settings: Settings = app.state.settings
    logger.info(f"Armory API starting (env={settings.app_env})")
    engine = build_engine(settings)
    if settings.auto_create_tables:
        await init_db(engine)
    http = aiohttp.ClientSession()
    app.state.context = AppContext(
        settings=settings,
        session_factory=build_session_factory(engine),
        http=http,
    )
    try:
        yield
    finally:
        await http.close()
        await engine.dispose()
        logger.info("Armory API stopped")


def create_app(settings: Settings | None = None) -> FastAPI:
    settings = settings or get_settings()
    configure_logging(settings)

    app = FastAPI(
        title="Armory API",
        description="Weapon records, public share links and a Tripo task proxy",
        version="1.0.0",
        lifespan=lifespan,
        docs_url="/docs" if settings.app_env == "development" else None,
        redoc_url=None,
    )
    app.state.settings = settings

    # ─── CORS ─────────────────────────────────────────────────────────────────
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # ─── Request log ──────────────────────────────────────────────────────────
    @app.middleware("http")
    async def log_requests(request: Request, call_next):
        started = time.perf_counter()
        response = await call_next(request)
        elapsed_ms = (time.perf_counter() - started) * 1000
        logger.info(f"{request.method} {request.url.path} -> {response.status_code} ({elapsed_ms:.1f}ms)")
        return response

    # ─── Routers ──────────────────────────────────────────────────────────────
    app.include_router(weapons_router.router)   # /v1/weapons, /v1/share/{share_id}
    app.include_router(tripo_router.router)     # /v1/tripo/task

    # ─── Health check ─────────────────────────────────────────────────────────
    @app.get("/v1/health")
    async def health():
        """Liveness only, plain text."""
        return PlainTextResponse("ok")

    register_exception_handlers(app)
    return app


def run() -> None:
    settings = get_settings()
    uvicorn.run(
        "armory.main:create_app",
        factory=True,
        host=settings.host,
        port=settings.port,
        log_level=settings.log_level.lower(),
    )


if __name__ == "__main__":
    run()
