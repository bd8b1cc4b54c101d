from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from config.settings import get_settings
from utils.logging_config import configure_logging

# ✅ middlewares
from middlewares.timing import TimingMiddleware
from middlewares.error_handler import add_error_handlers

# ✅ routers
from routers import admin, catalogos, formulario, fotos, reportes, supervisores


def create_app() -> FastAPI:
    settings = get_settings()
    configure_logging(settings.LOG_LEVEL)

    app = FastAPI(
        title=settings.APP_TITLE,
        description=settings.APP_DESCRIPTION,
        version=settings.APP_VERSION,
    )

    # ✅ CORS (browser UI)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # ✅ latency header (X-Latency-Ms) + access log
    app.add_middleware(TimingMiddleware)

    # ✅ {ok: false, error} envelope for every failure
    add_error_handlers(app)

    app.include_router(reportes.router)
    app.include_router(supervisores.router)
    app.include_router(fotos.router)
    app.include_router(catalogos.router)
    app.include_router(formulario.router)
    app.include_router(admin.router)

    # ✅ health check
    @app.get("/health")
    def health_check():
        return {"ok": True, "status": "ok", "message": "API is running"}

    return app


app = create_app()
