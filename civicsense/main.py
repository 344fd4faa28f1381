import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from civicsense.api.admin.audit import router as audit_router
from civicsense.api.admin.reports import router as admin_reports_router
from civicsense.api.admin.teams import router as teams_router
from civicsense.api.notifications import router as notifications_router
from civicsense.api.reports import router as reports_router
from civicsense.core.config import Settings, get_settings
from civicsense.core.logging_config import configure_logging
from civicsense.models.common import utcnow
from civicsense.services.container import build_container

logger = logging.getLogger(__name__)


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    settings = settings or get_settings()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        configure_logging(settings.log_level)
        container = build_container(settings)
        if container.mongo is not None:
            try:
                await container.mongo.ensure_indexes()
            except Exception:
                logger.exception("Could not create MongoDB indexes")
        app.state.container = container
        logger.info("%s started (%s)", settings.app_name, container.storage_mode)
        try:
            yield
        finally:
            container.close()

    app = FastAPI(title=f"{settings.app_name} Backend", lifespan=lifespan)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.get_cors_origins(),
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # public
    app.include_router(reports_router)
    app.include_router(notifications_router)

    # admin
    app.include_router(admin_reports_router)
    app.include_router(teams_router)
    app.include_router(audit_router)

    @app.get("/health")
    async def health():
        container = app.state.container
        return {
            "status": "OK",
            "timestamp": utcnow().isoformat(),
            "reports_count": await container.reports.count(),
            "database_mode": container.storage_mode,
        }

    @app.get("/")
    def root():
        return {"ok": True, "docs": "/docs"}

    return app


app = create_app()
