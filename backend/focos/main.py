from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from .config import Settings, get_settings
from .db import init_db, make_engine
from .logging_config import configure_logging
from .routers import cron as cron_router
from .routers import reports as reports_router
from .services.firms_client import FirmsClient


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    """
    Run with: uvicorn focos.main:create_app --factory
    """
    settings = settings or get_settings()
    configure_logging(settings.log_level)

    engine = make_engine(settings)
    init_db(engine)

    app = FastAPI(title="Focos Backend")
    app.state.settings = settings
    app.state.engine = engine
    app.state.firms_client = FirmsClient(settings)
    app.dependency_overrides[get_settings] = lambda: settings

    app.add_middleware(
        CORSMiddleware,
        allow_origins=list(settings.cors_origins),
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(cron_router.router, prefix="/api/cron", tags=["cron"])
    app.include_router(reports_router.router, prefix="/reports", tags=["reports"])

    return app
