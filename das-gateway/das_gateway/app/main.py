from __future__ import annotations

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from das_gateway.app.routes import router
from das_gateway.app.settings import Settings, settings
from das_gateway.bootstrap.lifespan import create_lifespan
from libs.common.http_handlers import register_exception_handlers
from libs.common.logging import configure_logging


def create_app(app_settings: Settings) -> FastAPI:
    app = FastAPI(title=app_settings.service_name, lifespan=create_lifespan(app_settings))
    app.add_middleware(
        CORSMiddleware,
        allow_origins=app_settings.cors_allow_origins,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.include_router(router)
    register_exception_handlers(app, "das_gateway.errors")
    return app


configure_logging(settings.log_level)
app = create_app(settings)
