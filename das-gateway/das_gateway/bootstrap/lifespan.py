from __future__ import annotations

from collections.abc import AsyncIterator, Callable
from contextlib import AbstractAsyncContextManager, asynccontextmanager

from fastapi import FastAPI

from das_gateway.app.settings import Settings
from das_gateway.bootstrap.container import build_runtime_components
from libs.common.logging import get_logger

logger = get_logger("das_gateway.lifespan")


def create_lifespan(settings: Settings) -> Callable[[FastAPI], AbstractAsyncContextManager[None]]:
    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        runtime = build_runtime_components(settings)

        app.state.settings = settings
        app.state.registry = runtime.registry
        app.state.dispatcher = runtime.dispatcher
        app.state.transport = runtime.transport
        logger.info(
            "gateway_ready",
            tools=len(runtime.registry.list_tools()),
            resources=len(runtime.registry.list_resources()),
            prompts=len(runtime.registry.list_prompts()),
            rpc_url=settings.rpc_url,
        )

        try:
            yield
        finally:
            await runtime.aclose(inflight_timeout_seconds=settings.inflight_shutdown_timeout_seconds)
            logger.info("gateway_stopped")

    return lifespan
