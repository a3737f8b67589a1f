from __future__ import annotations

import uvicorn

from das_gateway.app.ports import find_available_port
from das_gateway.app.settings import settings
from libs.common.logging import configure_logging, get_logger

logger = get_logger("das_gateway.cli")


def main() -> None:
    configure_logging(settings.log_level)
    port = find_available_port(settings.port_floor, host=settings.host)
    logger.info("server_starting", host=settings.host, port=port, rpc_url=settings.rpc_url)
    uvicorn.run(
        "das_gateway.app.main:app",
        host=settings.host,
        port=port,
        log_config=None,
    )
