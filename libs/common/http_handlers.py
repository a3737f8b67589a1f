from __future__ import annotations

from dataclasses import asdict

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from libs.common.errors import DomainError, build_error_envelope
from libs.common.logging import get_logger


def register_exception_handlers(app: FastAPI, logger_name: str) -> None:
    logger = get_logger(logger_name)

    @app.exception_handler(DomainError)
    async def handle_domain_error(request: Request, exc: DomainError) -> JSONResponse:
        envelope = build_error_envelope(exc.error_code, exc.message, exc.retryable)
        logger.warning(
            "domain_error",
            path=request.url.path,
            method=request.method,
            trace_id=envelope.trace_id,
            error_code=exc.error_code,
            message=exc.message,
            retryable=exc.retryable,
        )
        return JSONResponse(status_code=exc.http_status, content=asdict(envelope))

    @app.exception_handler(Exception)
    async def handle_unexpected_error(request: Request, exc: Exception) -> JSONResponse:
        envelope = build_error_envelope(
            "INTERNAL_ERROR",
            "예상하지 못한 내부 오류가 발생했어요.",
            retryable=True,
        )
        logger.exception(
            "unhandled_error",
            path=request.url.path,
            method=request.method,
            trace_id=envelope.trace_id,
            error=str(exc),
        )
        return JSONResponse(status_code=500, content=asdict(envelope))
