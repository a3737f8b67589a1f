from __future__ import annotations

from collections.abc import AsyncIterator

from fastapi import APIRouter, HTTPException, Query, Request, status
from fastapi.responses import StreamingResponse

from das_gateway.app.catalog.registry import CallRegistry
from das_gateway.app.dispatcher import McpDispatcher
from das_gateway.app.settings import Settings, settings
from das_gateway.app.transport import PushChannel, Session, SessionTransport, format_sse_event
from libs.common.logging import get_logger
from libs.contracts.models import MessageEnvelope

router = APIRouter()
MESSAGE_PATH = "/messages"
logger = get_logger("das_gateway.routes")


def get_settings(request: Request) -> Settings:
    configured = getattr(request.app.state, "settings", None)
    if isinstance(configured, Settings):
        return configured
    return settings


def get_transport(request: Request) -> SessionTransport:
    transport = getattr(request.app.state, "transport", None)
    if not isinstance(transport, SessionTransport):
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail="세션 전송 계층이 준비되지 않았어요.")
    return transport


def get_dispatcher(request: Request) -> McpDispatcher:
    dispatcher = getattr(request.app.state, "dispatcher", None)
    if not isinstance(dispatcher, McpDispatcher):
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail="디스패처가 준비되지 않았어요.")
    return dispatcher


async def stream_session(
    transport: SessionTransport,
    session: Session,
    *,
    endpoint: str,
    keepalive_seconds: float | None,
) -> AsyncIterator[str]:
    """endpoint 이벤트를 먼저 보내고 채널이 닫힐 때까지 응답을 흘려보내요."""
    try:
        yield format_sse_event("endpoint", endpoint)
        async for frame in session.channel.frames(keepalive_seconds=keepalive_seconds):
            yield frame
    finally:
        # 연결이 끊기면 취소된 상태로 들어오므로 await 없이 닫아요
        transport.close(session)


@router.get("/sse")
async def open_event_stream(request: Request) -> StreamingResponse:
    app_settings = get_settings(request)
    transport = get_transport(request)
    session = transport.establish(PushChannel())
    endpoint = f"{MESSAGE_PATH}?sessionId={session.session_id}"
    logger.info("event_stream_opened", session_id=session.session_id, client=_client_host(request))
    return StreamingResponse(
        stream_session(
            transport,
            session,
            endpoint=endpoint,
            keepalive_seconds=app_settings.sse_keepalive_seconds,
        ),
        media_type="text/event-stream",
        headers={"Cache-Control": "no-cache", "X-Accel-Buffering": "no"},
    )


@router.post(MESSAGE_PATH, status_code=status.HTTP_202_ACCEPTED)
async def post_message(
    request: Request,
    envelope: MessageEnvelope,
    session_id: str | None = Query(default=None, alias="sessionId"),
) -> dict[str, str | int | None]:
    transport = get_transport(request)
    dispatcher = get_dispatcher(request)

    session = transport.deliver(envelope.request_id, lambda: dispatcher.handle(envelope))
    if session_id is not None and session_id != session.session_id:
        # 단일 세션 게이트웨이라 이전 세션 id로 들어온 요청도 현재 세션으로 보내요
        logger.warning(
            "stale_session_request",
            requested_session_id=session_id,
            session_id=session.session_id,
            request_id=envelope.request_id,
        )
    return {"status": "accepted", "request_id": envelope.request_id, "session_id": session.session_id}


@router.get("/health/live")
async def health_live() -> dict[str, str]:
    return {"status": "ok"}


@router.get("/health/ready")
async def health_ready(request: Request) -> dict[str, str | int]:
    get_transport(request)
    registry = getattr(request.app.state, "registry", None)
    if not isinstance(registry, CallRegistry):
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail="카탈로그가 준비되지 않았어요.")
    return {"status": "ok", "catalog_size": len(registry)}


def _client_host(request: Request) -> str | None:
    return request.client.host if request.client else None
