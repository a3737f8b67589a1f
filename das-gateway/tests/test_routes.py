from __future__ import annotations

import asyncio
import json

import httpx
import pytest
from das_gateway.app.catalog.registry import CallRegistry
from das_gateway.app.dispatcher import McpDispatcher
from das_gateway.app.main import create_app
from das_gateway.app.mcp_protocol import McpServerInfo
from das_gateway.app.routes import stream_session
from das_gateway.app.settings import Settings
from das_gateway.app.transport import PushChannel, SessionState, SessionTransport
from das_gateway.bootstrap.lifespan import create_lifespan
from fastapi import FastAPI

from tests.conftest import WSOL_MINT


def _build_app(registry: CallRegistry) -> tuple[FastAPI, SessionTransport]:
    """lifespan 없이 가짜 백엔드 카탈로그로 앱 상태를 채워요."""
    app_settings = Settings()
    app = create_app(app_settings)
    transport = SessionTransport()
    app.state.settings = app_settings
    app.state.registry = registry
    app.state.dispatcher = McpDispatcher(
        registry=registry,
        server_info=McpServerInfo(name=app_settings.server_name, version=app_settings.server_version),
    )
    app.state.transport = transport
    return app, transport


def _client(app: FastAPI) -> httpx.AsyncClient:
    return httpx.AsyncClient(transport=httpx.ASGITransport(app=app), base_url="http://gateway.test")


def _message_payload(frame: str) -> dict[str, object]:
    lines = frame.splitlines()
    assert lines[0] == "event: message"
    return json.loads("\n".join(line[len("data: ") :] for line in lines[1:] if line.startswith("data: ")))


@pytest.mark.asyncio
async def test_post_without_session_is_rejected(registry: CallRegistry) -> None:
    app, _ = _build_app(registry)

    async with _client(app) as client:
        response = await client.post("/messages", json={"jsonrpc": "2.0", "id": 1, "method": "ping"})

    assert response.status_code == 409
    body = response.json()
    assert body["error_code"] == "NO_ACTIVE_SESSION"
    assert body["retryable"] is True


@pytest.mark.asyncio
async def test_post_is_accepted_and_answer_is_pushed(registry: CallRegistry) -> None:
    app, transport = _build_app(registry)
    session = transport.establish(PushChannel())

    async with _client(app) as client:
        response = await client.post(
            f"/messages?sessionId={session.session_id}",
            json={
                "jsonrpc": "2.0",
                "id": "call-1",
                "method": "tools/call",
                "params": {"name": "getAsset", "arguments": {"publicKey": WSOL_MINT}},
            },
        )

    assert response.status_code == 202
    assert response.json() == {"status": "accepted", "request_id": "call-1", "session_id": session.session_id}

    frames = session.channel.frames()
    message = _message_payload(await asyncio.wait_for(frames.__anext__(), timeout=1.0))
    assert message["jsonrpc"] == "2.0"
    assert message["id"] == "call-1"
    assert message["result"]["structuredContent"]["id"] == WSOL_MINT


@pytest.mark.asyncio
async def test_stale_session_id_is_routed_to_active_session(registry: CallRegistry) -> None:
    app, transport = _build_app(registry)
    stale = transport.establish(PushChannel())
    current = transport.establish(PushChannel())

    async with _client(app) as client:
        response = await client.post(
            f"/messages?sessionId={stale.session_id}",
            json={"requestId": 5, "method": "ping"},
        )

    assert response.status_code == 202
    assert response.json()["session_id"] == current.session_id

    frames = current.channel.frames()
    message = _message_payload(await asyncio.wait_for(frames.__anext__(), timeout=1.0))
    assert message == {"jsonrpc": "2.0", "id": 5, "requestId": 5, "result": {}}


@pytest.mark.asyncio
async def test_malformed_envelope_is_rejected(registry: CallRegistry) -> None:
    app, transport = _build_app(registry)
    transport.establish(PushChannel())

    async with _client(app) as client:
        response = await client.post("/messages", json={"id": 1, "method": ""})

    assert response.status_code == 422
    assert transport.inflight_count == 0


@pytest.mark.asyncio
async def test_stream_session_announces_endpoint_and_closes_on_disconnect() -> None:
    transport = SessionTransport()
    session = transport.establish(PushChannel())
    stream = stream_session(
        transport,
        session,
        endpoint=f"/messages?sessionId={session.session_id}",
        keepalive_seconds=None,
    )

    first = await stream.__anext__()
    assert first == f"event: endpoint\ndata: /messages?sessionId={session.session_id}\n\n"

    transport.push(1, {"jsonrpc": "2.0", "id": 1, "result": {}})
    assert _message_payload(await stream.__anext__())["id"] == 1

    await stream.aclose()
    assert transport.state == SessionState.CLOSED
    assert transport.active_session is None


@pytest.mark.asyncio
async def test_health_endpoints(registry: CallRegistry) -> None:
    app, _ = _build_app(registry)

    async with _client(app) as client:
        live = await client.get("/health/live")
        ready = await client.get("/health/ready")

    assert live.json() == {"status": "ok"}
    assert ready.json() == {"status": "ok", "catalog_size": 16}


@pytest.mark.asyncio
async def test_ready_reports_unavailable_before_startup() -> None:
    app = create_app(Settings())

    async with _client(app) as client:
        response = await client.get("/health/ready")

    assert response.status_code == 503


@pytest.mark.asyncio
async def test_lifespan_wires_runtime_components() -> None:
    app_settings = Settings()
    app = FastAPI()

    async with create_lifespan(app_settings)(app):
        assert isinstance(app.state.registry, CallRegistry)
        assert len(app.state.registry) == 16
        assert isinstance(app.state.dispatcher, McpDispatcher)
        assert app.state.transport.state == SessionState.IDLE


@pytest.mark.asyncio
async def test_shorthand_request_is_answered_with_request_id(registry: CallRegistry) -> None:
    app, transport = _build_app(registry)
    session = transport.establish(PushChannel())

    async with _client(app) as client:
        response = await client.post(
            "/messages",
            json={"requestId": "1", "method": "tool:getAsset", "params": {"publicKey": WSOL_MINT}},
        )

    assert response.status_code == 202
    frames = session.channel.frames()
    message = _message_payload(await asyncio.wait_for(frames.__anext__(), timeout=1.0))
    assert message["requestId"] == "1"
    assert message["result"]["structuredContent"]["id"] == WSOL_MINT
