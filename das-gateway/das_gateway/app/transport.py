"""푸시 채널 세션의 수명과 요청-응답 연결을 관리해요.

게이트웨이는 단일 테넌트예요. 활성 세션은 항상 하나뿐이고, 새 채널이
열리면 이전 채널은 조용히 닫혀요. 요청 채널로 들어온 모든 요청은
응답 시점에 활성인 세션으로 푸시돼요.
"""

from __future__ import annotations

import asyncio
import contextlib
import json
import uuid
from collections.abc import AsyncIterator, Awaitable, Callable
from dataclasses import dataclass
from enum import Enum
from typing import Any

from libs.common.errors import DomainError
from libs.common.logging import get_logger
from libs.contracts.models import RequestId

logger = get_logger("das_gateway.transport")

KEEPALIVE_COMMENT = ": keep-alive\n\n"


class SessionState(str, Enum):
    IDLE = "idle"
    CONNECTED = "connected"
    CLOSED = "closed"


class NoActiveSessionError(DomainError):
    http_status = 409

    def __init__(self, message: str = "활성화된 세션이 없어요. 먼저 이벤트 스트림을 연결해야 해요.") -> None:
        super().__init__("NO_ACTIVE_SESSION", message, retryable=True)


def format_sse_event(event: str, data: str) -> str:
    lines = "".join(f"data: {line}\n" for line in data.splitlines() or [""])
    return f"event: {event}\n{lines}\n"


class PushChannel:
    """서버에서 클라이언트로 가는 이벤트 스트림 하나의 쓰기 끝이에요."""

    def __init__(self) -> None:
        self._queue: asyncio.Queue[str | None] = asyncio.Queue()
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    def send(self, frame: str) -> bool:
        if self._closed:
            return False
        self._queue.put_nowait(frame)
        return True

    def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        self._queue.put_nowait(None)

    async def frames(self, *, keepalive_seconds: float | None = None) -> AsyncIterator[str]:
        """닫힐 때까지 프레임을 내보내요. 유휴 시간에는 keep-alive 주석을 보내요."""
        while True:
            try:
                frame = await asyncio.wait_for(self._queue.get(), timeout=keepalive_seconds)
            except TimeoutError:
                yield KEEPALIVE_COMMENT
                continue
            if frame is None:
                return
            yield frame


@dataclass(slots=True)
class Session:
    session_id: str
    channel: PushChannel
    state: SessionState = SessionState.CONNECTED

    @property
    def closed(self) -> bool:
        return self.state == SessionState.CLOSED or self.channel.closed

    def close(self) -> None:
        self.state = SessionState.CLOSED
        self.channel.close()


class SessionTransport:
    """활성 세션 슬롯 하나와 진행 중인 호출을 소유해요.

    `establish`와 `close`는 await 없이 슬롯을 교체하므로 이벤트 루프 안에서
    원자적이에요. 다른 컴포넌트는 슬롯을 직접 건드리지 않아요.
    """

    def __init__(self) -> None:
        self._active: Session | None = None
        self._state = SessionState.IDLE
        self._inflight: set[asyncio.Task[None]] = set()

    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def active_session(self) -> Session | None:
        return self._active

    @property
    def inflight_count(self) -> int:
        return len(self._inflight)

    def establish(self, channel: PushChannel) -> Session:
        session = Session(session_id=uuid.uuid4().hex, channel=channel)
        previous, self._active = self._active, session
        self._state = SessionState.CONNECTED
        if previous is not None:
            previous.close()
            logger.info(
                "session_replaced",
                previous_session_id=previous.session_id,
                session_id=session.session_id,
            )
        logger.info("session_established", session_id=session.session_id)
        return session

    def close(self, session: Session | None = None) -> bool:
        """세션을 닫아요. 이미 다른 세션으로 교체됐다면 활성 슬롯은 그대로 둬요."""
        target = session if session is not None else self._active
        if target is None:
            return False
        target.close()
        if self._active is not target:
            return False
        self._active = None
        self._state = SessionState.CLOSED
        logger.info("session_closed", session_id=target.session_id)
        return True

    def deliver(
        self,
        request_id: RequestId | None,
        invocation: Callable[[], Awaitable[dict[str, Any] | None]],
    ) -> Session:
        """요청을 활성 세션에 연결하고 백그라운드에서 실행해요.

        Raises:
            NoActiveSessionError: 연결된 채널이 없으면 실행하지 않아요.
        """
        session = self._active
        if session is None or session.closed:
            raise NoActiveSessionError()

        task = asyncio.create_task(self._run(request_id, invocation))
        self._inflight.add(task)
        task.add_done_callback(self._inflight.discard)
        logger.info("request_delivered", session_id=session.session_id, request_id=request_id)
        return session

    def push(self, request_id: RequestId, message: dict[str, Any]) -> bool:
        """응답을 활성 채널에 써요. 채널이 이미 닫혔으면 기록만 하고 버려요."""
        session = self._active
        if session is None or session.closed:
            logger.warning("push_dropped", request_id=request_id, reason="no_active_session")
            return False

        frame = format_sse_event("message", json.dumps(message, ensure_ascii=False))
        if not session.channel.send(frame):
            logger.warning("push_dropped", request_id=request_id, reason="channel_closed")
            return False
        return True

    async def aclose(self, *, timeout_seconds: float = 10.0) -> None:
        """활성 세션을 닫고 진행 중인 호출이 끝나길 기다려요."""
        self.close()
        if not self._inflight:
            return
        _, pending = await asyncio.wait(set(self._inflight), timeout=timeout_seconds)
        if pending:
            logger.warning("inflight_shutdown_timeout", pending=len(pending))
        for task in pending:
            task.cancel()
        for task in pending:
            with contextlib.suppress(asyncio.CancelledError):
                await task

    async def _run(
        self,
        request_id: RequestId | None,
        invocation: Callable[[], Awaitable[dict[str, Any] | None]],
    ) -> None:
        try:
            message = await invocation()
        except Exception as exc:
            logger.exception("request_invocation_crashed", request_id=request_id, error=str(exc))
            return
        if message is None or request_id is None:
            return
        self.push(request_id, message)
