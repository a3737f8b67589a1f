"""하한 포트부터 순서대로 비어 있는 리스닝 포트를 찾아요."""

from __future__ import annotations

import errno
import socket
from collections.abc import Callable, Iterator

from libs.common.errors import DomainError
from libs.common.logging import get_logger

logger = get_logger("das_gateway.ports")

MAX_PORT = 65535


class PortUnavailableError(DomainError):
    http_status = 500

    def __init__(self, start_port: int) -> None:
        super().__init__("PORT_UNAVAILABLE", f"{start_port}번 이상에서 사용할 수 있는 포트가 없어요.")
        self.start_port = start_port


def candidate_ports(start_port: int) -> Iterator[int]:
    """`start_port`부터 플랫폼 상한까지 후보 포트를 지연 생성해요."""
    if not 1 <= start_port <= MAX_PORT:
        raise ValueError(f"포트 범위를 벗어났어요: {start_port}")
    yield from range(start_port, MAX_PORT + 1)


def is_port_available(port: int, host: str = "0.0.0.0") -> bool:
    """잠깐 바인드해서 리스닝을 시도한 뒤 바로 닫아요."""
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as sock:
        try:
            sock.bind((host, port))
            sock.listen(1)
        except OSError as exc:
            if exc.errno in (errno.EADDRINUSE, errno.EACCES):
                return False
            raise
    return True


def find_available_port(
    start_port: int,
    *,
    host: str = "0.0.0.0",
    is_free: Callable[[int], bool] | None = None,
) -> int:
    """첫 번째로 비어 있는 포트를 반환해요.

    Raises:
        PortUnavailableError: 상한까지 모두 사용 중이면 시작을 중단해요.
    """
    check = is_free if is_free is not None else (lambda port: is_port_available(port, host))
    for port in candidate_ports(start_port):
        if check(port):
            return port
        logger.info("port_in_use", port=port)
    raise PortUnavailableError(start_port)
