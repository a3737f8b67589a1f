from __future__ import annotations

import asyncio
import random
from collections.abc import Awaitable, Callable
from typing import TypeVar

T = TypeVar("T")


async def retry_async(
    func: Callable[[], Awaitable[T]],
    *,
    retries: int,
    base_delay_seconds: float,
    max_delay_seconds: float,
    retry_filter: Callable[[Exception], bool],
    on_retry: Callable[[int, Exception], None] | None = None,
) -> T:
    """`retry_filter`가 허용한 예외에 한해 지수 백오프로 재시도해요.

    `retries`는 첫 시도를 제외한 추가 시도 횟수예요. 마지막 예외는 그대로 전파돼요.
    """
    attempt = 0
    while True:
        try:
            return await func()
        except Exception as exc:
            if attempt >= retries or not retry_filter(exc):
                raise
            if on_retry is not None:
                on_retry(attempt + 1, exc)

            delay = min(base_delay_seconds * (2**attempt), max_delay_seconds)
            jitter = random.uniform(0, delay * 0.2)
            await asyncio.sleep(delay + jitter)
            attempt += 1
