"""고정된 원격 URL에서 문서 텍스트를 가져와요."""

from __future__ import annotations

import httpx

from libs.common.errors import UpstreamTransientError
from libs.common.logging import get_logger

logger = get_logger("das_gateway.document_fetcher")


class DocumentFetcher:
    def __init__(
        self,
        *,
        timeout_seconds: float = 15.0,
        max_chars: int = 2_000_000,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._max_chars = max_chars
        self._client = httpx.AsyncClient(
            timeout=timeout_seconds,
            follow_redirects=True,
            max_redirects=5,
            transport=transport,
        )

    async def aclose(self) -> None:
        await self._client.aclose()

    async def fetch_text(self, url: str) -> str:
        try:
            response = await self._client.get(url)
        except httpx.TimeoutException as exc:
            raise UpstreamTransientError(f"문서 요청이 시간 초과됐어요: {url}") from exc
        except httpx.HTTPError as exc:
            raise UpstreamTransientError(f"문서 요청 중 HTTP 오류가 발생했어요: {exc}") from exc

        if response.status_code >= 400:
            raise UpstreamTransientError(f"문서를 가져오지 못했어요 (HTTP {response.status_code}): {url}")

        # 디코딩 후에 자르므로 멀티바이트 문자가 중간에 잘리지 않아요
        text = response.content.decode(response.encoding or "utf-8", errors="replace")
        if len(text) > self._max_chars:
            logger.warning("document_truncated", url=url, length=len(text), limit=self._max_chars)
            return text[: self._max_chars]
        return text
