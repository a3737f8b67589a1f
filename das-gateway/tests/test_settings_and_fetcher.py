from __future__ import annotations

from collections.abc import Callable

import httpx
import pytest
from das_gateway.app.document_fetcher import DocumentFetcher
from das_gateway.app.settings import MAINNET_RPC_URL, Settings

from libs.common.errors import UpstreamTransientError


def test_rpc_url_defaults_to_public_mainnet(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("RPC_URL", raising=False)
    monkeypatch.delenv("DAS_GATEWAY_RPC_URL", raising=False)
    assert Settings(_env_file=None).rpc_url == MAINNET_RPC_URL


def test_rpc_url_reads_unprefixed_variable(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("RPC_URL", "https://rpc.example.com")
    assert Settings(_env_file=None).rpc_url == "https://rpc.example.com"


def test_blank_rpc_url_falls_back_to_mainnet(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("RPC_URL", "   ")
    assert Settings(_env_file=None).rpc_url == MAINNET_RPC_URL


def test_cors_origins_accept_csv(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("DAS_GATEWAY_CORS_ALLOW_ORIGINS", "https://a.test, https://b.test")
    monkeypatch.setenv("DAS_GATEWAY_PORT_FLOOR", "9000")

    loaded = Settings(_env_file=None)
    assert loaded.cors_allow_origins == ["https://a.test", "https://b.test"]
    assert loaded.port_floor == 9000


def _mocked_fetcher(
    handler: Callable[[httpx.Request], httpx.Response],
    *,
    max_chars: int = 2_000_000,
) -> DocumentFetcher:
    return DocumentFetcher(max_chars=max_chars, transport=httpx.MockTransport(handler))


@pytest.mark.asyncio
async def test_fetch_text_returns_body() -> None:
    fetcher = _mocked_fetcher(lambda request: httpx.Response(200, text="# Clusters\n\nmainnet-beta"))
    assert await fetcher.fetch_text("https://docs.test/references/clusters.mdx") == "# Clusters\n\nmainnet-beta"
    await fetcher.aclose()


@pytest.mark.asyncio
async def test_fetch_text_truncates_large_documents() -> None:
    fetcher = _mocked_fetcher(lambda request: httpx.Response(200, text="x" * 100), max_chars=10)
    assert await fetcher.fetch_text("https://docs.test/big.mdx") == "x" * 10
    await fetcher.aclose()


@pytest.mark.asyncio
async def test_fetch_text_never_splits_multibyte_characters() -> None:
    body = "솔라나 클러스터 " * 4
    encoded = body.encode("utf-8")
    fetcher = _mocked_fetcher(
        lambda request: httpx.Response(200, content=encoded, headers={"content-type": "text/plain; charset=utf-8"}),
        max_chars=7,
    )

    text = await fetcher.fetch_text("https://docs.test/ko.mdx")
    assert text == body[:7]
    assert "\ufffd" not in text
    await fetcher.aclose()


@pytest.mark.asyncio
async def test_fetch_text_keeps_documents_within_limit_intact() -> None:
    body = "é" * 10
    fetcher = _mocked_fetcher(lambda request: httpx.Response(200, text=body), max_chars=10)
    assert await fetcher.fetch_text("https://docs.test/exact.mdx") == body
    await fetcher.aclose()


@pytest.mark.asyncio
async def test_fetch_text_rejects_error_status() -> None:
    fetcher = _mocked_fetcher(lambda request: httpx.Response(404, text="Not Found"))
    with pytest.raises(UpstreamTransientError) as exc_info:
        await fetcher.fetch_text("https://docs.test/missing.mdx")
    assert "404" in exc_info.value.message
    await fetcher.aclose()


@pytest.mark.asyncio
async def test_fetch_text_wraps_network_errors() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ReadTimeout("timed out", request=request)

    fetcher = _mocked_fetcher(handler)
    with pytest.raises(UpstreamTransientError) as exc_info:
        await fetcher.fetch_text("https://docs.test/slow.mdx")
    assert exc_info.value.retryable is True
    await fetcher.aclose()
