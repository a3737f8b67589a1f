from __future__ import annotations

from typing import Any

import pytest
from das_gateway.app.catalog.defaults import build_default_registry
from das_gateway.app.catalog.registry import CallRegistry
from das_gateway.app.das_client import BackendError
from das_gateway.app.document_fetcher import DocumentFetcher

from libs.common.errors import UpstreamTransientError

WSOL_MINT = "So11111111111111111111111111111111111111112"
USDC_MINT = "EPjFWdd5AufqSSqeM2qN1xzybapC8G4wEGGkZwyTDt1v"


class FakeQueryClient:
    """호출 이력을 남기고 미리 정한 결과를 돌려주는 DAS 클라이언트예요."""

    def __init__(self, *, fail_with: Exception | None = None) -> None:
        self.calls: list[tuple[str, tuple[Any, ...]]] = []
        self.fail_with = fail_with

    async def _record(self, method: str, *args: Any) -> Any:
        self.calls.append((method, args))
        if self.fail_with is not None:
            raise self.fail_with
        return {"method": method, "args": list(args), "items": []}

    async def get_asset(self, public_key: str) -> Any:
        self.calls.append(("get_asset", (public_key,)))
        if self.fail_with is not None:
            raise self.fail_with
        return {"id": public_key, "interface": "V1_NFT", "content": {"metadata": {"name": "Wrapped SOL"}}}

    async def get_assets(self, public_keys: list[str]) -> Any:
        return await self._record("get_assets", public_keys)

    async def get_asset_proof(self, public_key: str) -> Any:
        return await self._record("get_asset_proof", public_key)

    async def get_asset_proofs(self, public_keys: list[str]) -> Any:
        return await self._record("get_asset_proofs", public_keys)

    async def get_asset_signatures(self, public_key: str) -> Any:
        return await self._record("get_asset_signatures", public_key)

    async def get_assets_by_authority(self, authority: str) -> Any:
        return await self._record("get_assets_by_authority", authority)

    async def get_assets_by_creator(self, creator: str, *, only_verified: bool = False) -> Any:
        return await self._record("get_assets_by_creator", creator, only_verified)

    async def get_assets_by_group(self, group_key: str, group_value: str) -> Any:
        return await self._record("get_assets_by_group", group_key, group_value)

    async def get_assets_by_owner(self, owner: str) -> Any:
        return await self._record("get_assets_by_owner", owner)


class FakeFetcher(DocumentFetcher):
    def __init__(self, *, pages: dict[str, str] | None = None) -> None:
        self.pages = pages or {}
        self.requested: list[str] = []

    async def aclose(self) -> None:
        return None

    async def fetch_text(self, url: str) -> str:
        self.requested.append(url)
        if url not in self.pages:
            raise UpstreamTransientError(f"문서를 가져오지 못했어요 (HTTP 404): {url}")
        return self.pages[url]


@pytest.fixture
def query_client() -> FakeQueryClient:
    return FakeQueryClient()


@pytest.fixture
def fetcher() -> FakeFetcher:
    return FakeFetcher(pages={"https://docs.test/intro/installation.mdx": "# Installation"})


@pytest.fixture
def registry(query_client: FakeQueryClient, fetcher: FakeFetcher) -> CallRegistry:
    """가짜 백엔드로 구성한 기본 카탈로그예요."""
    return build_default_registry(
        query_client=query_client,
        fetcher=fetcher,
        docs_base_url="https://docs.test",
    )


@pytest.fixture
def failing_registry(fetcher: FakeFetcher) -> tuple[CallRegistry, FakeQueryClient]:
    client = FakeQueryClient(fail_with=BackendError("Asset Not Found"))
    return (
        build_default_registry(query_client=client, fetcher=fetcher, docs_base_url="https://docs.test"),
        client,
    )
