from __future__ import annotations

from dataclasses import dataclass

from das_gateway.app.catalog.defaults import build_default_registry
from das_gateway.app.catalog.registry import CallRegistry
from das_gateway.app.das_client import DasRpcClient
from das_gateway.app.dispatcher import McpDispatcher
from das_gateway.app.document_fetcher import DocumentFetcher
from das_gateway.app.mcp_protocol import McpServerInfo
from das_gateway.app.settings import Settings
from das_gateway.app.transport import SessionTransport


@dataclass(slots=True)
class RuntimeComponents:
    query_client: DasRpcClient
    fetcher: DocumentFetcher
    registry: CallRegistry
    dispatcher: McpDispatcher
    transport: SessionTransport

    async def aclose(self, *, inflight_timeout_seconds: float) -> None:
        await self.transport.aclose(timeout_seconds=inflight_timeout_seconds)
        await self.query_client.aclose()
        await self.fetcher.aclose()


def build_runtime_components(settings: Settings) -> RuntimeComponents:
    query_client = DasRpcClient(
        rpc_url=settings.rpc_url,
        timeout_seconds=settings.rpc_timeout_seconds,
        max_retries=settings.rpc_max_retries,
        page_limit=settings.das_page_limit,
    )
    fetcher = DocumentFetcher(timeout_seconds=settings.docs_timeout_seconds)

    # 등록 충돌(DuplicateNameError)은 여기서 그대로 전파돼 시작을 막아요
    registry = build_default_registry(
        query_client=query_client,
        fetcher=fetcher,
        docs_base_url=settings.docs_base_url,
    )
    dispatcher = McpDispatcher(
        registry=registry,
        server_info=McpServerInfo(name=settings.server_name, version=settings.server_version),
    )

    return RuntimeComponents(
        query_client=query_client,
        fetcher=fetcher,
        registry=registry,
        dispatcher=dispatcher,
        transport=SessionTransport(),
    )
