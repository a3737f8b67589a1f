"""기본 도구, 리소스, 프롬프트를 등록한 CallRegistry를 생성하는 팩토리예요."""

from __future__ import annotations

from das_gateway.app.catalog.asset_tools import build_asset_tools
from das_gateway.app.catalog.doc_resources import build_doc_resources
from das_gateway.app.catalog.registry import CallRegistry
from das_gateway.app.catalog.transaction_prompts import build_transaction_prompts
from das_gateway.app.das_client import DasQueryClient
from das_gateway.app.document_fetcher import DocumentFetcher


def build_default_registry(
    *,
    query_client: DasQueryClient,
    fetcher: DocumentFetcher,
    docs_base_url: str,
) -> CallRegistry:
    """기본 카탈로그가 모두 등록된 `CallRegistry`를 생성해요.

    Args:
        query_client: 자산 조회 도구가 사용할 DAS 클라이언트예요.
        fetcher: 문서 리소스가 사용할 페처예요.
        docs_base_url: 문서 리소스 원본의 기준 URL이에요.

    Raises:
        DuplicateNameError: 같은 이름이 두 번 등록되면 시작을 중단해요.
    """
    registry = CallRegistry()
    for tool in build_asset_tools(query_client):
        registry.register_tool(tool)
    for resource in build_doc_resources(fetcher, docs_base_url=docs_base_url):
        registry.register_resource(resource)
    for prompt in build_transaction_prompts():
        registry.register_prompt(prompt)
    return registry
