"""solana.com 문서 페이지를 읽기 전용 리소스로 노출해요."""

from __future__ import annotations

from collections.abc import Sequence

from das_gateway.app.catalog.base import ResourceContent, ResourceTemplate
from das_gateway.app.document_fetcher import DocumentFetcher

# (리소스 이름, 고정 URI, docs_base_url 기준 상대 경로)
SOLANA_DOC_PAGES: tuple[tuple[str, str, str], ...] = (
    ("solanaDocsInstallation", "solana://docs/intro/installation", "intro/installation.mdx"),
    ("solanaDocsClusters", "solana://docs/references/clusters", "references/clusters.mdx"),
)


def build_doc_resources(fetcher: DocumentFetcher, *, docs_base_url: str) -> list[ResourceTemplate]:
    base_url = docs_base_url.rstrip("/")
    return [
        ResourceTemplate(
            name=name,
            uri=uri,
            handler=_page_handler(fetcher, f"{base_url}/{path}"),
            description=f"Solana documentation page ({path})",
        )
        for name, uri, path in SOLANA_DOC_PAGES
    ]


def _page_handler(fetcher: DocumentFetcher, source_url: str):
    async def fetch_page(uri: str) -> Sequence[ResourceContent]:
        text = await fetcher.fetch_text(source_url)
        return [ResourceContent(uri=uri, text=text, mime_type="text/markdown")]

    return fetch_page
