from __future__ import annotations

import re
from typing import Any, Protocol

import httpx

from libs.common.errors import DomainError
from libs.common.logging import get_logger
from libs.common.retry import retry_async
from libs.contracts.models import JSONRPC_VERSION

logger = get_logger("das_gateway.das_client")

_PUBLIC_KEY_PATTERN = re.compile(r"^[1-9A-HJ-NP-Za-km-z]{32,44}$")


class BackendError(DomainError):
    """DAS 백엔드 조회가 실패했어요 (네트워크, 미존재, 잘못된 키 등)."""

    http_status = 502

    def __init__(self, message: str, *, retryable: bool = False) -> None:
        super().__init__("BACKEND_ERROR", message, retryable=retryable)


class DasQueryClient(Protocol):
    """도구 핸들러가 의존하는 DAS 조회 연산 목록이에요."""

    async def get_asset(self, public_key: str) -> Any: ...
    async def get_assets(self, public_keys: list[str]) -> Any: ...
    async def get_asset_proof(self, public_key: str) -> Any: ...
    async def get_asset_proofs(self, public_keys: list[str]) -> Any: ...
    async def get_asset_signatures(self, public_key: str) -> Any: ...
    async def get_assets_by_authority(self, authority: str) -> Any: ...
    async def get_assets_by_creator(self, creator: str, *, only_verified: bool = False) -> Any: ...
    async def get_assets_by_group(self, group_key: str, group_value: str) -> Any: ...
    async def get_assets_by_owner(self, owner: str) -> Any: ...


def parse_public_key(value: str) -> str:
    """base58로 인코딩된 32바이트 주소 형식인지 확인해요."""
    candidate = value.strip()
    if not _PUBLIC_KEY_PATTERN.match(candidate):
        raise BackendError(f"올바른 base58 공개 키가 아니에요: {value!r}")
    return candidate


class DasRpcClient:
    """DAS JSON-RPC 엔드포인트를 호출하는 `DasQueryClient` 구현이에요."""

    def __init__(
        self,
        *,
        rpc_url: str,
        timeout_seconds: float,
        max_retries: int = 2,
        page_limit: int = 1000,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._rpc_url = rpc_url
        self._max_retries = max_retries
        self._page_limit = page_limit
        self._request_id = 0
        self._client = httpx.AsyncClient(timeout=timeout_seconds, transport=transport)

    async def aclose(self) -> None:
        await self._client.aclose()

    async def get_asset(self, public_key: str) -> Any:
        return await self._call("getAsset", {"id": parse_public_key(public_key)})

    async def get_assets(self, public_keys: list[str]) -> Any:
        return await self._call("getAssets", {"ids": [parse_public_key(key) for key in public_keys]})

    async def get_asset_proof(self, public_key: str) -> Any:
        return await self._call("getAssetProof", {"id": parse_public_key(public_key)})

    async def get_asset_proofs(self, public_keys: list[str]) -> Any:
        return await self._call("getAssetProofs", {"ids": [parse_public_key(key) for key in public_keys]})

    async def get_asset_signatures(self, public_key: str) -> Any:
        return await self._call("getAssetSignatures", self._paged({"id": parse_public_key(public_key)}))

    async def get_assets_by_authority(self, authority: str) -> Any:
        return await self._call(
            "getAssetsByAuthority",
            self._paged({"authorityAddress": parse_public_key(authority)}),
        )

    async def get_assets_by_creator(self, creator: str, *, only_verified: bool = False) -> Any:
        return await self._call(
            "getAssetsByCreator",
            self._paged({"creatorAddress": parse_public_key(creator), "onlyVerified": only_verified}),
        )

    async def get_assets_by_group(self, group_key: str, group_value: str) -> Any:
        return await self._call(
            "getAssetsByGroup",
            self._paged({"groupKey": group_key, "groupValue": parse_public_key(group_value)}),
        )

    async def get_assets_by_owner(self, owner: str) -> Any:
        return await self._call("getAssetsByOwner", self._paged({"ownerAddress": parse_public_key(owner)}))

    def _paged(self, params: dict[str, Any]) -> dict[str, Any]:
        return {**params, "page": 1, "limit": self._page_limit}

    async def _call(self, method: str, params: dict[str, Any]) -> Any:
        return await retry_async(
            lambda: self._call_raw(method, params),
            retries=self._max_retries,
            base_delay_seconds=0.3,
            max_delay_seconds=3.0,
            retry_filter=lambda exc: isinstance(exc, BackendError) and exc.retryable,
            on_retry=lambda attempt, exc: logger.warning(
                "das_rpc_retry",
                method=method,
                attempt=attempt,
                error=str(exc),
            ),
        )

    async def _call_raw(self, method: str, params: dict[str, Any]) -> Any:
        self._request_id += 1
        payload = {
            "jsonrpc": JSONRPC_VERSION,
            "id": self._request_id,
            "method": method,
            "params": params,
        }

        try:
            response = await self._client.post(self._rpc_url, json=payload)
        except httpx.TimeoutException as exc:
            raise BackendError(f"DAS {method} 요청이 시간 초과됐어요.", retryable=True) from exc
        except httpx.HTTPError as exc:
            raise BackendError(f"DAS {method} 요청 중 네트워크 오류가 발생했어요: {exc}", retryable=True) from exc

        if response.status_code == 429 or response.status_code >= 500:
            raise BackendError(f"DAS 서버 오류가 발생했어요 (HTTP {response.status_code}).", retryable=True)
        if response.status_code >= 400:
            raise BackendError(f"DAS 요청이 거부됐어요 (HTTP {response.status_code}).")

        try:
            data = response.json()
        except ValueError as exc:
            raise BackendError(f"DAS {method} 응답이 JSON이 아니에요.") from exc
        if not isinstance(data, dict):
            raise BackendError(f"DAS {method} 응답 형식이 올바르지 않아요.")

        error_value = data.get("error")
        if isinstance(error_value, dict):
            message_value = error_value.get("message")
            message = message_value if isinstance(message_value, str) else "DAS 오류가 발생했어요."
            raise BackendError(message)
        if "result" not in data:
            raise BackendError(f"DAS {method} 응답에 result가 없어요.")
        if data["result"] is None:
            # DAS는 존재하지 않는 자산을 null result로 돌려줘요
            raise BackendError(f"DAS {method}: not found")
        return data["result"]
