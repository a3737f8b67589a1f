"""DAS 자산 조회 도구예요.

각 도구는 입력을 검증한 뒤 `DasQueryClient`의 한 연산을 그대로 호출해요.
"""

from __future__ import annotations

from typing import Any

from pydantic import Field

from das_gateway.app.catalog.base import InputShape, ToolDefinition
from das_gateway.app.das_client import DasQueryClient
from libs.common.logging import get_logger

logger = get_logger("das_gateway.asset_tools")

_KEY_HINT = "(32 byte base58 encoded address)"


class PublicKeyInput(InputShape):
    public_key: str = Field(alias="publicKey", description="32 byte base58 encoded address")


class PublicKeysInput(InputShape):
    public_keys: list[str] = Field(alias="publicKeys", description="32 byte base58 encoded addresses")


class CreatorInput(InputShape):
    public_key: str = Field(alias="publicKey", description="32 byte base58 encoded address")
    only_verified: bool | None = Field(default=None, alias="onlyVerified")


def _summarize(result: Any) -> int | None:
    if isinstance(result, dict) and isinstance(result.get("items"), list):
        return len(result["items"])
    if isinstance(result, list):
        return len(result)
    return None


def build_asset_tools(client: DasQueryClient) -> list[ToolDefinition]:
    async def get_asset(args: PublicKeyInput) -> Any:
        logger.info("asset_fetching", public_key=args.public_key)
        return await client.get_asset(args.public_key)

    async def get_assets(args: PublicKeysInput) -> Any:
        logger.info("assets_fetching", key_count=len(args.public_keys))
        result = await client.get_assets(args.public_keys)
        logger.info("assets_fetched", count=_summarize(result))
        return result

    async def get_asset_proof(args: PublicKeyInput) -> Any:
        logger.info("asset_proof_fetching", public_key=args.public_key)
        return await client.get_asset_proof(args.public_key)

    async def get_asset_proofs(args: PublicKeysInput) -> Any:
        logger.info("asset_proofs_fetching", key_count=len(args.public_keys))
        return await client.get_asset_proofs(args.public_keys)

    async def get_asset_signatures(args: PublicKeyInput) -> Any:
        logger.info("asset_signatures_fetching", public_key=args.public_key)
        return await client.get_asset_signatures(args.public_key)

    async def get_assets_by_authority(args: PublicKeyInput) -> Any:
        result = await client.get_assets_by_authority(args.public_key)
        logger.info("assets_by_authority_fetched", authority=args.public_key, count=_summarize(result))
        return result

    async def get_assets_by_creator(args: CreatorInput) -> Any:
        only_verified = bool(args.only_verified)
        result = await client.get_assets_by_creator(args.public_key, only_verified=only_verified)
        logger.info(
            "assets_by_creator_fetched",
            creator=args.public_key,
            only_verified=only_verified,
            count=_summarize(result),
        )
        return result

    async def get_assets_by_group(args: PublicKeyInput) -> Any:
        result = await client.get_assets_by_group("collection", args.public_key)
        logger.info("assets_by_group_fetched", collection=args.public_key, count=_summarize(result))
        return result

    async def get_assets_by_owner(args: PublicKeyInput) -> Any:
        result = await client.get_assets_by_owner(args.public_key)
        logger.info("assets_by_owner_fetched", owner=args.public_key, count=_summarize(result))
        return result

    return [
        ToolDefinition(
            name="getAsset",
            description=f"Used to look up an NFT or Token by public key {_KEY_HINT}",
            input_shape=PublicKeyInput,
            handler=get_asset,
        ),
        ToolDefinition(
            name="getAssets",
            description=f"Used to look up multiple NFTs or Tokens by public key {_KEY_HINT}",
            input_shape=PublicKeysInput,
            handler=get_assets,
        ),
        ToolDefinition(
            name="getAssetProof",
            description=(
                "Used to look up merkle tree proof information for a compressed asset "
                f"by public key {_KEY_HINT}"
            ),
            input_shape=PublicKeyInput,
            handler=get_asset_proof,
        ),
        ToolDefinition(
            name="getAssetProofs",
            description=(
                "Used to look up merkle tree proof information for multiple compressed assets "
                f"by public key {_KEY_HINT}"
            ),
            input_shape=PublicKeysInput,
            handler=get_asset_proofs,
        ),
        ToolDefinition(
            name="getAssetSignatures",
            description=(
                "Used to look up the transaction signatures associated with a compressed asset. "
                f"Look up by public key of the asset {_KEY_HINT}"
            ),
            input_shape=PublicKeyInput,
            handler=get_asset_signatures,
        ),
        ToolDefinition(
            name="getAssetsByAuthority",
            description=f"Used to look up all NFTs or Tokens by authority {_KEY_HINT}",
            input_shape=PublicKeyInput,
            handler=get_assets_by_authority,
        ),
        ToolDefinition(
            name="getAssetsByCreator",
            description=f"Used to look up all NFTs or Tokens by creator {_KEY_HINT}",
            input_shape=CreatorInput,
            handler=get_assets_by_creator,
        ),
        ToolDefinition(
            name="getAssetsByGroup",
            description=f"Used to look up all NFTs or Tokens by group or collection {_KEY_HINT}",
            input_shape=PublicKeyInput,
            handler=get_assets_by_group,
        ),
        ToolDefinition(
            name="getAssetsByOwner",
            description=f"Used to look up all NFTs or Tokens by owner {_KEY_HINT}",
            input_shape=PublicKeyInput,
            handler=get_assets_by_owner,
        ),
    ]
