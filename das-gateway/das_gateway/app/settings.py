from __future__ import annotations

from typing import Annotated

from pydantic import AliasChoices, Field, field_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict

MAINNET_RPC_URL = "https://api.mainnet-beta.solana.com"


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="DAS_GATEWAY_",
        extra="ignore",
        env_file=".env",
        env_file_encoding="utf-8",
    )

    service_name: str = "das-mcp-gateway"
    server_name: str = "Metaplex DAS MCP Server"
    server_version: str = "0.1.0"
    host: str = "0.0.0.0"
    port_floor: int = Field(default=8080, ge=1, le=65535)
    # 기존 배포와 호환되도록 접두사 없는 RPC_URL도 읽어요
    rpc_url: str = Field(
        default=MAINNET_RPC_URL,
        validation_alias=AliasChoices("RPC_URL", "DAS_GATEWAY_RPC_URL"),
    )
    rpc_timeout_seconds: float = 30.0
    rpc_max_retries: int = Field(default=2, ge=0)
    das_page_limit: int = Field(default=1000, ge=1, le=1000)
    docs_base_url: str = "https://raw.githubusercontent.com/solana-foundation/solana-com/main/content/docs"
    docs_timeout_seconds: float = 15.0
    sse_keepalive_seconds: float = 15.0
    inflight_shutdown_timeout_seconds: float = 10.0
    cors_allow_origins: Annotated[list[str], NoDecode] = Field(default_factory=lambda: ["*"])
    log_level: str = "INFO"

    @field_validator("cors_allow_origins", mode="before")
    @classmethod
    def _parse_origins(cls, value: object) -> object:
        """환경변수에서 CSV 문자열로 들어온 경우 리스트로 변환해요."""
        if isinstance(value, str):
            parts = [p.strip() for p in value.split(",") if p.strip()]
            return parts if parts else ["*"]
        return value

    @field_validator("rpc_url")
    @classmethod
    def _fallback_rpc_url(cls, value: str) -> str:
        """빈 문자열이면 공개 mainnet 엔드포인트를 사용해요."""
        return value.strip() or MAINNET_RPC_URL


settings = Settings()
