from __future__ import annotations

from dataclasses import dataclass
from typing import Any

MCP_PROTOCOL_VERSION = "2025-06-18"
SUPPORTED_PROTOCOL_VERSIONS = ("2024-11-05", "2025-03-26", "2025-06-18")

# JSON-RPC 2.0 / MCP 오류 코드
METHOD_NOT_FOUND = -32601
INVALID_PARAMS = -32602
INTERNAL_ERROR = -32603
RESOURCE_NOT_FOUND = -32002

# 축약 메서드 접두사 (예: "tool:getAsset")
TOOL_PREFIX = "tool:"
RESOURCE_PREFIX = "resource:"
PROMPT_PREFIX = "prompt:"


@dataclass(slots=True)
class McpServerInfo:
    name: str
    version: str

    def initialize_result(self, requested_version: object) -> dict[str, Any]:
        """클라이언트가 요청한 버전을 지원하면 그대로, 아니면 최신 버전으로 응답해요."""
        protocol_version = (
            requested_version
            if isinstance(requested_version, str) and requested_version in SUPPORTED_PROTOCOL_VERSIONS
            else MCP_PROTOCOL_VERSION
        )
        return {
            "protocolVersion": protocol_version,
            "capabilities": {
                "tools": {"listChanged": False},
                "resources": {"listChanged": False, "subscribe": False},
                "prompts": {"listChanged": False},
            },
            "serverInfo": {"name": self.name, "version": self.version},
        }
