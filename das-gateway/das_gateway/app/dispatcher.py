"""요청 봉투를 레지스트리 호출로 라우팅하고 JSON-RPC 응답을 만들어요."""

from __future__ import annotations

import json
from typing import Any

from das_gateway.app.catalog.base import CallResult
from das_gateway.app.catalog.registry import CallRegistry
from das_gateway.app.mcp_protocol import (
    INTERNAL_ERROR,
    INVALID_PARAMS,
    METHOD_NOT_FOUND,
    PROMPT_PREFIX,
    RESOURCE_NOT_FOUND,
    RESOURCE_PREFIX,
    TOOL_PREFIX,
    McpServerInfo,
)
from libs.common.logging import get_logger
from libs.contracts.models import MessageEnvelope, RequestId, RpcError, RpcResponse

logger = get_logger("das_gateway.dispatcher")


class McpDispatcher:
    def __init__(self, *, registry: CallRegistry, server_info: McpServerInfo) -> None:
        self._registry = registry
        self._server_info = server_info

    async def handle(self, envelope: MessageEnvelope) -> dict[str, Any] | None:
        """봉투 하나를 처리해요. 알림이면 ``None``을 반환해요.

        어떤 실패도 예외로 빠져나가지 않고 JSON-RPC 메시지가 돼요.
        """
        try:
            reply = await self._route(envelope)
        except Exception as exc:
            logger.exception(
                "dispatch_crashed",
                request_id=envelope.request_id,
                method=envelope.method,
                error=str(exc),
            )
            reply = RpcError(code=INTERNAL_ERROR, message="요청 처리 중 예상치 못한 오류가 발생했어요.")

        if envelope.is_notification:
            return None
        message = _to_message(envelope.request_id, reply)
        if envelope.jsonrpc is None:
            # 축약 형태로 들어온 요청은 requestId로도 응답을 연결할 수 있게 해요
            message["requestId"] = envelope.request_id
        return message

    async def _route(self, envelope: MessageEnvelope) -> Any:
        method = envelope.method
        params = envelope.params

        if method.startswith(TOOL_PREFIX):
            return await self._call_tool(method.removeprefix(TOOL_PREFIX), params)
        if method.startswith(RESOURCE_PREFIX):
            return await self._read_resource(method.removeprefix(RESOURCE_PREFIX))
        if method.startswith(PROMPT_PREFIX):
            return self._get_prompt(method.removeprefix(PROMPT_PREFIX), params)
        if method.startswith("notifications/"):
            logger.info("notification_received", method=method)
            return {}

        match method:
            case "initialize":
                return self._server_info.initialize_result(params.get("protocolVersion"))
            case "ping":
                return {}
            case "tools/list":
                return {"tools": [tool.to_spec() for tool in self._registry.list_tools()]}
            case "tools/call":
                name = params.get("name")
                if not isinstance(name, str) or not name:
                    return RpcError(code=INVALID_PARAMS, message="tools/call에는 name이 필요해요.")
                return await self._call_tool(name, params.get("arguments"))
            case "resources/list":
                return {"resources": []}
            case "resources/templates/list":
                return {"resourceTemplates": [resource.to_spec() for resource in self._registry.list_resources()]}
            case "resources/read":
                uri = params.get("uri")
                if not isinstance(uri, str) or not uri:
                    return RpcError(code=INVALID_PARAMS, message="resources/read에는 uri가 필요해요.")
                return await self._read_resource(uri)
            case "prompts/list":
                return {"prompts": [prompt.to_spec() for prompt in self._registry.list_prompts()]}
            case "prompts/get":
                name = params.get("name")
                if not isinstance(name, str) or not name:
                    return RpcError(code=INVALID_PARAMS, message="prompts/get에는 name이 필요해요.")
                return self._get_prompt(name, params.get("arguments"))
            case _:
                return RpcError(code=METHOD_NOT_FOUND, message=f"지원하지 않는 메서드예요: {method}")

    async def _call_tool(self, name: str, arguments: object) -> dict[str, Any]:
        result = await self._registry.dispatch_tool(name, arguments)
        return tool_result_to_wire(result)

    async def _read_resource(self, uri: str) -> dict[str, Any] | RpcError:
        result = await self._registry.resolve_resource(uri)
        if result.ok:
            return {"contents": [content.to_spec() for content in result.payload]}
        if result.error_code == "RESOURCE_NOT_FOUND":
            return RpcError(code=RESOURCE_NOT_FOUND, message=result.error, data={"uri": uri})
        return {"contents": [{"uri": uri, "text": f"Error: {result.error}"}]}

    def _get_prompt(self, name: str, arguments: object) -> dict[str, Any] | RpcError:
        args = arguments if isinstance(arguments, dict) else None
        result = self._registry.render_prompt(name, args)
        if not result.ok:
            data: dict[str, Any] = {"error_code": result.error_code}
            if result.details:
                data["violations"] = result.details
            return RpcError(code=INVALID_PARAMS, message=result.error, data=data)
        reply: dict[str, Any] = {"messages": [message.to_spec() for message in result.payload]}
        definition = self._registry.get_prompt(name)
        if definition is not None:
            reply["description"] = definition.description
        return reply


def tool_result_to_wire(result: CallResult) -> dict[str, Any]:
    """`CallResult`를 `tools/call` 응답 형태로 바꿔요."""
    if not result.ok:
        wire: dict[str, Any] = {
            "content": [{"type": "text", "text": f"Error: {result.error}"}],
            "isError": True,
            "_meta": {"error_code": result.error_code},
        }
        if result.details:
            wire["_meta"]["violations"] = result.details
        return wire

    wire = {"content": [{"type": "text", "text": json.dumps(result.payload, indent=2, ensure_ascii=False)}]}
    if isinstance(result.payload, dict):
        wire["structuredContent"] = result.payload
    return wire


def _to_message(request_id: RequestId, reply: Any) -> dict[str, Any]:
    if isinstance(reply, RpcError):
        return RpcResponse(id=request_id, error=reply).to_wire()
    return RpcResponse(id=request_id, result=reply).to_wire()
