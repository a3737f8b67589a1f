"""도구, 리소스, 프롬프트를 등록하고 호출하는 레지스트리예요."""

from __future__ import annotations

from typing import Any

from das_gateway.app.catalog.base import (
    CallResult,
    PromptDefinition,
    ResourceTemplate,
    ToolDefinition,
)
from das_gateway.app.catalog.schema import validate_input
from libs.common.errors import DomainError, NotFoundError
from libs.common.logging import get_logger

logger = get_logger("das_gateway.catalog")

TOOL_FAILED = "TOOL_FAILED"
RESOURCE_FETCH_FAILED = "RESOURCE_FETCH_FAILED"


class DuplicateNameError(DomainError):
    """같은 키로 두 번 등록하려고 했어요. 시작 단계의 프로그래밍 오류예요."""

    http_status = 500

    def __init__(self, kind: str, key: str) -> None:
        super().__init__("DUPLICATE_NAME", f"이미 등록된 {kind}예요: {key!r}")
        self.kind = kind
        self.key = key


class UnknownToolError(NotFoundError):
    def __init__(self, name: str) -> None:
        super().__init__(f"등록되지 않은 도구예요: {name}")
        self.error_code = "UNKNOWN_TOOL"


class UnknownPromptError(NotFoundError):
    def __init__(self, name: str) -> None:
        super().__init__(f"등록되지 않은 프롬프트예요: {name}")
        self.error_code = "UNKNOWN_PROMPT"


class ResourceNotFoundError(NotFoundError):
    def __init__(self, uri: str) -> None:
        super().__init__(f"리소스를 찾을 수 없어요: {uri}")
        self.error_code = "RESOURCE_NOT_FOUND"


class CallRegistry:
    """이름(리소스는 URI)으로 정의를 관리하는 중앙 레지스트리예요.

    등록은 프로세스 시작 시에만 일어나고, 이후 디스패치는 읽기만 해서
    별도의 동기화가 필요 없어요. 디스패치 메서드는 예외를 던지지 않고
    항상 `CallResult`를 반환해요.

    사용법::

        registry = CallRegistry()
        registry.register_tool(ToolDefinition(name="getAsset", ...))

        result = await registry.dispatch_tool("getAsset", {"publicKey": "..."})
        if not result.ok:
            print(result.error_code, result.error)
    """

    def __init__(self) -> None:
        self._tools: dict[str, ToolDefinition] = {}
        self._resources: dict[str, ResourceTemplate] = {}
        self._prompts: dict[str, PromptDefinition] = {}

    # ── 등록 ─────────────────────────────────────────────────────────────────

    def register_tool(self, definition: ToolDefinition) -> None:
        if definition.name in self._tools:
            raise DuplicateNameError("도구", definition.name)
        self._tools[definition.name] = definition

    def register_resource(self, definition: ResourceTemplate) -> None:
        if definition.uri in self._resources:
            raise DuplicateNameError("리소스", definition.uri)
        self._resources[definition.uri] = definition

    def register_prompt(self, definition: PromptDefinition) -> None:
        if definition.name in self._prompts:
            raise DuplicateNameError("프롬프트", definition.name)
        self._prompts[definition.name] = definition

    # ── 조회 ─────────────────────────────────────────────────────────────────

    def get_tool(self, name: str) -> ToolDefinition | None:
        return self._tools.get(name)

    def get_prompt(self, name: str) -> PromptDefinition | None:
        return self._prompts.get(name)

    def list_tools(self) -> list[ToolDefinition]:
        return list(self._tools.values())

    def list_resources(self) -> list[ResourceTemplate]:
        return list(self._resources.values())

    def list_prompts(self) -> list[PromptDefinition]:
        return list(self._prompts.values())

    def __len__(self) -> int:
        return len(self._tools) + len(self._resources) + len(self._prompts)

    # ── 디스패치 ─────────────────────────────────────────────────────────────

    async def dispatch_tool(self, name: str, raw_input: object) -> CallResult:
        """도구를 찾아 입력을 검증하고 실행해요.

        핸들러가 던진 예외는 모두 실패 `CallResult`로 바뀌어요. 등록되지 않은
        도구이거나 입력이 형태에 맞지 않으면 핸들러를 호출하지 않아요.
        """
        definition = self._tools.get(name)
        if definition is None:
            return CallResult.from_error(UnknownToolError(name))

        try:
            arguments = validate_input(definition.input_shape, raw_input)
        except DomainError as exc:
            return CallResult.from_error(exc)

        try:
            payload = await definition.handler(arguments)
        except DomainError as exc:
            logger.warning("tool_call_failed", tool=name, error_code=exc.error_code, error=exc.message)
            return CallResult.from_error(exc)
        except Exception as exc:
            logger.exception("tool_call_crashed", tool=name, error=str(exc))
            return CallResult.failure(str(exc) or type(exc).__name__, error_code=TOOL_FAILED)
        return CallResult.success(payload)

    async def resolve_resource(self, uri: str) -> CallResult:
        """URI가 정확히 일치하는 리소스를 가져와요.

        성공하면 payload는 `ResourceContent` 목록이에요.
        """
        definition = self._resources.get(uri)
        if definition is None:
            return CallResult.from_error(ResourceNotFoundError(uri))

        try:
            contents = await definition.handler(uri)
        except DomainError as exc:
            logger.warning("resource_fetch_failed", uri=uri, error_code=exc.error_code, error=exc.message)
            return CallResult.failure(exc.message, error_code=RESOURCE_FETCH_FAILED)
        except Exception as exc:
            logger.exception("resource_fetch_crashed", uri=uri, error=str(exc))
            return CallResult.failure(str(exc) or type(exc).__name__, error_code=RESOURCE_FETCH_FAILED)
        return CallResult.success(list(contents))

    def render_prompt(self, name: str, args: dict[str, Any] | None = None) -> CallResult:
        """프롬프트를 렌더링해요. 성공하면 payload는 `PromptMessage` 목록이에요."""
        definition = self._prompts.get(name)
        if definition is None:
            return CallResult.from_error(UnknownPromptError(name))

        arguments: Any = None
        if definition.argument_shape is not None:
            try:
                arguments = validate_input(definition.argument_shape, args)
            except DomainError as exc:
                return CallResult.from_error(exc)
        return CallResult.success(list(definition.render(arguments)))
