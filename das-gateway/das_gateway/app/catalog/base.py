"""카탈로그에 등록되는 정의와 호출 결과 타입이에요.

도구, 리소스, 프롬프트는 모두 프로세스 시작 시 한 번 등록되고
이후에는 읽기 전용으로만 사용돼요.
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable, Sequence
from dataclasses import dataclass, field
from typing import Any

from pydantic import BaseModel, ConfigDict

from libs.common.errors import DomainError


class InputShape(BaseModel):
    """도구와 프롬프트 입력 형태의 기반 모델이에요.

    strict 모드라서 ``"1"``이 숫자로, ``"true"``가 bool로 바뀌지 않아요.
    선언되지 않은 필드는 버려요.
    """

    model_config = ConfigDict(strict=True, extra="ignore", frozen=True)


@dataclass(slots=True, frozen=True)
class CallResult:
    """디스패치 경계를 넘는 유일한 결과 형태예요."""

    ok: bool
    """실행 성공 여부예요."""

    payload: Any = None
    """성공 시 JSON으로 직렬화 가능한 결과예요."""

    error: str = ""
    """실패 시 사람이 읽을 수 있는 메시지예요."""

    error_code: str = ""
    """실패 분류 코드예요 (`DomainError.error_code`)."""

    details: list[dict[str, Any]] = field(default_factory=list)
    """입력 검증 실패 시 필드별 위반 내역이에요."""

    @classmethod
    def success(cls, payload: Any) -> CallResult:
        return cls(ok=True, payload=payload)

    @classmethod
    def failure(cls, message: str, *, error_code: str, details: list[dict[str, Any]] | None = None) -> CallResult:
        return cls(ok=False, error=message, error_code=error_code, details=details or [])

    @classmethod
    def from_error(cls, exc: DomainError) -> CallResult:
        details = getattr(exc, "details", None)
        return cls.failure(exc.message, error_code=exc.error_code, details=details)


@dataclass(slots=True, frozen=True)
class ResourceContent:
    uri: str
    text: str
    mime_type: str | None = None

    def to_spec(self) -> dict[str, Any]:
        spec: dict[str, Any] = {"uri": self.uri, "text": self.text}
        if self.mime_type:
            spec["mimeType"] = self.mime_type
        return spec


@dataclass(slots=True, frozen=True)
class PromptMessage:
    role: str
    text: str

    def to_spec(self) -> dict[str, Any]:
        return {"role": self.role, "content": {"type": "text", "text": self.text}}


ToolHandler = Callable[[Any], Awaitable[Any]]
ResourceHandler = Callable[[str], Awaitable[Sequence[ResourceContent]]]
PromptRenderer = Callable[[Any], Sequence[PromptMessage]]


@dataclass(slots=True, frozen=True)
class ToolDefinition:
    name: str
    description: str
    input_shape: type[InputShape]
    handler: ToolHandler

    def to_spec(self) -> dict[str, Any]:
        """`tools/list`에 실리는 도구 스펙이에요."""
        return {
            "name": self.name,
            "description": self.description,
            "inputSchema": _object_schema(self.input_shape),
        }


@dataclass(slots=True, frozen=True)
class ResourceTemplate:
    name: str
    uri: str
    handler: ResourceHandler
    description: str | None = None
    mime_type: str | None = "text/markdown"

    def to_spec(self) -> dict[str, Any]:
        spec: dict[str, Any] = {"name": self.name, "uriTemplate": self.uri}
        if self.description:
            spec["description"] = self.description
        if self.mime_type:
            spec["mimeType"] = self.mime_type
        return spec


@dataclass(slots=True, frozen=True)
class PromptDefinition:
    name: str
    description: str
    render: PromptRenderer
    argument_shape: type[InputShape] | None = None

    def to_spec(self) -> dict[str, Any]:
        arguments: list[dict[str, Any]] = []
        if self.argument_shape is not None:
            for field_name, field_info in self.argument_shape.model_fields.items():
                argument: dict[str, Any] = {
                    "name": field_info.alias or field_name,
                    "required": field_info.is_required(),
                }
                if field_info.description:
                    argument["description"] = field_info.description
                arguments.append(argument)
        return {"name": self.name, "description": self.description, "arguments": arguments}


def _object_schema(shape: type[InputShape]) -> dict[str, Any]:
    schema = shape.model_json_schema(by_alias=True)
    schema.pop("title", None)
    for property_schema in schema.get("properties", {}).values():
        if isinstance(property_schema, dict):
            property_schema.pop("title", None)
    return schema
