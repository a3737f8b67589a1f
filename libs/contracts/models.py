from __future__ import annotations

from typing import Any

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator

JSONRPC_VERSION = "2.0"

RequestId = str | int


class MessageEnvelope(BaseModel):
    """요청 채널로 들어오는 단건 호출이에요.

    JSON-RPC 형태(``id``)와 축약 형태(``requestId``)를 모두 받아요.
    id가 없으면 응답을 보내지 않는 알림으로 취급해요.
    """

    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    jsonrpc: str | None = None
    request_id: RequestId | None = Field(
        default=None,
        validation_alias=AliasChoices("id", "requestId", "request_id"),
    )
    method: str = Field(min_length=1)
    params: dict[str, Any] = Field(default_factory=dict)

    @field_validator("params", mode="before")
    @classmethod
    def _default_params(cls, value: object) -> object:
        return {} if value is None else value

    @property
    def is_notification(self) -> bool:
        return self.request_id is None


class RpcError(BaseModel):
    code: int
    message: str
    data: dict[str, Any] | None = None


class RpcResponse(BaseModel):
    id: RequestId
    result: Any = None
    error: RpcError | None = None

    def to_wire(self) -> dict[str, Any]:
        message: dict[str, Any] = {"jsonrpc": JSONRPC_VERSION, "id": self.id}
        if self.error is not None:
            message["error"] = self.error.model_dump(exclude_none=True)
        else:
            message["result"] = self.result
        return message
