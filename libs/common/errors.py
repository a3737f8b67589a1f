from __future__ import annotations

import uuid
from dataclasses import dataclass


@dataclass(slots=True)
class ErrorEnvelope:
    error_code: str
    message: str
    trace_id: str
    retryable: bool


class DomainError(Exception):
    http_status: int = 400

    def __init__(self, error_code: str, message: str, retryable: bool = False) -> None:
        super().__init__(message)
        self.error_code = error_code
        self.message = message
        self.retryable = retryable


class ValidationError(DomainError):
    http_status = 422

    def __init__(self, message: str = "검증에 실패했어요.") -> None:
        super().__init__("VALIDATION_FAILED", message, retryable=False)


class UpstreamTransientError(DomainError):
    http_status = 502

    def __init__(self, message: str = "외부 시스템에 일시적인 문제가 발생했어요.") -> None:
        super().__init__("UPSTREAM_TRANSIENT", message, retryable=True)


class NotFoundError(DomainError):
    http_status = 404

    def __init__(self, message: str = "대상을 찾지 못했어요.") -> None:
        super().__init__("NOT_FOUND", message, retryable=False)


def build_error_envelope(error_code: str, message: str, retryable: bool) -> ErrorEnvelope:
    return ErrorEnvelope(
        error_code=error_code,
        message=message,
        trace_id=str(uuid.uuid4()),
        retryable=retryable,
    )
