"""선언된 입력 형태로 원시 입력을 검증해요."""

from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import Any, TypeVar

import pydantic

from das_gateway.app.catalog.base import InputShape
from libs.common.errors import ValidationError

ShapeT = TypeVar("ShapeT", bound=InputShape)

MISSING_REQUIRED = "missing_required"
WRONG_TYPE = "wrong_type"
WRONG_ITEM_TYPE = "wrong_item_type"
INVALID = "invalid"


@dataclass(slots=True, frozen=True)
class FieldViolation:
    field: str
    constraint: str
    message: str


class InputValidationError(ValidationError):
    def __init__(self, violations: list[FieldViolation]) -> None:
        summary = ", ".join(f"{v.field}: {v.constraint}" for v in violations)
        super().__init__(f"입력 검증에 실패했어요 ({summary})")
        self.violations = violations

    @property
    def details(self) -> list[dict[str, Any]]:
        return [asdict(violation) for violation in self.violations]


def validate_input(shape: type[ShapeT], raw: object) -> ShapeT:
    """`raw`가 `shape`에 맞으면 타입이 지정된 인스턴스를 반환해요.

    타입 변환은 하지 않아요. 맞지 않으면 위반 필드를 모두 담은
    `InputValidationError`를 던져요.
    """
    if raw is None:
        raw = {}
    try:
        return shape.model_validate(raw)
    except pydantic.ValidationError as exc:
        raise InputValidationError([_to_violation(error) for error in exc.errors()]) from exc


def _to_violation(error: Any) -> FieldViolation:
    loc = tuple(error.get("loc", ()))
    error_type = str(error.get("type", ""))
    message = str(error.get("msg", ""))

    if error_type == "missing":
        constraint = MISSING_REQUIRED
    elif any(isinstance(part, int) for part in loc[1:]):
        constraint = WRONG_ITEM_TYPE
    elif error_type.endswith("_type"):
        constraint = WRONG_TYPE
    else:
        constraint = INVALID
    return FieldViolation(field=_format_loc(loc), constraint=constraint, message=message)


def _format_loc(loc: tuple[Any, ...]) -> str:
    if not loc:
        return "(root)"
    rendered = str(loc[0])
    for part in loc[1:]:
        rendered += f"[{part}]" if isinstance(part, int) else f".{part}"
    return rendered
