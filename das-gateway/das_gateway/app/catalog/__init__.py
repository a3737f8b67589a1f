"""도구, 리소스, 프롬프트 카탈로그 패키지예요.

외부에서는 이 패키지에서 직접 임포트할 수 있어요::

    from das_gateway.app.catalog import CallRegistry, build_default_registry
"""

from das_gateway.app.catalog.base import (
    CallResult,
    InputShape,
    PromptDefinition,
    PromptMessage,
    ResourceContent,
    ResourceTemplate,
    ToolDefinition,
)
from das_gateway.app.catalog.defaults import build_default_registry
from das_gateway.app.catalog.registry import (
    CallRegistry,
    DuplicateNameError,
    ResourceNotFoundError,
    UnknownPromptError,
    UnknownToolError,
)
from das_gateway.app.catalog.schema import FieldViolation, InputValidationError, validate_input

__all__ = [
    "CallRegistry",
    "CallResult",
    "DuplicateNameError",
    "FieldViolation",
    "InputShape",
    "InputValidationError",
    "PromptDefinition",
    "PromptMessage",
    "ResourceContent",
    "ResourceNotFoundError",
    "ResourceTemplate",
    "ToolDefinition",
    "UnknownPromptError",
    "UnknownToolError",
    "build_default_registry",
]
