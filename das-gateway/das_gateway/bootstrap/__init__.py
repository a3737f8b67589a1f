from __future__ import annotations

from das_gateway.bootstrap.container import RuntimeComponents, build_runtime_components
from das_gateway.bootstrap.lifespan import create_lifespan

__all__ = [
    "RuntimeComponents",
    "build_runtime_components",
    "create_lifespan",
]
