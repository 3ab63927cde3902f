"""
Domain models — Pydantic types for go-builder.

    from gobuilder.core.models import BuildConfig, Target, Action, Receipt
"""

from gobuilder.core.models.action import Action, Receipt
from gobuilder.core.models.config import (
    BuildConfig,
    BuildSettings,
    ContainerSpec,
    StaticCheck,
    Target,
)

__all__ = [
    "Action",
    "BuildConfig",
    "BuildSettings",
    "ContainerSpec",
    "Receipt",
    "StaticCheck",
    "Target",
]
