"""
Environment layering — compose the env each child process sees.

Precedence, lowest to highest:

    process env  <  global ``env:``  <  container ``docker.env``  <  target ``env:``

The process environment is captured once at startup as an
EnvSnapshot and passed around explicitly, so composition never
depends on when it runs.
"""

from __future__ import annotations

import os
from collections.abc import Iterator, Mapping
from types import MappingProxyType


class EnvSnapshot(Mapping[str, str]):
    """Read-only copy of the process environment."""

    __slots__ = ("_data",)

    def __init__(self, values: Mapping[str, str] | None = None):
        self._data = MappingProxyType(dict(values or {}))

    @classmethod
    def capture(cls) -> EnvSnapshot:
        """Freeze ``os.environ`` as it is right now."""
        return cls(os.environ)

    def __getitem__(self, key: str) -> str:
        return self._data[key]

    def __iter__(self) -> Iterator[str]:
        return iter(self._data)

    def __len__(self) -> int:
        return len(self._data)

    def __repr__(self) -> str:
        return f"<EnvSnapshot {len(self._data)} vars>"


def compose_env(
    base: Mapping[str, str] | None,
    global_env: Mapping[str, str] | None,
    scope_env: Mapping[str, str] | None = None,
    target_env: Mapping[str, str] | None = None,
) -> dict[str, str]:
    """Merge the layers into a new mapping; later layers win key-for-key.

    ``None`` layers contribute nothing. The inputs are never modified.
    """
    merged: dict[str, str] = dict(base or {})
    for layer in (global_env, scope_env, target_env):
        if layer:
            merged.update(layer)
    return merged


def diff_env(base: Mapping[str, str], composed: Mapping[str, str]) -> dict[str, str]:
    """Keys that are new in ``composed`` or whose value changed, sorted by key."""
    return {
        key: composed[key]
        for key in sorted(composed)
        if key not in base or base[key] != composed[key]
    }


def sorted_env(env: Mapping[str, str]) -> dict[str, str]:
    """Same mapping, keys in sorted order (for printing)."""
    return {key: env[key] for key in sorted(env)}
