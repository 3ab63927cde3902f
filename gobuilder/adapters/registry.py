"""
Adapter registry — name lookup and the single dispatch path.

The executor hands every Action to ``execute_action``; the registry
picks the adapter, validates, runs it and times the call. Whatever
happens, a Receipt comes back.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Iterable, Mapping

from gobuilder.adapters.base import Adapter, ExecutionContext
from gobuilder.core.models.action import Action, Receipt

logger = logging.getLogger(__name__)


class AdapterRegistry:
    def __init__(self) -> None:
        self._adapters: dict[str, Adapter] = {}

    def register(self, adapter: Adapter) -> None:
        if adapter.name in self._adapters:
            logger.warning("Replacing adapter %r", adapter.name)
        self._adapters[adapter.name] = adapter

    def get(self, name: str) -> Adapter | None:
        return self._adapters.get(name)

    def names(self) -> list[str]:
        return sorted(self._adapters)

    def missing_tools(
        self,
        names: Iterable[str],
        programs: Mapping[str, str] | None = None,
    ) -> list[str]:
        """Those of ``names`` with no adapter or whose tool is not installed.

        ``programs`` maps an adapter name to the executable the config
        selects for it (e.g. ``{"docker": "podman"}``).
        """
        programs = programs or {}
        missing = []
        for name in names:
            adapter = self._adapters.get(name)
            if adapter is None or not adapter.is_available(programs.get(name)):
                missing.append(name)
        return missing

    def execute_action(self, action: Action, project_root: str = ".") -> Receipt:
        """Run ``action`` through its adapter. Never raises."""
        started = time.monotonic()
        receipt = self._dispatch(ExecutionContext(action=action, project_root=project_root))
        receipt.duration_ms = int((time.monotonic() - started) * 1000)
        logger.debug("%s: %s (%d ms)", action.id, receipt.status, receipt.duration_ms)
        return receipt

    def _dispatch(self, context: ExecutionContext) -> Receipt:
        action = context.action
        adapter = self._adapters.get(action.adapter)
        if adapter is None:
            return Receipt.failure(
                action.adapter, action.id, f"No adapter registered for '{action.adapter}'"
            )

        try:
            valid, reason = adapter.validate(context)
        except Exception as e:
            return Receipt.failure(action.adapter, action.id, f"Validation error: {e}")
        if not valid:
            return Receipt.failure(action.adapter, action.id, f"Validation failed: {reason}")

        try:
            return adapter.execute(context)
        except Exception as e:
            logger.error("Adapter %s raised: %s", action.adapter, e)
            return Receipt.failure(action.adapter, action.id, f"Unexpected error: {e}")


def default_registry() -> AdapterRegistry:
    """Registry wired with the real tool adapters."""
    from gobuilder.adapters.containers.docker import DockerAdapter
    from gobuilder.adapters.inspect.static_link import StaticLinkAdapter
    from gobuilder.adapters.toolchain.go import GoBuildAdapter

    registry = AdapterRegistry()
    for adapter in (GoBuildAdapter(), DockerAdapter(), StaticLinkAdapter()):
        registry.register(adapter)
    return registry
