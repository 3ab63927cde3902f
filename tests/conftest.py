"""
Shared test fixtures and configuration.
"""

import textwrap
from collections.abc import Callable
from pathlib import Path

import pytest

from gobuilder.adapters.mock import MockAdapter
from gobuilder.adapters.registry import AdapterRegistry
from gobuilder.core.engine.targets import HostPlatform


@pytest.fixture
def host() -> HostPlatform:
    """A fixed host so implicit-target paths don't depend on the CI machine."""
    return HostPlatform(os="linux", arch="amd64")


@pytest.fixture
def base_env() -> dict[str, str]:
    return {"PATH": "/usr/bin:/bin", "HOME": "/home/dev"}


@pytest.fixture
def write_config(tmp_path: Path) -> Callable[[str], Path]:
    """Write a .gobuilder.yml into tmp_path and return its path."""

    def _write(content: str, name: str = ".gobuilder.yml") -> Path:
        path = tmp_path / name
        path.write_text(textwrap.dedent(content))
        return path

    return _write


@pytest.fixture
def mocks() -> dict[str, MockAdapter]:
    return {
        "go": MockAdapter(adapter_name="go"),
        "docker": MockAdapter(adapter_name="docker"),
        "static-link": MockAdapter(adapter_name="static-link"),
    }


@pytest.fixture
def registry(mocks: dict[str, MockAdapter]) -> AdapterRegistry:
    """Registry where every external tool is a MockAdapter."""
    reg = AdapterRegistry()
    for adapter in mocks.values():
        reg.register(adapter)
    return reg
