"""
Build configuration model — the typed view of .gobuilder.yml.

Loaded once per invocation by the config loader. After placeholder
expansion produces a derived copy, nothing mutates it: every model is
frozen, and derived values (output paths, environments) live in the
engine's own records.
"""

from __future__ import annotations

from enum import StrEnum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationInfo, field_validator

DEFAULT_BUILD_DIR = "builds"
DEFAULT_IMAGE = "docker.io/golang:latest"
DEFAULT_WORKDIR = "/work"
DEFAULT_SHELL = "sh"


class StaticCheck(StrEnum):
    """Per-target override of static-link verification."""

    INHERIT = "inherit"
    ENFORCE = "enforce"
    SKIP = "skip"

    def resolve(self, default: bool) -> bool:
        """Apply the override on top of the global setting."""
        if self is StaticCheck.ENFORCE:
            return True
        if self is StaticCheck.SKIP:
            return False
        return default


def _string_list(value: Any) -> list[str]:
    """Accept a scalar or a sequence of scalars."""
    if value is None:
        return []
    if isinstance(value, (list, tuple)):
        return [str(v) for v in value if v is not None]
    if isinstance(value, (str, int, float, bool)):
        return [str(value)]
    raise ValueError("expected a string or a list of strings")


def _string_map(value: Any) -> dict[str, str]:
    """YAML gives us ints and bools for values like 0 or true; Go env wants strings."""
    if value is None:
        return {}
    if not isinstance(value, dict):
        raise ValueError("expected a mapping")
    out: dict[str, str] = {}
    for key, val in value.items():
        if isinstance(val, bool):
            val = "true" if val else "false"
        out[str(key)] = "" if val is None else str(val)
    return out


class _Frozen(BaseModel):
    model_config = ConfigDict(frozen=True, extra="ignore")


class BuildSettings(_Frozen):
    """Compiler and linker flags from the ``build:`` section."""

    tags: list[str] = Field(default_factory=list)
    ldflags: list[str] = Field(default_factory=list)
    vars: dict[str, str] = Field(default_factory=dict)
    gcflags: str = ""
    asmflags: str = ""
    mod: str = ""
    race: bool = False
    trimpath: bool = False
    verbose: bool = False
    debug: bool = False             # true forces dry-run
    verify_static: bool = False

    @field_validator("tags", mode="before")
    @classmethod
    def _unique_tags(cls, value: Any) -> list[str]:
        tags = _string_list(value)
        return list(dict.fromkeys(t for t in tags if t))

    @field_validator("ldflags", mode="before")
    @classmethod
    def _coerce_ldflags(cls, value: Any) -> list[str]:
        return _string_list(value)

    @field_validator("vars", mode="before")
    @classmethod
    def _coerce_vars(cls, value: Any) -> dict[str, str]:
        return _string_map(value)

    @field_validator("gcflags", "asmflags", "mod", mode="before")
    @classmethod
    def _coerce_scalar(cls, value: Any) -> str:
        return "" if value is None else str(value)


class Target(_Frozen):
    """One entry of the build matrix."""

    os: str
    arch: str
    output: str = ""
    env: dict[str, str] = Field(default_factory=dict)
    verify_static: StaticCheck = StaticCheck.INHERIT

    @field_validator("os", "arch", "output", mode="before")
    @classmethod
    def _coerce_scalar(cls, value: Any) -> str:
        return "" if value is None else str(value)

    @field_validator("env", mode="before")
    @classmethod
    def _coerce_env(cls, value: Any) -> dict[str, str]:
        return _string_map(value)

    @field_validator("verify_static", mode="before")
    @classmethod
    def _tri_state(cls, value: Any) -> StaticCheck:
        if value is None:
            return StaticCheck.INHERIT
        if isinstance(value, bool):
            return StaticCheck.ENFORCE if value else StaticCheck.SKIP
        return StaticCheck(str(value).lower())

    @property
    def platform(self) -> str:
        return f"{self.os}/{self.arch}"


class ContainerSpec(_Frozen):
    """The ``docker:`` section — run the whole matrix in a container."""

    image: str = DEFAULT_IMAGE
    workdir: str = DEFAULT_WORKDIR
    shell: str = DEFAULT_SHELL
    setup: list[str] = Field(default_factory=list)
    env: dict[str, str] = Field(default_factory=dict)
    runtime: str = "docker"
    builder: str = "go-builder"     # how to re-invoke ourselves inside the container

    @field_validator("image", "workdir", "shell", "runtime", "builder", mode="before")
    @classmethod
    def _default_when_empty(cls, value: Any, info: ValidationInfo) -> Any:
        if value is None or value == "":
            return cls.model_fields[info.field_name].default
        return str(value)

    @field_validator("setup", mode="before")
    @classmethod
    def _coerce_setup(cls, value: Any) -> list[str]:
        return _string_list(value)

    @field_validator("env", mode="before")
    @classmethod
    def _coerce_env(cls, value: Any) -> dict[str, str]:
        return _string_map(value)


class BuildConfig(_Frozen):
    """Root of .gobuilder.yml."""

    build_dir: str = DEFAULT_BUILD_DIR
    source: str = "."
    output: str = ""
    env: dict[str, str] = Field(default_factory=dict)
    build: BuildSettings = Field(default_factory=BuildSettings)
    targets: list[Target] = Field(default_factory=list)
    docker: ContainerSpec | None = None

    @field_validator("build_dir", mode="before")
    @classmethod
    def _default_build_dir(cls, value: Any) -> str:
        if value is None or value == "":
            return DEFAULT_BUILD_DIR
        return str(value)

    @field_validator("source", mode="before")
    @classmethod
    def _default_source(cls, value: Any) -> str:
        if value is None or value == "":
            return "."
        return str(value)

    @field_validator("output", mode="before")
    @classmethod
    def _coerce_output(cls, value: Any) -> str:
        return "" if value is None else str(value)

    @field_validator("env", mode="before")
    @classmethod
    def _coerce_env(cls, value: Any) -> dict[str, str]:
        return _string_map(value)

    @field_validator("build", mode="before")
    @classmethod
    def _empty_build(cls, value: Any) -> Any:
        return {} if value is None else value

    @field_validator("targets", mode="before")
    @classmethod
    def _empty_targets(cls, value: Any) -> Any:
        return [] if value is None else value

    @property
    def dry_run_forced(self) -> bool:
        return self.build.debug

    @property
    def output_name(self) -> str:
        """Base file name for every artifact (``output`` or the source's basename)."""
        if self.output:
            return self.output
        name = self.source.rstrip("/").rsplit("/", 1)[-1]
        return name if name not in ("", ".", "..") else "app"
