"""
Tests for target resolution — output paths, env injection, static flags.
"""

from types import SimpleNamespace

import pytest

from gobuilder.core.engine import targets
from gobuilder.core.engine.targets import (
    HostPlatform,
    output_path,
    resolve_targets,
    select_targets,
)
from gobuilder.core.errors import ConfigError
from gobuilder.core.models.config import BuildConfig, Target


def _config(**data) -> BuildConfig:
    return BuildConfig.model_validate(data)


class TestSelectTargets:
    def test_explicit(self, host):
        cfg = _config(targets=[{"os": "linux", "arch": "arm64"}])
        selection = select_targets(cfg, host)
        assert selection.kind == "explicit"
        assert not selection.implicit
        assert [t.platform for t in selection.targets] == ["linux/arm64"]

    def test_host_when_none_declared(self, host):
        selection = select_targets(_config(), host)
        assert selection.kind == "host"
        assert selection.implicit
        assert len(selection.targets) == 1
        assert selection.targets[0].platform == "linux/amd64"
        assert selection.targets[0].env == {}


class TestOutputPaths:
    def test_matrix_scenario(self, host):
        cfg = _config(
            output="app",
            targets=[{"os": "linux", "arch": "amd64"}, {"os": "windows", "arch": "amd64"}],
        )
        paths = [t.output for t in resolve_targets(cfg, {}, host)]
        assert paths == ["builds/linux/amd64/app", "builds/windows/amd64/app.exe"]

    def test_exe_not_doubled(self):
        cfg = _config(output="tool.exe")
        path = output_path(cfg, Target(os="windows", arch="386"))
        assert path == "builds/windows/386/tool.exe"

    def test_explicit_output_wins(self):
        cfg = _config(output="app")
        path = output_path(cfg, Target(os="windows", arch="amd64", output="dist/win/app"))
        assert path == "dist/win/app"

    def test_custom_build_dir(self):
        cfg = _config(build_dir="out", output="srv")
        assert output_path(cfg, Target(os="darwin", arch="arm64")) == "out/darwin/arm64/srv"

    def test_output_defaults_to_source_basename(self):
        cfg = _config(source="./cmd/server/")
        assert output_path(cfg, Target(os="linux", arch="amd64")) == "builds/linux/amd64/server"

    def test_implicit_target_path(self, host):
        resolved = resolve_targets(_config(output="app"), {}, host)
        assert len(resolved) == 1
        assert resolved[0].output == "builds/linux/amd64/app"
        assert resolved[0].implicit

    def test_implicit_windows_host_gets_suffix(self):
        resolved = resolve_targets(_config(output="app"), {}, HostPlatform("windows", "amd64"))
        assert resolved[0].output.endswith("app.exe")

    def test_paths_unique(self, host):
        cfg = _config(
            output="app",
            targets=[
                {"os": "linux", "arch": "amd64"},
                {"os": "linux", "arch": "arm64"},
                {"os": "darwin", "arch": "arm64"},
            ],
        )
        paths = [t.output for t in resolve_targets(cfg, {}, host)]
        assert len(paths) == 3
        assert len(set(paths)) == 3

    def test_duplicate_output_rejected(self, host):
        cfg = _config(
            targets=[
                {"os": "linux", "arch": "amd64", "output": "dist/app"},
                {"os": "linux", "arch": "arm64", "output": "./dist/app"},
            ],
        )
        with pytest.raises(ConfigError, match="both write to"):
            resolve_targets(cfg, {}, host)

    def test_missing_arch_rejected(self, host):
        cfg = _config(targets=[{"os": "linux", "arch": ""}])
        with pytest.raises(ConfigError, match="targets\\[0\\]"):
            resolve_targets(cfg, {}, host)


class TestTargetEnvironment:
    def test_goos_goarch_injected(self, base_env, host):
        cfg = _config(targets=[{"os": "windows", "arch": "arm64"}])
        env = resolve_targets(cfg, base_env, host)[0].env
        assert env["GOOS"] == "windows"
        assert env["GOARCH"] == "arm64"
        assert env["PATH"] == base_env["PATH"]

    def test_goos_cannot_be_overridden_by_target_env(self, host):
        cfg = _config(targets=[{"os": "linux", "arch": "amd64", "env": {"GOOS": "plan9"}}])
        assert resolve_targets(cfg, {}, host)[0].env["GOOS"] == "linux"

    def test_target_env_overrides_global(self, host):
        cfg = _config(
            env={"CGO_ENABLED": "0"},
            targets=[{"os": "linux", "arch": "amd64", "env": {"CGO_ENABLED": "1"}}],
        )
        assert resolve_targets(cfg, {}, host)[0].env["CGO_ENABLED"] == "1"

    def test_implicit_target_adds_no_selectors(self, base_env, host):
        resolved = resolve_targets(_config(), base_env, host)[0]
        assert resolved.env == base_env

    def test_envs_are_independent(self, host):
        cfg = _config(
            targets=[
                {"os": "linux", "arch": "amd64", "env": {"CC": "musl-gcc"}},
                {"os": "darwin", "arch": "arm64"},
            ],
        )
        first, second = resolve_targets(cfg, {}, host)
        assert first.env["CC"] == "musl-gcc"
        assert "CC" not in second.env


class TestVerifyStatic:
    @pytest.mark.parametrize(
        ("global_flag", "override", "expected"),
        [
            (False, None, False),
            (True, None, True),
            (False, True, True),
            (True, False, False),
            (True, True, True),
            (False, False, False),
        ],
    )
    def test_override_precedence(self, host, global_flag, override, expected):
        target = {"os": "linux", "arch": "amd64"}
        if override is not None:
            target["verify_static"] = override
        cfg = _config(build={"verify_static": global_flag}, targets=[target])
        assert resolve_targets(cfg, {}, host)[0].verify_static is expected


class TestHostPlatform:
    def test_env_overrides_detection(self):
        host = HostPlatform.detect({"GOOS": "freebsd", "GOARCH": "riscv64"})
        assert host == HostPlatform("freebsd", "riscv64")

    def test_detect_maps_python_names(self, monkeypatch):
        monkeypatch.setattr(targets, "sys", SimpleNamespace(platform="win32"))
        monkeypatch.setattr(targets, "platform", SimpleNamespace(machine=lambda: "AMD64"))
        assert HostPlatform.detect({}) == HostPlatform("windows", "amd64")

    def test_detect_arm_mac(self, monkeypatch):
        monkeypatch.setattr(targets, "sys", SimpleNamespace(platform="darwin"))
        monkeypatch.setattr(targets, "platform", SimpleNamespace(machine=lambda: "arm64"))
        assert HostPlatform.detect() == HostPlatform("darwin", "arm64")
