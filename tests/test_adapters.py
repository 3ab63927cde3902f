"""
Tests for adapter protocol, registry, mock, and tool adapters.

Tool adapters are exercised with subprocess.run patched out.
"""

import subprocess
from pathlib import Path
from types import SimpleNamespace

import pytest

from gobuilder.adapters.base import ExecutionContext
from gobuilder.adapters.containers import docker
from gobuilder.adapters.containers.docker import DockerAdapter, container_run_args
from gobuilder.adapters.inspect.static_link import Linkage, StaticLinkAdapter, classify_linkage
from gobuilder.adapters.mock import MockAdapter
from gobuilder.adapters.registry import AdapterRegistry, default_registry
from gobuilder.adapters.toolchain.go import GoBuildAdapter
from gobuilder.core.models.action import Action, Receipt
from gobuilder.core.models.config import ContainerSpec


class _FakeRun:
    """Stand-in for subprocess.run that records argv and kwargs."""

    def __init__(self, returncode=0, stdout="", stderr="", raises=None):
        self.returncode = returncode
        self.stdout = stdout
        self.stderr = stderr
        self.raises = raises
        self.calls: list[tuple[list[str], dict]] = []

    def __call__(self, argv, **kwargs):
        self.calls.append((argv, kwargs))
        if self.raises:
            raise self.raises
        return subprocess.CompletedProcess(argv, self.returncode, self.stdout, self.stderr)


def _which_only(program: str) -> SimpleNamespace:
    """A ``shutil`` stand-in that finds ``program`` and nothing else."""
    return SimpleNamespace(which=lambda name: f"/usr/bin/{name}" if name == program else None)


def _ctx(adapter: str, project_root: str = "/project", **params) -> ExecutionContext:
    action = Action(id=f"{adapter}:test", adapter=adapter, params=params)
    return ExecutionContext(action=action, project_root=project_root)


# ── Protocol Tests ───────────────────────────────────────────────────


class TestExecutionContext:
    def test_working_dir_defaults_to_root(self):
        assert _ctx("go").working_dir == "/project"

    def test_working_dir_override(self):
        assert _ctx("go", cwd="/elsewhere").working_dir == "/elsewhere"


# ── Mock Adapter Tests ───────────────────────────────────────────────


class TestMockAdapter:
    def test_default_success(self):
        mock = MockAdapter(adapter_name="go")
        receipt = mock.execute(_ctx("go"))
        assert receipt.ok
        assert receipt.return_code == 0
        assert mock.call_count == 1

    def test_custom_response(self):
        mock = MockAdapter()
        mock.set_response("mock:test", Receipt.success(adapter="mock", action_id="mock:test", output="custom"))
        assert mock.execute(_ctx("mock")).output == "custom"

    def test_set_failure(self):
        mock = MockAdapter()
        mock.set_failure("mock:test", error="Intentional failure", return_code=2)
        receipt = mock.execute(_ctx("mock"))
        assert receipt.failed
        assert receipt.return_code == 2
        assert "Intentional failure" in receipt.error

    def test_reset(self):
        mock = MockAdapter()
        mock.set_failure("mock:test")
        mock.execute(_ctx("mock"))
        mock.reset()
        assert mock.call_count == 0
        assert mock.execute(_ctx("mock")).ok

    def test_is_available(self):
        assert MockAdapter(available=True).is_available()
        assert not MockAdapter(available=False).is_available()


# ── Registry Tests ───────────────────────────────────────────────────


class _Exploding(MockAdapter):
    def execute(self, context):
        raise RuntimeError("boom")


class _Picky(MockAdapter):
    def validate(self, context):
        return False, "needs args"


class TestAdapterRegistry:
    def test_register_and_get(self):
        reg = AdapterRegistry()
        mock = MockAdapter(adapter_name="go")
        reg.register(mock)
        assert reg.get("go") is mock
        assert reg.names() == ["go"]
        assert reg.get("docker") is None

    def test_missing_adapter(self):
        receipt = AdapterRegistry().execute_action(Action(id="x", adapter="nope"))
        assert receipt.failed
        assert "No adapter registered for 'nope'" in receipt.error

    def test_validation_failure(self):
        reg = AdapterRegistry()
        reg.register(_Picky(adapter_name="go"))
        receipt = reg.execute_action(Action(id="x", adapter="go"))
        assert receipt.failed
        assert receipt.error == "Validation failed: needs args"

    def test_exception_becomes_receipt(self):
        reg = AdapterRegistry()
        reg.register(_Exploding(adapter_name="go"))
        receipt = reg.execute_action(Action(id="x", adapter="go"))
        assert receipt.failed
        assert "Unexpected error: boom" in receipt.error

    def test_project_root_passed(self):
        reg = AdapterRegistry()
        mock = MockAdapter(adapter_name="go")
        reg.register(mock)
        reg.execute_action(Action(id="x", adapter="go"), project_root="/src")
        assert mock.call_log[0].working_dir == "/src"

    def test_missing_tools(self):
        reg = AdapterRegistry()
        reg.register(MockAdapter(adapter_name="go"))
        reg.register(MockAdapter(adapter_name="docker", available=False))
        assert reg.missing_tools(["go", "docker", "static-link"]) == ["docker", "static-link"]

    def test_missing_tools_with_configured_program(self):
        class _OnlyDocker(MockAdapter):
            def is_available(self, program=None):
                return program in (None, "docker")

        reg = AdapterRegistry()
        reg.register(_OnlyDocker(adapter_name="docker"))
        assert reg.missing_tools(["docker"]) == []
        assert reg.missing_tools(["docker"], {"docker": "docker"}) == []
        assert reg.missing_tools(["docker"], {"docker": "podman"}) == ["docker"]

    def test_duration_stamped_on_scripted_copy(self):
        reg = AdapterRegistry()
        mock = MockAdapter(adapter_name="go")
        scripted = Receipt.success(adapter="go", action_id="x")
        mock.set_response("x", scripted)
        reg.register(mock)
        receipt = reg.execute_action(Action(id="x", adapter="go"))
        assert receipt.ok
        assert receipt is not scripted

    def test_default_registry(self):
        assert default_registry().names() == ["docker", "go", "static-link"]


# ── Go toolchain ─────────────────────────────────────────────────────


class TestGoBuildAdapter:
    def test_validate_requires_args(self):
        ok, msg = GoBuildAdapter().validate(_ctx("go"))
        assert not ok
        assert "args" in msg

    def test_validate_env_mapping(self):
        ok, _ = GoBuildAdapter().validate(_ctx("go", args=["build"], env=["A=1"]))
        assert not ok

    def test_success(self, monkeypatch):
        fake = _FakeRun()
        monkeypatch.setattr(subprocess, "run", fake)
        receipt = GoBuildAdapter().execute(
            _ctx("go", args=["build", "-o", "app", "."], env={"GOOS": "linux"}, output_path="app")
        )
        assert receipt.ok
        argv, kwargs = fake.calls[0]
        assert argv == ["go", "build", "-o", "app", "."]
        assert kwargs["cwd"] == "/project"
        assert kwargs["env"] == {"GOOS": "linux"}
        assert receipt.metadata["output_path"] == "app"

    def test_nonzero_exit(self, monkeypatch):
        monkeypatch.setattr(subprocess, "run", _FakeRun(returncode=2))
        receipt = GoBuildAdapter().execute(_ctx("go", args=["build", "."]))
        assert receipt.failed
        assert receipt.return_code == 2
        assert receipt.error == "go exited with code 2"

    def test_missing_compiler(self, monkeypatch):
        monkeypatch.setattr(subprocess, "run", _FakeRun(raises=FileNotFoundError("go")))
        receipt = GoBuildAdapter().execute(_ctx("go", program="go1.22", args=["build", "."]))
        assert receipt.failed
        assert receipt.error.startswith("Cannot start go1.22")


# ── Container runtime ────────────────────────────────────────────────


class TestContainerRunArgs:
    def test_layout(self):
        spec = ContainerSpec(image="golang:1.22", workdir="/src")
        args = container_run_args(spec, {"B": "2", "A": "1"}, "/home/dev/app", ["make deps", "go-builder build"])
        assert args == [
            "run", "--rm",
            "-w", "/src",
            "-v", "/home/dev/app:/src",
            "-e", "A=1",
            "-e", "B=2",
            "golang:1.22", "sh", "-c", "make deps && go-builder build",
        ]

    def test_defaults(self):
        args = container_run_args(ContainerSpec(), {}, "/p", ["true"])
        assert args == ["run", "--rm", "-w", "/work", "-v", "/p:/work", "docker.io/golang:latest", "sh", "-c", "true"]


class TestDockerAdapter:
    def test_validate_only_run(self):
        ok, msg = DockerAdapter().validate(_ctx("docker", args=["exec", "x"]))
        assert not ok
        assert "Unsupported" in msg

    def test_validate_requires_args(self):
        ok, _ = DockerAdapter().validate(_ctx("docker"))
        assert not ok

    def test_runtime_used(self, monkeypatch):
        fake = _FakeRun()
        monkeypatch.setattr(subprocess, "run", fake)
        receipt = DockerAdapter().execute(_ctx("docker", runtime="podman", args=["run", "img"]))
        assert receipt.ok
        assert fake.calls[0][0] == ["podman", "run", "img"]

    def test_nonzero_exit(self, monkeypatch):
        monkeypatch.setattr(subprocess, "run", _FakeRun(returncode=125))
        receipt = DockerAdapter().execute(_ctx("docker", args=["run", "img"]))
        assert receipt.failed
        assert receipt.error == "docker run exited with code 125"
        assert receipt.return_code == 125

    def test_configured_runtime_must_exist(self, monkeypatch):
        monkeypatch.setattr(docker, "shutil", _which_only("docker"))
        adapter = DockerAdapter()
        assert adapter.is_available()
        assert adapter.is_available("docker")
        assert not adapter.is_available("podman")

    def test_any_runtime_when_unconfigured(self, monkeypatch):
        monkeypatch.setattr(docker, "shutil", _which_only("podman"))
        assert DockerAdapter().is_available()


# ── Static-link inspection ───────────────────────────────────────────


class TestClassifyLinkage:
    @pytest.mark.parametrize(
        ("description", "expected"),
        [
            ("ELF 64-bit LSB executable, x86-64, version 1 (SYSV), statically linked, stripped", Linkage.STATIC),
            ("ELF 64-bit LSB pie executable, x86-64, static-pie linked, stripped", Linkage.STATIC),
            (
                "ELF 64-bit LSB executable, x86-64, dynamically linked, "
                "interpreter /lib64/ld-linux-x86-64.so.2, stripped",
                Linkage.DYNAMIC,
            ),
            ("PE32+ executable (console) x86-64, for MS Windows", Linkage.UNKNOWN),
            ("Mach-O 64-bit arm64 executable", Linkage.UNKNOWN),
        ],
    )
    def test_classify(self, description, expected):
        assert classify_linkage(description) is expected


class TestStaticLinkAdapter:
    def _artifact(self, tmp_path: Path) -> Path:
        path = tmp_path / "builds" / "app"
        path.parent.mkdir()
        path.write_bytes(b"\x7fELF")
        return path

    def test_validate_missing_artifact(self, tmp_path):
        ok, msg = StaticLinkAdapter().validate(_ctx("static-link", str(tmp_path), path="builds/app"))
        assert not ok
        assert "Artifact not found" in msg

    def test_validate_relative_to_root(self, tmp_path):
        self._artifact(tmp_path)
        ok, _ = StaticLinkAdapter().validate(_ctx("static-link", str(tmp_path), path="builds/app"))
        assert ok

    def test_static(self, tmp_path, monkeypatch):
        self._artifact(tmp_path)
        fake = _FakeRun(stdout="ELF 64-bit LSB executable, statically linked\n")
        monkeypatch.setattr(subprocess, "run", fake)
        receipt = StaticLinkAdapter().execute(_ctx("static-link", str(tmp_path), path="builds/app"))
        assert receipt.ok
        assert receipt.metadata == {"path": "builds/app", "linkage": "static"}
        assert receipt.output == "ELF 64-bit LSB executable, statically linked"
        assert fake.calls[0][0] == ["file", "--brief", "builds/app"]

    def test_dynamic(self, tmp_path, monkeypatch):
        monkeypatch.setattr(subprocess, "run", _FakeRun(stdout="ELF, dynamically linked"))
        receipt = StaticLinkAdapter().execute(_ctx("static-link", str(tmp_path), path="builds/app"))
        assert receipt.metadata["linkage"] == "dynamic"

    def test_tool_failure(self, tmp_path, monkeypatch):
        monkeypatch.setattr(subprocess, "run", _FakeRun(returncode=1, stderr="cannot open"))
        receipt = StaticLinkAdapter().execute(_ctx("static-link", str(tmp_path), path="builds/app"))
        assert receipt.failed
        assert receipt.error == "cannot open"

    def test_tool_missing(self, tmp_path, monkeypatch):
        monkeypatch.setattr(subprocess, "run", _FakeRun(raises=FileNotFoundError("file")))
        receipt = StaticLinkAdapter().execute(_ctx("static-link", str(tmp_path), path="builds/app"))
        assert receipt.failed
        assert receipt.error.startswith("Cannot inspect builds/app")
