import subprocess
from pathlib import Path

import pytest

from k8s_demo_install.install_config import InstallConfig
from k8s_demo_install.kubectl_manager import KubectlManager


class FakeRunner:
    """Stands in for subprocess.run: records commands and replays canned results."""

    def __init__(self):
        self.calls: list[list[str]] = []
        self.inputs: list[str | None] = []
        self._rules: list[dict] = []

    def on(self, *prefix: str, returncode: int = 0, stdout: str = "", stderr: str = "", times=None):
        self._rules.append({
            "prefix": list(prefix),
            "returncode": returncode,
            "stdout": stdout,
            "stderr": stderr,
            "times": times,
        })
        return self

    def __call__(self, command, **kwargs):
        command = list(command)
        self.calls.append(command)
        self.inputs.append(kwargs.get("input"))
        for rule in self._rules:
            prefix = rule["prefix"]
            if command[: len(prefix)] != prefix:
                continue
            if rule["times"] is not None:
                if rule["times"] == 0:
                    continue
                rule["times"] -= 1
            result = subprocess.CompletedProcess(
                command, rule["returncode"], rule["stdout"], rule["stderr"]
            )
            if kwargs.get("check"):
                result.check_returncode()
            return result
        return subprocess.CompletedProcess(command, 0, "", "")

    def kubectl_calls(self) -> list[list[str]]:
        return [call[1:] for call in self.calls if call and call[0] == "kubectl"]


@pytest.fixture
def runner() -> FakeRunner:
    return FakeRunner()


@pytest.fixture
def sleeps() -> list[float]:
    return []


@pytest.fixture
def kubectl(runner, sleeps) -> KubectlManager:
    return KubectlManager(runner=runner, sleep=sleeps.append)


@pytest.fixture
def install_config(tmp_path: Path) -> InstallConfig:
    return InstallConfig(
        env_file=tmp_path / ".env",
        hosts_file=tmp_path / "hosts",
        manifests_dir=Path("k8s"),
    )
