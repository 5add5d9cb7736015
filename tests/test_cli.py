import json
import shutil

import pytest

from k8s_demo_install import cleanup, fix_ingress, hosts_manager, install
from k8s_demo_install.errors import ReadinessTimeoutError
from k8s_demo_install.hosts_manager import HostsFileManager
from k8s_demo_install.kubectl_manager import KubectlManager


@pytest.fixture
def only_kubectl(monkeypatch):
    monkeypatch.setattr(shutil, "which", lambda name: "/usr/bin/kubectl" if name == "kubectl" else None)


@pytest.fixture
def config_file(tmp_path):
    path = tmp_path / "install.json"
    path.write_text(json.dumps({
        "env_file": str(tmp_path / ".env"),
        "hosts_file": str(tmp_path / "hosts"),
        "manifests_dir": "k8s",
    }))
    (tmp_path / "hosts").write_text("127.0.0.1 localhost\n")
    return path


@pytest.fixture
def patched_kubectl(monkeypatch, runner, sleeps):
    def _factory(logger=None):
        return KubectlManager(runner=runner, sleep=sleeps.append, logger=logger)

    for module in (install, cleanup, fix_ingress):
        monkeypatch.setattr(module, "KubectlManager", _factory)


class TestInstall:
    def test_full_install_configures_hosts_and_reports(
        self, only_kubectl, patched_kubectl, runner, config_file, tmp_path, capsys
    ):
        exit_code = install.main(["--config-file", str(config_file)])

        assert exit_code == 0
        assert "127.0.0.1 api.local" in (tmp_path / "hosts").read_text()
        gets = [call for call in runner.kubectl_calls() if call[:1] == ["get"]]
        assert ["get", "pods", "-n", "demo-app"] in gets
        assert ["get", "ingress", "-n", "demo-app"] in gets
        assert "Deployment Complete!" in capsys.readouterr().out

    def test_second_install_keeps_single_hosts_entry(
        self, only_kubectl, patched_kubectl, config_file, tmp_path
    ):
        assert install.main(["-c", str(config_file)]) == 0
        assert install.main(["-c", str(config_file)]) == 0

        entries = [line for line in (tmp_path / "hosts").read_text().splitlines() if "api.local" in line]
        assert entries == ["127.0.0.1 api.local"]

    def test_readiness_timeout_exits_non_zero(
        self, only_kubectl, patched_kubectl, runner, config_file, capsys
    ):
        runner.on("kubectl", "wait", returncode=1, stderr="timed out waiting for the condition")

        assert install.main(["-c", str(config_file)]) == 1
        assert "timed out" in capsys.readouterr().err

    def test_failed_hosts_update_is_reported_as_deployment_error(
        self, monkeypatch, only_kubectl, patched_kubectl, runner, config_file, capsys
    ):
        def _denied(*args, **kwargs):
            raise PermissionError("read-only")

        def _hosts(path, logger=None):
            return HostsFileManager(path, runner=runner, logger=logger)

        monkeypatch.setattr(hosts_manager, "open", _denied, raising=False)
        monkeypatch.setattr(install, "HostsFileManager", _hosts)
        runner.on("sudo", "tee", returncode=1, stderr="sudo: a password is required")

        assert install.main(["-c", str(config_file)]) == 1
        err = capsys.readouterr().err
        assert "a password is required" in err
        assert "Unexpected Error" not in err

    def test_missing_kubectl_exits_non_zero(self, monkeypatch, patched_kubectl, runner, config_file):
        monkeypatch.setattr(shutil, "which", lambda name: None)

        assert install.main(["-c", str(config_file)]) == 1
        assert runner.calls == []

    def test_missing_config_file(self, tmp_path):
        assert install.main(["-c", str(tmp_path / "nope.json")]) == 1


class TestCleanup:
    def test_declining_both_prompts_only_deletes_namespace(
        self, monkeypatch, runner, kubectl, install_config
    ):
        install_config.hosts_file.write_text("127.0.0.1 api.local\n")
        monkeypatch.setattr("builtins.input", lambda prompt: "n")

        cleanup.run_cleanup(install_config, kubectl, HostsFileManager(install_config.hosts_file))

        assert runner.kubectl_calls() == [["delete", "namespace", "demo-app", "--ignore-not-found=true"]]
        assert install_config.hosts_file.read_text() == "127.0.0.1 api.local\n"

    def test_accepting_prompts_removes_ingress_and_hosts_entry(
        self, monkeypatch, runner, kubectl, install_config
    ):
        install_config.hosts_file.write_text("127.0.0.1 localhost\n127.0.0.1 api.local\n")
        answers = iter(["y", "Y"])
        monkeypatch.setattr("builtins.input", lambda prompt: next(answers))

        cleanup.run_cleanup(install_config, kubectl, HostsFileManager(install_config.hosts_file))

        assert runner.kubectl_calls() == [
            ["delete", "namespace", "demo-app", "--ignore-not-found=true"],
            ["delete", "namespace", "ingress-nginx", "--ignore-not-found=true"],
        ]
        assert install_config.hosts_file.read_text() == "127.0.0.1 localhost\n"

    def test_yes_flag_skips_prompts(self, monkeypatch, patched_kubectl, runner, config_file):
        def _no_input(prompt):
            raise AssertionError("prompted")

        monkeypatch.setattr("builtins.input", _no_input)

        assert cleanup.main(["-c", str(config_file), "--yes"]) == 0
        assert ["delete", "namespace", "ingress-nginx", "--ignore-not-found=true"] in runner.kubectl_calls()


class TestFixIngress:
    def test_waits_for_controller_then_applies(self, runner, kubectl, sleeps, install_config):
        removed = fix_ingress.run_fix(install_config, kubectl)

        assert removed is False
        assert runner.kubectl_calls()[0][:4] == ["wait", "--namespace", "ingress-nginx", "--for=condition=ready"]
        assert runner.kubectl_calls()[-1] == ["apply", "-f", "k8s/ingress.yaml"]
        assert sleeps == [5.0]

    def test_controller_timeout_is_fatal(self, runner, kubectl, install_config):
        runner.on("kubectl", "wait", returncode=1, stderr="timed out waiting for the condition")

        with pytest.raises(ReadinessTimeoutError):
            fix_ingress.run_fix(install_config, kubectl)

        assert all(call[0] != "apply" for call in runner.kubectl_calls())

    def test_main_reports_failure(self, patched_kubectl, runner, config_file):
        runner.on("kubectl", "wait", returncode=1, stderr="no matching resources found")

        assert fix_ingress.main(["-c", str(config_file)]) == 1
