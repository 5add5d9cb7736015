import shutil

import pytest

from k8s_demo_install.errors import PreflightError
from k8s_demo_install.preflight import (
    check_cluster,
    check_kubectl,
    run_preflight,
    verify_api_image,
    verify_nginx_ingress,
)


def _which(*available):
    return lambda name: f"/usr/bin/{name}" if name in available else None


def test_missing_kubectl_fails_fast(monkeypatch, kubectl):
    monkeypatch.setattr(shutil, "which", _which())

    with pytest.raises(PreflightError, match="kubectl is not installed"):
        check_kubectl(kubectl)


def test_unreachable_cluster_fails_fast(runner, kubectl):
    runner.on("kubectl", "cluster-info", returncode=1, stderr="connection refused")

    with pytest.raises(PreflightError, match="Cannot connect"):
        check_cluster(kubectl)


def test_cluster_info_first_line_printed(runner, kubectl, capsys):
    runner.on("kubectl", "cluster-info", stdout="Kubernetes control plane is running\nCoreDNS is running\n")

    check_cluster(kubectl)

    out = capsys.readouterr().out
    assert "Kubernetes control plane is running" in out
    assert "CoreDNS" not in out


def test_preflight_stops_before_advisory_checks(monkeypatch, runner, kubectl, install_config):
    monkeypatch.setattr(shutil, "which", _which())

    with pytest.raises(PreflightError):
        run_preflight(kubectl, install_config)

    assert runner.calls == []


def test_api_image_found_with_docker(monkeypatch, runner, kubectl, install_config):
    monkeypatch.setattr(shutil, "which", _which("docker"))
    runner.on(
        "docker",
        "images",
        stdout="REPOSITORY     TAG      IMAGE ID\nk8s-api-demo   latest   abc123\n",
    )

    assert verify_api_image(kubectl, install_config) is True


def test_api_image_missing_is_only_a_warning(monkeypatch, runner, kubectl, install_config, capsys):
    monkeypatch.setattr(shutil, "which", _which("nerdctl"))
    runner.on("nerdctl", stdout="REPOSITORY   TAG   IMAGE ID\nnginx   latest   123\n")

    assert verify_api_image(kubectl, install_config) is False
    assert "not found locally" in capsys.readouterr().out


def test_nginx_ingress_missing(runner, kubectl, capsys):
    runner.on("kubectl", "get", "namespace", "ingress-nginx", returncode=1)

    assert verify_nginx_ingress(kubectl) is False
    assert "kubectl apply -f https://" in capsys.readouterr().out


def test_nginx_ingress_present(runner, kubectl):
    runner.on("kubectl", "get", "pods", stdout="pod/ingress-nginx-controller-abc\n")

    assert verify_nginx_ingress(kubectl) is True
