import pytest

from k8s_demo_install.errors import AdmissionWebhookError, KubectlError, ReadinessTimeoutError
from k8s_demo_install.kubectl_manager import is_webhook_error, mask_command


def test_mask_command_hides_password():
    masked = mask_command(["kubectl", "create", "--docker-password=hunter22", "--docker-username=bob"])
    assert masked == ["kubectl", "create", "--docker-password=hun*********", "--docker-username=bob"]


def test_mask_command_short_password():
    assert mask_command(["--docker-password=ab"]) == ["--docker-password=***"]


@pytest.mark.parametrize(
    "output, expected",
    [
        ('Internal error occurred: failed calling webhook "validate.nginx.ingress.kubernetes.io"', True),
        ("admission webhook denied the request", True),
        ("error: the path \"k8s/ingress.yaml\" does not exist", False),
    ],
)
def test_is_webhook_error(output, expected):
    assert is_webhook_error(output) is expected


def test_run_raises_with_output(runner, kubectl):
    runner.on("kubectl", "get", returncode=1, stderr="forbidden")

    with pytest.raises(KubectlError) as excinfo:
        kubectl.get("pods", "demo-app")

    assert excinfo.value.returncode == 1
    assert "forbidden" in str(excinfo.value)


def test_run_without_check_returns_result(runner, kubectl):
    runner.on("kubectl", "get", "namespace", returncode=1)
    assert kubectl.namespace_exists("missing") is False


def test_apply_classifies_webhook_failures(runner, kubectl):
    runner.on("kubectl", "apply", returncode=1, stderr="failed calling webhook")

    with pytest.raises(AdmissionWebhookError):
        kubectl.apply("k8s/ingress.yaml")


def test_wait_for_ready_sleeps_once_then_waits(runner, kubectl, sleeps):
    kubectl.wait_for_ready("ingress-nginx", "app.kubernetes.io/component=controller", 60, settle_delay=5)

    assert sleeps == [5]
    assert runner.kubectl_calls() == [[
        "wait",
        "--namespace",
        "ingress-nginx",
        "--for=condition=ready",
        "pod",
        "--selector=app.kubernetes.io/component=controller",
        "--timeout=60s",
    ]]


def test_wait_for_ready_timeout(runner, kubectl):
    runner.on("kubectl", "wait", returncode=1, stderr="timed out waiting for the condition")

    with pytest.raises(ReadinessTimeoutError):
        kubectl.wait_for_ready("demo-app", "app=api", 120)


def test_pods_exist_requires_output(runner, kubectl):
    runner.on("kubectl", "get", "pods", stdout="")
    assert kubectl.pods_exist("ingress-nginx", "app=x") is False


def test_delete_is_namespaced_and_tolerant(runner, kubectl):
    kubectl.delete("secret", "s", "demo-app")
    assert runner.kubectl_calls() == [["delete", "secret", "s", "-n", "demo-app", "--ignore-not-found=true"]]
