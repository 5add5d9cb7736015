import logging
import shutil
import subprocess
import time
from collections.abc import Callable
from pathlib import Path
from typing import Any

from k8s_demo_install.errors import AdmissionWebhookError, KubectlError, ReadinessTimeoutError
from k8s_demo_install.install_config import RegistryCredentials

Runner = Callable[..., subprocess.CompletedProcess[str]]

WEBHOOK_ERROR_MARKERS = (
    "failed calling webhook",
    "admission webhook",
    "validate.nginx.ingress.kubernetes.io",
)

SECRET_FLAGS = ("--docker-password=",)


def mask_command(command: list[str]) -> list[str]:
    """Hide secret flag values before a command is logged."""
    masked = []
    for arg in command:
        for flag in SECRET_FLAGS:
            if arg.startswith(flag):
                value = arg[len(flag) :]
                arg = flag + (value[:3] + "*********" if len(value) > 3 else "***")
        masked.append(arg)
    return masked


def is_webhook_error(output: str) -> bool:
    lowered = output.lower()
    return any(marker in lowered for marker in WEBHOOK_ERROR_MARKERS)


class KubectlManager:
    """
    Thin wrapper around the kubectl CLI.

    Commands run through ``runner`` (``subprocess.run`` by default) with output
    captured as text, so tests can substitute a fake runner.

    Args:
        runner: Callable with the ``subprocess.run`` signature.
        kubectl: Name or path of the kubectl executable.
        sleep: Callable used for fixed settle delays.
        logger: Logger for command tracing.
    """

    def __init__(
        self,
        runner: Runner = subprocess.run,
        kubectl: str = "kubectl",
        sleep: Callable[[float], Any] = time.sleep,
        logger: logging.Logger | None = None,
    ):
        self.runner = runner
        self.kubectl = kubectl
        self.sleep = sleep
        self.logger = logger or logging.getLogger("k8s-demo")

    def is_available(self) -> bool:
        return shutil.which(self.kubectl) is not None

    def run(self, args: list[str], *, check: bool = True) -> subprocess.CompletedProcess[str]:
        """
        Run a kubectl command.

        Args:
            args: Arguments after the kubectl executable.
            check: Raise KubectlError on a non-zero exit status.

        Returns:
            subprocess.CompletedProcess: The finished process with text output.
        """
        command = [self.kubectl, *args]
        self.logger.debug(f"Running: {' '.join(mask_command(command))}")
        result = self.runner(command, capture_output=True, text=True, check=False)
        if result.returncode != 0:
            self.logger.debug(f"Exit code {result.returncode}: {result.stderr.strip()}")
            if check:
                raise KubectlError(mask_command(command), result.returncode, _output(result))
        return result

    def cluster_info(self) -> str:
        return self.run(["cluster-info"]).stdout

    def namespace_exists(self, namespace: str) -> bool:
        return self.run(["get", "namespace", namespace], check=False).returncode == 0

    def pods_exist(self, namespace: str, selector: str) -> bool:
        result = self.run(
            ["get", "pods", "-n", namespace, "-l", selector, "-o", "name"], check=False
        )
        return result.returncode == 0 and bool(result.stdout.strip())

    def apply(self, manifest: Path | str) -> str:
        """
        Apply a manifest file.

        Raises:
            AdmissionWebhookError: If the apply was rejected by an unreachable webhook.
            KubectlError: For any other failure.
        """
        command = ["apply", "-f", str(manifest)]
        result = self.run(command, check=False)
        if result.returncode != 0:
            output = _output(result)
            error_class = AdmissionWebhookError if is_webhook_error(output) else KubectlError
            raise error_class([self.kubectl, *command], result.returncode, output)
        return result.stdout

    def wait_for_ready(
        self, namespace: str, selector: str, timeout: int, settle_delay: float = 0.0
    ) -> None:
        """
        Block until every pod matching ``selector`` reports the ready condition.

        A single fixed settle delay is followed by one ``kubectl wait`` call.

        Raises:
            ReadinessTimeoutError: If the pods are not ready within ``timeout`` seconds.
        """
        if settle_delay > 0:
            self.sleep(settle_delay)

        command = [
            "wait",
            "--namespace",
            namespace,
            "--for=condition=ready",
            "pod",
            f"--selector={selector}",
            f"--timeout={timeout}s",
        ]
        result = self.run(command, check=False)
        if result.returncode != 0:
            raise ReadinessTimeoutError(
                [self.kubectl, *command], result.returncode, _output(result)
            )

    def delete(self, kind: str, name: str, namespace: str | None = None) -> None:
        command = ["delete", kind, name]
        if namespace:
            command.extend(["-n", namespace])
        command.append("--ignore-not-found=true")
        self.run(command)

    def create_docker_registry_secret(
        self, name: str, namespace: str, credentials: RegistryCredentials
    ) -> None:
        self.run([
            "create",
            "secret",
            "docker-registry",
            name,
            f"--docker-server={credentials.server}",
            f"--docker-username={credentials.username}",
            f"--docker-password={credentials.password}",
            f"--docker-email={credentials.email}",
            "-n",
            namespace,
        ])

    def get(self, kind: str, namespace: str) -> str:
        return self.run(["get", kind, "-n", namespace]).stdout


def _output(result: subprocess.CompletedProcess[str]) -> str:
    return "\n".join(part for part in (result.stderr, result.stdout) if part).strip()
