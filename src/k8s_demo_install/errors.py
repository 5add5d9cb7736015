class DeploymentError(Exception):
    """Base class for failures that abort a deployment run."""


class PreflightError(DeploymentError):
    """The kubectl binary or the cluster is not reachable."""


class KubectlError(DeploymentError):
    """A kubectl command exited with a non-zero status."""

    def __init__(self, command: list[str], returncode: int, output: str = ""):
        self.command = command
        self.returncode = returncode
        self.output = output.strip()
        message = f"'{' '.join(command)}' failed with exit code {returncode}"
        if self.output:
            message = f"{message}: {self.output}"
        super().__init__(message)


class ReadinessTimeoutError(KubectlError):
    """Pods matching a selector did not become ready before the timeout."""


class AdmissionWebhookError(KubectlError):
    """An apply was rejected because the admission webhook could not be called."""


class HostsFileError(DeploymentError):
    """The hosts file could not be updated, even through sudo."""
