from k8s_demo_install.console import print_info, print_success, print_warning
from k8s_demo_install.errors import AdmissionWebhookError
from k8s_demo_install.install_config import (
    INGRESS_WEBHOOK_CONFIGURATION,
    DeploymentStep,
    InstallConfig,
    deployment_steps,
    load_registry_credentials,
)
from k8s_demo_install.kubectl_manager import KubectlManager


def apply_ingress_with_webhook_recovery(
    kubectl: KubectlManager, manifest: str, delete_delay: float = 2.0
) -> bool:
    """
    Apply the ingress manifest, removing the NGINX admission webhook once if it
    rejects the apply.

    Only for development clusters: the retry runs without ingress validation.

    Returns:
        bool: True if the webhook configuration had to be removed.

    Raises:
        KubectlError: If the first apply fails for another reason, or the retry fails.
    """
    try:
        kubectl.apply(manifest)
        return False
    except AdmissionWebhookError as e:
        print_warning("Ingress admission webhook is not ready, applying workaround...")
        kubectl.logger.debug(f"Webhook failure: {e.output}")

    kubectl.delete("validatingwebhookconfiguration", INGRESS_WEBHOOK_CONFIGURATION)
    print_info("Waiting a moment...")
    kubectl.sleep(delete_delay)

    kubectl.apply(manifest)
    print_warning("The validation webhook was removed. This is only safe for development.")
    return True


class ResourceDeployer:
    """
    Apply the demo manifests in dependency order, waiting for each workload.

    Order: namespace, registry secret, MongoDB, API, ingress. Every apply is
    idempotent so re-running the installer converges on the same resources.
    """

    def __init__(self, kubectl: KubectlManager, config: InstallConfig):
        self.kubectl = kubectl
        self.config = config
        self.steps = {step.name: step for step in deployment_steps(config)}

    def deploy(self) -> None:
        self.ensure_namespace()
        self.create_docker_secret()
        self.deploy_workload(self.steps["mongodb"], "MongoDB")
        self.deploy_workload(self.steps["api"], "API")
        self.deploy_ingress()

    def ensure_namespace(self) -> None:
        namespace = self.config.namespace
        print_info("Verifying namespace exists...")
        if self.kubectl.namespace_exists(namespace):
            print_success(f"Namespace '{namespace}' exists")
            return

        print_warning(f"Namespace '{namespace}' not found, creating it...")
        self.kubectl.apply(self.steps["namespace"].manifest)
        print_success("Namespace created")

    def create_docker_secret(self) -> bool:
        """
        Create the registry pull secret from the dotenv file.

        Returns:
            bool: False if the step was skipped.
        """
        print_info("Creating Docker registry secret...")
        env_file = self.config.env_file

        if not env_file.is_file():
            print_warning(f"{env_file} file not found - skipping Docker registry secret creation")
            print_info("To pull images from a private registry, create a .env file with:")
            print_info("  DOCKER_REGISTRY_SERVER=https://index.docker.io/v1/")
            print_info("  DOCKER_USERNAME=your-username")
            print_info("  DOCKER_PASSWORD=your-password")
            print_info("  DOCKER_EMAIL=your-email@example.com")
            return False

        credentials = load_registry_credentials(env_file)
        if credentials is None:
            print_warning(f"DOCKER_USERNAME or DOCKER_PASSWORD not set in {env_file}")
            print_info("Skipping Docker registry secret creation")
            return False

        self.kubectl.delete("secret", self.config.docker_secret_name, self.config.namespace)
        self.kubectl.create_docker_registry_secret(
            self.config.docker_secret_name, self.config.namespace, credentials
        )
        print_success("Docker registry secret created")
        return True

    def deploy_workload(self, step: DeploymentStep, label: str) -> None:
        print_info(f"Deploying {label}...")
        self.kubectl.apply(step.manifest)

        if step.selector:
            print_info(f"Waiting for {label} to be ready...")
            self.kubectl.wait_for_ready(
                step.namespace, step.selector, step.timeout, settle_delay=step.settle_delay
            )
        print_success(f"{label} is ready")

    def deploy_ingress(self) -> None:
        print_info("Deploying Ingress...")
        apply_ingress_with_webhook_recovery(
            self.kubectl,
            str(self.steps["ingress"].manifest),
            delete_delay=self.config.webhook_delete_delay,
        )
        print_success("Ingress deployed")
