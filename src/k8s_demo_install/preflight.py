import shutil

from k8s_demo_install.console import print_info, print_success, print_warning
from k8s_demo_install.errors import KubectlError, PreflightError
from k8s_demo_install.install_config import (
    INGRESS_CONTROLLER_SELECTOR,
    INGRESS_NGINX_MANIFEST_URL,
    INGRESS_NGINX_NAMESPACE,
    InstallConfig,
)
from k8s_demo_install.kubectl_manager import KubectlManager


def check_kubectl(kubectl: KubectlManager) -> None:
    print_info("Checking if kubectl is available...")
    if not kubectl.is_available():
        raise PreflightError("kubectl is not installed or not in PATH")
    print_success("kubectl is available")


def check_cluster(kubectl: KubectlManager) -> None:
    print_info("Checking Kubernetes cluster connectivity...")
    try:
        info = kubectl.cluster_info()
    except KubectlError as e:
        raise PreflightError(
            "Cannot connect to Kubernetes cluster. "
            "Make sure Rancher Desktop is running and Kubernetes is enabled"
        ) from e
    print_success("Connected to Kubernetes cluster")
    first_line = info.strip().splitlines()[0] if info.strip() else ""
    if first_line:
        print(first_line)


def verify_api_image(kubectl: KubectlManager, config: InstallConfig) -> bool:
    """
    Look for the API image in the local container runtime.

    A missing image is only a warning: the cluster may still be able to pull it.
    """
    print_info("Verifying API Docker image exists...")

    # Rancher Desktop keeps Kubernetes images in the k8s.io nerdctl namespace
    candidates = [
        ("nerdctl", ["nerdctl", "-n", "k8s.io", "images"], config.api_image_name),
        ("docker", ["docker", "images"], config.api_image_repository),
    ]
    for tool, command, needle in candidates:
        if shutil.which(tool) is None:
            continue
        try:
            result = kubectl.runner(command, capture_output=True, text=True, check=False)
        except OSError as e:
            kubectl.logger.debug(f"{tool} images failed: {e}")
            continue
        if result.returncode == 0 and _image_listed(result.stdout, needle):
            print_success(f"API image found ({tool})")
            return True

    print_warning(f"API image '{config.api_image_name}' not found locally")
    print_info("Assuming image will be pulled or is available in the cluster")
    return False


def _image_listed(listing: str, image: str) -> bool:
    repository, _, tag = image.partition(":")
    for line in listing.splitlines():
        columns = line.split()
        if len(columns) < 2 or not columns[0].endswith(repository):
            continue
        if not tag or columns[1] == tag:
            return True
    return False


def verify_nginx_ingress(kubectl: KubectlManager) -> bool:
    print_info("Verifying NGINX Ingress Controller...")

    if not kubectl.namespace_exists(INGRESS_NGINX_NAMESPACE):
        print_warning("NGINX Ingress Controller not found - please install it manually")
        print_info(f"Run: kubectl apply -f {INGRESS_NGINX_MANIFEST_URL}")
        return False

    if kubectl.pods_exist(INGRESS_NGINX_NAMESPACE, INGRESS_CONTROLLER_SELECTOR):
        print_success("NGINX Ingress Controller is present")
        return True

    print_warning("NGINX Ingress namespace exists but controller not found")
    return False


def run_preflight(kubectl: KubectlManager, config: InstallConfig) -> None:
    """
    Fail fast when kubectl or the cluster is unreachable, then run advisory checks.

    Raises:
        PreflightError: If kubectl is missing or the cluster cannot be reached.
    """
    check_kubectl(kubectl)
    check_cluster(kubectl)
    verify_api_image(kubectl, config)
    verify_nginx_ingress(kubectl)
