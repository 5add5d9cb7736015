#!/usr/bin/env python3
"""
Install Configuration

Data model for deploying the K8s API demo. Defaults are fixed constants; a JSON
file can override any of them. Registry credentials come from an optional
dotenv file.
"""

import argparse
import json
import os
import sys
from dataclasses import asdict, dataclass, field, fields
from pathlib import Path
from typing import Any

from dotenv import dotenv_values

from k8s_demo_install.console import print_error

DEFAULT_REGISTRY_SERVER = "https://index.docker.io/v1/"
DEFAULT_REGISTRY_EMAIL = "noreply@example.com"

INGRESS_NGINX_NAMESPACE = "ingress-nginx"
INGRESS_CONTROLLER_SELECTOR = "app.kubernetes.io/component=controller"
INGRESS_WEBHOOK_CONFIGURATION = "ingress-nginx-admission"
INGRESS_NGINX_MANIFEST_URL = (
    "https://raw.githubusercontent.com/kubernetes/ingress-nginx/"
    "controller-v1.9.5/deploy/static/provider/cloud/deploy.yaml"
)


@dataclass
class DeploymentStep:
    """A manifest to apply and, optionally, the pods to wait for afterwards."""

    name: str
    manifest: Path
    namespace: str
    selector: str | None = None
    timeout: int = 120
    settle_delay: float = 0.0


@dataclass
class RegistryCredentials:
    username: str
    password: str
    server: str = DEFAULT_REGISTRY_SERVER
    email: str = DEFAULT_REGISTRY_EMAIL


@dataclass
class InstallConfig:
    """Main configuration dataclass for the demo installation."""

    namespace: str = "demo-app"
    api_image_name: str = "k8s-api-demo:latest"
    ingress_host: str = "api.local"
    loopback_address: str = "127.0.0.1"
    env_file: Path = field(default_factory=lambda: Path(".env"))
    docker_secret_name: str = "docker-registry-secret"
    manifests_dir: Path = field(default_factory=lambda: Path("k8s"))
    hosts_file: Path = field(default_factory=lambda: Path("/etc/hosts"))
    workload_timeout: int = 120
    workload_settle_delay: float = 5.0
    ingress_timeout: int = 60
    webhook_settle_delay: float = 5.0
    webhook_delete_delay: float = 2.0

    @property
    def api_image_repository(self) -> str:
        return self.api_image_name.split(":", 1)[0]

    def manifest(self, filename: str) -> Path:
        return self.manifests_dir / filename

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "InstallConfig":
        """Create InstallConfig from dictionary, rejecting unknown keys."""
        known = {f.name for f in fields(cls)}
        unknown = sorted(set(data) - known)
        if unknown:
            raise KeyError(f"Unknown configuration keys: {', '.join(unknown)}")

        values = dict(data)
        for path_key in ("env_file", "manifests_dir", "hosts_file"):
            if path_key in values:
                values[path_key] = Path(values[path_key])
        return cls(**values)

    def to_dict(self) -> dict[str, Any]:
        """Convert InstallConfig to a JSON-serialisable dictionary."""
        result = asdict(self)
        for key, value in result.items():
            if isinstance(value, Path):
                result[key] = str(value)
        return result


def deployment_steps(config: InstallConfig) -> list[DeploymentStep]:
    """
    The ordered manifests applied by the installer.

    The registry secret is created between the namespace and database steps and
    is not a manifest, so it does not appear here.
    """
    return [
        DeploymentStep("namespace", config.manifest("namespace.yaml"), config.namespace),
        DeploymentStep(
            "mongodb",
            config.manifest("mongodb.yaml"),
            config.namespace,
            selector="app=mongodb",
            timeout=config.workload_timeout,
            settle_delay=config.workload_settle_delay,
        ),
        DeploymentStep(
            "api",
            config.manifest("api.yaml"),
            config.namespace,
            selector="app=api",
            timeout=config.workload_timeout,
            settle_delay=config.workload_settle_delay,
        ),
        DeploymentStep("ingress", config.manifest("ingress.yaml"), config.namespace),
    ]


def load_registry_credentials(env_file: str | Path) -> RegistryCredentials | None:
    """
    Read Docker registry credentials from a dotenv file.

    Values missing from the file fall back to the process environment.

    Returns:
        RegistryCredentials | None: None when the file does not exist or the
            username or password is missing.
    """
    env_path = Path(env_file)
    if not env_path.is_file():
        return None

    values = dotenv_values(env_path)

    def _value(key: str) -> str | None:
        return values.get(key) or os.getenv(key) or None

    username = _value("DOCKER_USERNAME")
    password = _value("DOCKER_PASSWORD")
    if not username or not password:
        return None

    return RegistryCredentials(
        username=username,
        password=password,
        server=_value("DOCKER_REGISTRY_SERVER") or DEFAULT_REGISTRY_SERVER,
        email=_value("DOCKER_EMAIL") or DEFAULT_REGISTRY_EMAIL,
    )


def get_config(config_file: str | None = None) -> InstallConfig:
    """
    Load the install configuration.

    Args:
        config_file: Optional path to a JSON file overriding the defaults

    Returns:
        InstallConfig: Configuration object

    Raises:
        FileNotFoundError: If config file doesn't exist
        json.JSONDecodeError: If config file is not valid JSON
        KeyError: If the config file contains unknown keys
    """
    if config_file is None:
        return InstallConfig()

    config_path = Path(config_file)
    if not config_path.exists():
        raise FileNotFoundError(f"Configuration file not found: {config_file}")

    with open(config_path) as f:
        data = json.load(f)

    return InstallConfig.from_dict(data)


def print_config(config: InstallConfig) -> None:
    print("=" * 60)
    print("K8s API Demo Install Configuration")
    print("=" * 60)

    print("\n📦 Cluster:")
    print(f"  Namespace: {config.namespace}")
    print(f"  API Image: {config.api_image_name}")
    print(f"  Manifests: {config.manifests_dir}")
    print(f"  Workload Timeout: {config.workload_timeout}s")
    print(f"  Workload Settle Delay: {config.workload_settle_delay}s")
    print(f"  Ingress Timeout: {config.ingress_timeout}s")

    print("\n🌐 Routing:")
    print(f"  Ingress Host: {config.ingress_host}")
    print(f"  Hosts File: {config.hosts_file}")

    print("\n🔐 Registry:")
    print(f"  Env File: {config.env_file}")
    print(f"  Secret Name: {config.docker_secret_name}")


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="K8s API Demo Configuration",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument(
        "--config-file",
        "-c",
        default=None,
        help="Path to JSON configuration file overriding the defaults",
    )
    return parser.parse_args(argv)


def main(argv: list[str] | None = None) -> int:
    """
    Print the effective install configuration.

    Returns:
        int: Exit code (0 for success, 1 for error)
    """
    try:
        print_config(get_config(parse_args(argv).config_file))
        return 0
    except FileNotFoundError as e:
        print_error(f"Configuration file not found: {e}")
        return 1
    except (KeyError, ValueError) as e:
        print_error(f"Invalid configuration: {e}")
        return 1


if __name__ == "__main__":
    sys.exit(main())
