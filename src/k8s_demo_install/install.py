#!/usr/bin/env python3
"""
Deploy the K8s API demo (MongoDB, API, NGINX Ingress) onto a local cluster.

Run from the repository root so the default ``k8s/`` manifests and ``.env``
file are found.
"""

import argparse
import sys

from k8s_demo_install.console import (
    print_error,
    print_header,
    print_info,
    print_success,
    print_warning,
)
from k8s_demo_install.deployer import ResourceDeployer
from k8s_demo_install.errors import DeploymentError
from k8s_demo_install.hosts_manager import HostsFileManager
from k8s_demo_install.install_config import InstallConfig, get_config
from k8s_demo_install.kubectl_manager import KubectlManager
from k8s_demo_install.preflight import run_preflight
from k8s_demo_install.status_reporter import print_access_info, show_status
from k8s_demo_shared.platform_manager import create_logger


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    """
    Parse command line arguments for the installer.

    Returns:
        argparse.Namespace: Parsed arguments
    """
    parser = argparse.ArgumentParser(
        description="K8s API Demo - Installation Script",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument(
        "--config-file",
        "-c",
        default=None,
        help="Path to JSON configuration file overriding the defaults",
    )
    parser.add_argument(
        "--log-level",
        "-l",
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        default="INFO",
        help="Set the logging level (default: INFO)",
    )
    return parser.parse_args(argv)


def configure_hosts(hosts: HostsFileManager, config: InstallConfig) -> None:
    print_info(f"Checking {hosts.hosts_file} configuration...")
    if hosts.has_entry(config.ingress_host):
        print_warning(f"{config.ingress_host} already in {hosts.hosts_file}")
        return

    print_info(f"Adding {config.ingress_host} to {hosts.hosts_file} (may require sudo)...")
    hosts.ensure_entry(config.ingress_host, config.loopback_address)
    print_success(f"Added {config.ingress_host} to {hosts.hosts_file}")


def run_install(
    config: InstallConfig, kubectl: KubectlManager, hosts: HostsFileManager
) -> None:
    print_header("K8s API Demo - Installation Script")

    run_preflight(kubectl, config)
    ResourceDeployer(kubectl, config).deploy()
    configure_hosts(hosts, config)

    show_status(kubectl, config.namespace)
    print_access_info(config)


def main(argv: list[str] | None = None) -> int:
    """
    Main function to run the installation from command line.

    Returns:
        int: Exit code (0 for success, 1 for error)
    """
    try:
        args = parse_args(argv)
        logger = create_logger(logger_name="k8s-demo", log_level=args.log_level)
        logger.debug("Starting installation")

        config = get_config(args.config_file)
        kubectl = KubectlManager(logger=logger)
        hosts = HostsFileManager(config.hosts_file, logger=logger)
        run_install(config, kubectl, hosts)
        return 0

    except FileNotFoundError as e:
        print_error(f"Configuration file not found: {e}")
        return 1
    except DeploymentError as e:
        print_error(str(e))
        return 1
    except Exception as e:
        print(f"❌ Unexpected Error: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
