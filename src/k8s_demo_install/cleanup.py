#!/usr/bin/env python3
"""Remove the K8s API demo from the cluster and, optionally, its local routing."""

import argparse
import sys

from k8s_demo_install.console import confirm, print_error, print_header, print_info, print_success
from k8s_demo_install.errors import DeploymentError
from k8s_demo_install.hosts_manager import HostsFileManager
from k8s_demo_install.install_config import INGRESS_NGINX_NAMESPACE, InstallConfig, get_config
from k8s_demo_install.kubectl_manager import KubectlManager
from k8s_demo_shared.platform_manager import create_logger


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="K8s API Demo - Cleanup")
    parser.add_argument(
        "--config-file",
        "-c",
        default=None,
        help="Path to JSON configuration file overriding the defaults",
    )
    parser.add_argument(
        "--yes",
        "-y",
        action="store_true",
        help="Answer yes to every question",
    )
    parser.add_argument(
        "--log-level",
        "-l",
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        default="INFO",
        help="Set the logging level (default: INFO)",
    )
    return parser.parse_args(argv)


def run_cleanup(
    config: InstallConfig,
    kubectl: KubectlManager,
    hosts: HostsFileManager,
    assume_yes: bool = False,
) -> None:
    print_header("K8s API Demo - Cleanup")

    # Deleting the namespace removes every resource in it
    print_info(f"Deleting {config.namespace} namespace and all resources...")
    kubectl.delete("namespace", config.namespace)
    print_success("Namespace deleted")

    if confirm("Do you want to remove NGINX Ingress Controller?", assume_yes):
        print_info("Removing NGINX Ingress Controller...")
        kubectl.delete("namespace", INGRESS_NGINX_NAMESPACE)
        print_success("NGINX Ingress removed")
    else:
        print_info("Keeping NGINX Ingress Controller")

    host = config.ingress_host
    if confirm(f"Do you want to remove {host} from {hosts.hosts_file}?", assume_yes):
        print_info(f"Removing {host} from {hosts.hosts_file} (may require sudo)...")
        removed = hosts.remove_entry(host)
        print_success(f"{hosts.hosts_file} updated ({removed} line(s) removed)")
    else:
        print_info(f"Keeping {host} in {hosts.hosts_file}")

    print("")
    print_success("Cleanup complete!")


def main(argv: list[str] | None = None) -> int:
    try:
        args = parse_args(argv)
        logger = create_logger(logger_name="k8s-demo", log_level=args.log_level)
        config = get_config(args.config_file)
        run_cleanup(
            config,
            KubectlManager(logger=logger),
            HostsFileManager(config.hosts_file, logger=logger),
            assume_yes=args.yes,
        )
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
