#!/usr/bin/env python3
"""
Quick fix for NGINX Ingress admission webhook failures on local clusters.

Waits for the ingress controller, then applies the ingress manifest and removes
the validating webhook if it still rejects the apply.
"""

import argparse
import sys

from k8s_demo_install.console import print_error, print_info, print_success
from k8s_demo_install.deployer import apply_ingress_with_webhook_recovery
from k8s_demo_install.errors import DeploymentError
from k8s_demo_install.install_config import (
    INGRESS_CONTROLLER_SELECTOR,
    INGRESS_NGINX_NAMESPACE,
    InstallConfig,
    get_config,
)
from k8s_demo_install.kubectl_manager import KubectlManager
from k8s_demo_shared.platform_manager import create_logger


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Fix NGINX Ingress admission webhook issues")
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


def run_fix(config: InstallConfig, kubectl: KubectlManager) -> bool:
    """
    Returns:
        bool: True if the validating webhook had to be removed.
    """
    print_info("Fixing NGINX Ingress admission webhook issue...")
    print_info("Waiting for NGINX Ingress Controller to be fully ready...")
    kubectl.wait_for_ready(
        INGRESS_NGINX_NAMESPACE, INGRESS_CONTROLLER_SELECTOR, config.ingress_timeout
    )
    # The webhook endpoint comes up after the controller pod reports ready
    kubectl.sleep(config.webhook_settle_delay)

    removed = apply_ingress_with_webhook_recovery(
        kubectl,
        str(config.manifest("ingress.yaml")),
        delete_delay=config.webhook_delete_delay,
    )
    if removed:
        print_success("Ingress deployed successfully (validation webhook removed)")
        print_info("The Ingress will still work correctly.")
    else:
        print_success("Ingress deployed successfully")
    return removed


def main(argv: list[str] | None = None) -> int:
    try:
        args = parse_args(argv)
        logger = create_logger(logger_name="k8s-demo", log_level=args.log_level)
        run_fix(get_config(args.config_file), KubectlManager(logger=logger))
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
