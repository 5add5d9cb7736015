from k8s_demo_install.console import GREEN, highlight, print_header, print_info, print_success
from k8s_demo_install.install_config import INGRESS_NGINX_NAMESPACE, InstallConfig
from k8s_demo_install.kubectl_manager import KubectlManager

PORT_FORWARD_PORT = 8080
SERVICE_FORWARD_PORT = 8081


def show_status(kubectl: KubectlManager, namespace: str) -> None:
    print_header("Deployment Status")

    for title, kind in (("Pods", "pods"), ("Services", "svc"), ("Ingress", "ingress")):
        print(f"{title}:")
        print(kubectl.get(kind, namespace).rstrip())
        print("")


def print_access_info(config: InstallConfig) -> None:
    print_header("Deployment Complete!")
    print_success("Application is ready!")
    print("")

    ns = config.namespace
    host = config.ingress_host
    base = f"http://localhost:{PORT_FORWARD_PORT}"
    json_header = "-H 'Content-Type: application/json'"

    print_info("Access URLs:")
    print("  For Rancher Desktop, use port-forward to access the application:")
    print("")
    print("  Run this command in a separate terminal:")
    port_forward = (
        f"kubectl port-forward -n {INGRESS_NGINX_NAMESPACE} "
        f"svc/ingress-nginx-controller {PORT_FORWARD_PORT}:80"
    )
    print(f"  {highlight(port_forward, GREEN)}")
    print("")
    print(f"  Then access the API at: {base}")
    print("")

    print_info(f"Test endpoints (using port-forward on port {PORT_FORWARD_PORT}):")
    endpoints = [
        ("Health Check:", f"curl {base}/health -H 'Host: {host}'"),
        ("API Info:", f"curl {base}/ -H 'Host: {host}'"),
        (
            "Echo Test:",
            f"curl -X POST {base}/echo -H 'Host: {host}' {json_header} -d '{{\"test\":\"hello\"}}'",
        ),
        ("Get Messages:", f"curl {base}/messages -H 'Host: {host}'"),
        (
            "Create Message:",
            f"curl -X POST {base}/messages -H 'Host: {host}' {json_header} "
            "-d '{\"text\":\"Hello from K8s!\",\"author\":\"Demo\"}'",
        ),
    ]
    _print_table(endpoints)

    print_info("Alternative: Direct service access via port-forward:")
    print(f"  kubectl port-forward -n {ns} svc/api {SERVICE_FORWARD_PORT}:80")
    print(f"  curl http://localhost:{SERVICE_FORWARD_PORT}/health")
    print("")

    print_info("Kubernetes Resources:")
    _print_table([
        ("View pods:", f"kubectl get pods -n {ns}"),
        ("View services:", f"kubectl get svc -n {ns}"),
        ("View ingress:", f"kubectl get ingress -n {ns}"),
        ("API logs:", f"kubectl logs -n {ns} -l app=api -f"),
        ("MongoDB logs:", f"kubectl logs -n {ns} -l app=mongodb -f"),
    ])


def _print_table(rows: list[tuple[str, str]]) -> None:
    for label, command in rows:
        print(f"  {highlight(label.ljust(18))} {command}")
    print("")
