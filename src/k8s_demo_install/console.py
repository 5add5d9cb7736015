# Coloured console output for the install, cleanup and fix-ingress commands.
import sys

RED = "\033[0;31m"
GREEN = "\033[0;32m"
YELLOW = "\033[1;33m"
BLUE = "\033[0;34m"
NC = "\033[0m"  # No Color


def print_info(message: str) -> None:
    print(f"{BLUE}[INFO] {message}{NC}")


def print_success(message: str) -> None:
    print(f"{GREEN}[OK] {message}{NC}")


def print_warning(message: str) -> None:
    print(f"{YELLOW}[WARN] {message}{NC}")


def print_error(message: str) -> None:
    print(f"{RED}[ERROR] {message}{NC}", file=sys.stderr)


def print_header(title: str) -> None:
    print(f"\n{BLUE}{'=' * 40}{NC}")
    print(f"{BLUE}{title}{NC}")
    print(f"{BLUE}{'=' * 40}{NC}\n")


def highlight(text: str, color: str = YELLOW) -> str:
    return f"{color}{text}{NC}"


def confirm(question: str, assume_yes: bool = False) -> bool:
    """
    Ask a y/N question on the terminal. Anything but y/Y counts as no.
    """
    if assume_yes:
        print(f"{question} (y/N): y")
        return True
    try:
        reply = input(f"{question} (y/N): ")
    except EOFError:
        return False
    return reply.strip()[:1] in ("y", "Y")
