import logging
import subprocess
from collections.abc import Callable
from pathlib import Path

from k8s_demo_install.errors import HostsFileError

Runner = Callable[..., subprocess.CompletedProcess[str]]


def line_names_host(line: str, hostname: str) -> bool:
    """True if a hosts file line maps ``hostname`` (comments ignored)."""
    content = line.split("#", 1)[0].split()
    return len(content) >= 2 and hostname in content[1:]


class HostsFileManager:
    """
    Idempotent edits of a hosts file.

    Writes that fail with PermissionError are retried through ``sudo tee``.
    """

    def __init__(
        self,
        hosts_file: Path | str = "/etc/hosts",
        runner: Runner = subprocess.run,
        logger: logging.Logger | None = None,
    ):
        self.hosts_file = Path(hosts_file)
        self.runner = runner
        self.logger = logger or logging.getLogger("k8s-demo")

    def _read_lines(self) -> list[str]:
        try:
            return self.hosts_file.read_text().splitlines(keepends=True)
        except FileNotFoundError:
            return []

    def has_entry(self, hostname: str) -> bool:
        return any(line_names_host(line, hostname) for line in self._read_lines())

    def ensure_entry(self, hostname: str, address: str = "127.0.0.1") -> bool:
        """
        Append ``address hostname`` unless the hostname is already mapped.

        Existing entries are never rewritten, even if they map another address.

        Returns:
            bool: True if a line was added.
        """
        if self.has_entry(hostname):
            return False

        lines = self._read_lines()
        prefix = "\n" if lines and not lines[-1].endswith("\n") else ""
        self._write(f"{prefix}{address} {hostname}\n", append=True)
        return True

    def remove_entry(self, hostname: str) -> int:
        """
        Drop every line that maps ``hostname``.

        Returns:
            int: Number of removed lines.
        """
        lines = self._read_lines()
        kept = [line for line in lines if not line_names_host(line, hostname)]
        removed = len(lines) - len(kept)
        if removed:
            self._write("".join(kept), append=False)
        return removed

    def _write(self, content: str, *, append: bool) -> None:
        try:
            with open(self.hosts_file, "a" if append else "w") as f:
                f.write(content)
            return
        except PermissionError:
            self.logger.info(f"Permission denied writing {self.hosts_file}, retrying with sudo")

        command = ["sudo", "tee"]
        if append:
            command.append("-a")
        command.append(str(self.hosts_file))
        try:
            self.runner(command, input=content, capture_output=True, text=True, check=True)
        except subprocess.CalledProcessError as e:
            detail = (e.stderr or "").strip() or f"exit code {e.returncode}"
            raise HostsFileError(f"Could not update {self.hosts_file} with sudo: {detail}") from e
        except OSError as e:
            raise HostsFileError(f"Could not update {self.hosts_file} with sudo: {e}") from e
