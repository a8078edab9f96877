from __future__ import annotations

import logging
import subprocess
import sys

from domain.errors import ProcessError
from domain.ports.layout import LayoutEngine

logger = logging.getLogger(__name__)

# -Tplain: plain text output, -y: invert y so (0, 0) is the top-left corner.
DOT_ARGUMENTS = ("-Tplain", "-y")
_INSTALL_HINT = 'Check that Graphviz is installed and the "dot" utility is on the PATH.'


def default_dot_executable() -> str:
    return "dot.exe" if sys.platform.startswith("win") else "dot"


class GraphvizLayoutEngine(LayoutEngine):
    """Runs Graphviz ``dot`` as a child process, one process per request.

    There is no timeout: a spawned process runs until it exits.
    """

    def __init__(self, executable: str | None = None) -> None:
        self.executable = executable or default_dot_executable()

    @property
    def command(self) -> list[str]:
        return [self.executable, *DOT_ARGUMENTS]

    def run(self, dot_text: str) -> str:
        try:
            process = subprocess.Popen(
                self.command,
                stdin=subprocess.PIPE,
                stdout=subprocess.PIPE,
                stderr=subprocess.PIPE,
                text=True,
                encoding="utf-8",
            )
        except OSError as exc:
            logger.error("Failed to run %r. %s", self.executable, _INSTALL_HINT)
            msg = f'Failed to run "{self.executable}": {exc}. {_INSTALL_HINT}'
            raise ProcessError(msg) from exc

        try:
            stdout, stderr = process.communicate(dot_text)
        except OSError as exc:
            process.kill()
            process.wait()
            logger.error("I/O with %r failed", self.executable)
            msg = f'I/O with "{self.executable}" failed: {exc}'
            raise ProcessError(msg) from exc

        if process.returncode != 0:
            detail = (stderr or "").strip()
            if len(detail) > 240:
                detail = detail[:240] + "..."
            logger.error("%r exited with status %d: %s", self.executable, process.returncode, detail)
            msg = (
                f'"{self.executable}" exited with status {process.returncode}: '
                f"{detail or 'unknown error'}"
            )
            raise ProcessError(msg)
        return stdout
