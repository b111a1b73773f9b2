"""Keep stray writes off stdout, which carries the ACP protocol.

Once the protocol streams are wired, ``sys.stdout`` is swapped for a
``StdoutGuard``: anything printed is logged as a warning and, when allowed
by config, echoed to stderr.
"""

from __future__ import annotations

import io
import sys
from typing import TextIO

from zedclaude.logging import get_logger

log = get_logger("console")


class StdoutGuard(io.TextIOBase):
    """Text stream that diverts writes away from the protocol channel."""

    def __init__(self, echo: bool = False, stderr: TextIO | None = None) -> None:
        super().__init__()
        self.echo = echo
        self._stderr = stderr

    def writable(self) -> bool:
        return True

    def write(self, s: str) -> int:
        if s and not s.isspace():
            log.warning("Intercepted stdout write (stdout is reserved for ACP): %r", s)
            if self.echo:
                stderr = self._stderr or sys.stderr
                stderr.write(f"[CONSOLE.LOG] {s}")
                if not s.endswith("\n"):
                    stderr.write("\n")
        return len(s)


def install_stdout_guard(echo: bool = False) -> TextIO:
    """Replace ``sys.stdout`` with a guard. Returns the previous stream."""
    previous = sys.stdout
    sys.stdout = StdoutGuard(echo=echo)  # type: ignore[assignment]
    return previous
