"""Local Connector - Run vendor command-line tools on this machine.

The audit leans on tools like ``openssl`` that already know how to talk
to the remote endpoint. This module runs them and hands back whatever
they printed. It never raises on command failure; callers look at
``CommandResult.success``.
"""

import logging
import subprocess
from dataclasses import dataclass, field

logger = logging.getLogger(__name__)


@dataclass
class CommandResult:
    """Result of a command execution."""

    command: str
    stdout: str
    stderr: str
    exit_code: int
    success: bool = field(init=False)

    def __post_init__(self) -> None:
        self.success = self.exit_code == 0


class LocalRunner:
    """Runs shell pipelines locally.

    Example:
        >>> runner = LocalRunner(timeout=10)
        >>> result = runner.run("openssl version")
        >>> print(result.stdout)
    """

    def __init__(self, timeout: float = 30) -> None:
        self.timeout = timeout

    def run(self, command: str, timeout: float | None = None, stdin: str = "") -> CommandResult:
        """Execute a shell command.

        Args:
            command: The command line to execute (pipes allowed).
            timeout: Command timeout in seconds. Defaults to runner timeout.
            stdin: Text fed to the command's standard input.

        Returns:
            CommandResult with stdout, stderr, and exit_code.
        """
        cmd_timeout = timeout if timeout is not None else self.timeout
        logger.debug("running: %s (timeout=%ss)", command, cmd_timeout)

        try:
            proc = subprocess.run(
                command,
                shell=True,
                input=stdin,
                capture_output=True,
                text=True,
                timeout=cmd_timeout,
            )
        except subprocess.TimeoutExpired as e:
            logger.warning("command timed out after %ss: %s", cmd_timeout, command)
            return CommandResult(
                command=command,
                stdout=e.stdout if isinstance(e.stdout, str) else "",
                stderr=f"Timed out after {cmd_timeout}s",
                exit_code=255,
            )
        except OSError as e:
            return CommandResult(
                command=command,
                stdout="",
                stderr=f"Execution Error: {e}",
                exit_code=255,
            )

        return CommandResult(
            command=command,
            stdout=proc.stdout or "",
            stderr=proc.stderr or "",
            exit_code=proc.returncode,
        )
