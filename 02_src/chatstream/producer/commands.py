"""Whitelisted command execution."""

import asyncio
from typing import Iterable, Protocol

from ..config import DEFAULT_ALLOWED_COMMANDS
from ..logging_config import get_logger

logger = get_logger(__name__)


class ICommandExecutor(Protocol):
    """Runs a whitelisted system command."""

    def is_allowed(self, name: str) -> bool:
        """Whether name may be executed."""
        ...

    async def execute(self, name: str, args: list[str]) -> str:
        """Run the command. Returns output text or error text, never raises."""
        ...


class CommandExecutor:
    """Executes whitelisted programs without a shell."""

    def __init__(
        self,
        allowed: Iterable[str] = DEFAULT_ALLOWED_COMMANDS,
        timeout: float = 10.0,
    ):
        self._allowed = frozenset(allowed)
        self._timeout = timeout

    @property
    def allowed(self) -> list[str]:
        return sorted(self._allowed)

    def is_allowed(self, name: str) -> bool:
        return name in self._allowed

    async def execute(self, name: str, args: list[str]) -> str:
        """Run the command. Returns output text or error text, never raises."""
        if not self.is_allowed(name):
            logger.warning("Refused command %s", name)
            return (
                f"Command not allowed: {name}. "
                f"Allowed commands: {', '.join(self.allowed)}"
            )

        logger.info("Executing %s %s", name, " ".join(args))
        try:
            proc = await asyncio.create_subprocess_exec(
                name,
                *args,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
            )
        except FileNotFoundError:
            return f"Command not found: {name}"
        except OSError as e:
            return f"Failed to start {name}: {e}"

        try:
            stdout_bytes, stderr_bytes = await asyncio.wait_for(
                proc.communicate(), timeout=self._timeout
            )
        except asyncio.TimeoutError:
            proc.kill()
            await proc.communicate()
            logger.warning("Command %s timed out after %ss", name, self._timeout)
            return f"Command timed out after {self._timeout}s: {name}"

        stdout = stdout_bytes.decode(errors="replace") if stdout_bytes else ""
        stderr = stderr_bytes.decode(errors="replace") if stderr_bytes else ""

        if proc.returncode != 0:
            return f"Exit code {proc.returncode}: {stderr or stdout}".rstrip()
        return stdout
