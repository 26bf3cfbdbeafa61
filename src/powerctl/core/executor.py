from __future__ import annotations

import asyncio
import contextlib
import logging
from collections.abc import Sequence
from dataclasses import dataclass

from powerctl.errors import PowerCtlError, error_for_kind
from powerctl.models import CommandPlan

from .classifier import DEFAULT_PATTERNS, ErrorPattern, classify

logger = logging.getLogger(__name__)

DEFAULT_COMMAND_TIMEOUT = 60.0


@dataclass(frozen=True)
class CommandResult:
    returncode: int
    stdout: str = ""
    stderr: str = ""

    @property
    def ok(self) -> bool:
        return self.returncode == 0

    @property
    def output(self) -> str:
        return f"{self.stderr}\n{self.stdout}".strip()


class CommandExecutor:
    """Run one external command at a time and classify its failure."""

    def __init__(
        self,
        timeout: float = DEFAULT_COMMAND_TIMEOUT,
        patterns: Sequence[ErrorPattern] = DEFAULT_PATTERNS,
    ) -> None:
        self.timeout = timeout
        self.patterns = tuple(patterns)

    async def run(self, argv: Sequence[str]) -> CommandResult:
        try:
            proc = await asyncio.create_subprocess_exec(
                *argv,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
            )
        except FileNotFoundError:
            # Report like a shell would so the pattern table can match it.
            return CommandResult(returncode=127, stderr=f"{argv[0]}: command not found")
        except OSError as exc:
            return CommandResult(returncode=126, stderr=f"{argv[0]}: {exc}")

        try:
            stdout, stderr = await asyncio.wait_for(proc.communicate(), self.timeout)
        except (asyncio.TimeoutError, TimeoutError):
            with contextlib.suppress(ProcessLookupError):
                proc.kill()
            await proc.wait()
            return CommandResult(
                returncode=-1,
                stderr=f"{argv[0]}: timed out after {self.timeout:.0f}s",
            )

        return CommandResult(
            returncode=proc.returncode if proc.returncode is not None else -1,
            stdout=stdout.decode("utf-8", errors="replace"),
            stderr=stderr.decode("utf-8", errors="replace"),
        )

    def failure(self, result: CommandResult, plan: CommandPlan) -> PowerCtlError:
        kind = classify(result.output, self.patterns)
        details = result.stderr.strip() or result.stdout.strip() or f"exit code {result.returncode}"
        if plan.target.credentials is not None:
            details = details.replace(plan.target.credentials.secret, "***")
        return error_for_kind(kind, details=details)

    async def execute(self, plan: CommandPlan) -> CommandResult:
        """Run ``plan.argv``; raise the classified error when it fails."""
        logger.debug("Running %s", plan.display())
        result = await self.run(plan.argv)
        if not result.ok:
            error = self.failure(result, plan)
            logger.error(
                "Command for %s failed (%s): %s",
                plan.target.ip,
                error.kind.value,
                error.details,
            )
            raise error
        logger.info("Command %s sent to %s", plan.action.value, plan.target.ip)
        return result
