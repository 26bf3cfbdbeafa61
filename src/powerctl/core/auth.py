from __future__ import annotations

import logging

from powerctl.models import CommandPlan

from .executor import CommandExecutor

logger = logging.getLogger(__name__)


class SessionAuthenticator:
    """Open a session on the target before the command runs.

    A failed attempt is not an error: an earlier session may still be valid,
    so the caller runs the command either way.
    """

    def __init__(self, executor: CommandExecutor) -> None:
        self._executor = executor

    async def authenticate(self, plan: CommandPlan) -> bool:
        if not plan.requires_auth or plan.auth_argv is None:
            return False

        result = await self._executor.run(plan.auth_argv)
        if result.ok:
            logger.debug("Session established with %s", plan.target.ip)
            return True

        logger.warning(
            "Auth attempt failed for %s, trying command anyway...", plan.target.ip
        )
        return False
