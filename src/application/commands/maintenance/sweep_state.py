"""
SweepInProcessState Command - Expire idle sessions and stale rate-limit windows.

Both registries live in the API process, so the sweep runs there: the app
lifespan starts `run_periodic_sweep` and cancels it on shutdown.
"""

import asyncio
import logging
from dataclasses import dataclass

from src.application.common.interfaces import Command, CommandHandler
from src.utils.rate_limiter import RateLimiter
from src.utils.sessions import SessionManager

logger = logging.getLogger(__name__)


@dataclass
class SweepReport:
    sessions_expired: int
    rate_limit_entries_removed: int


@dataclass(frozen=True)
class SweepInProcessStateCommand(Command[SweepReport]):
    pass


class SweepInProcessStateHandler(CommandHandler[SweepReport]):
    def __init__(self, sessions: SessionManager, rate_limiter: RateLimiter):
        self.sessions = sessions
        self.rate_limiter = rate_limiter

    async def execute(self, command: SweepInProcessStateCommand) -> SweepReport:
        report = SweepReport(
            sessions_expired=self.sessions.cleanup_sessions(),
            rate_limit_entries_removed=self.rate_limiter.cleanup(),
        )
        if report.sessions_expired or report.rate_limit_entries_removed:
            logger.info(
                "[Sweep] Expired %d sessions, %d rate-limit windows",
                report.sessions_expired,
                report.rate_limit_entries_removed,
            )
        return report


async def run_periodic_sweep(handler: SweepInProcessStateHandler, interval: float) -> None:
    """Sweep every `interval` seconds until cancelled."""
    while True:
        await asyncio.sleep(interval)
        try:
            await handler.execute(SweepInProcessStateCommand())
        except Exception:
            logger.exception("[Sweep] In-process state sweep failed")
