"""CleanupOldData Command - Enforce the message retention window."""

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Optional

from src.application.common.interfaces import Command, CommandHandler
from src.domain.ports.repositories import MessageRepository

logger = logging.getLogger(__name__)


@dataclass
class CleanupReport:
    cutoff: datetime
    messages_deleted: int


@dataclass(frozen=True)
class CleanupOldDataCommand(Command[CleanupReport]):
    retention_days: int = 90
    now: Optional[datetime] = None


class CleanupOldDataHandler(CommandHandler[CleanupReport]):
    def __init__(self, messages: MessageRepository):
        self.messages = messages

    async def execute(self, command: CleanupOldDataCommand) -> CleanupReport:
        if command.retention_days < 1:
            raise ValueError("retention_days must be at least 1")
        now = command.now or datetime.now(timezone.utc)
        cutoff = now - timedelta(days=command.retention_days)

        deleted = await self.messages.delete_older_than(cutoff)
        logger.info(
            "[Cleanup] Removed %d messages older than %s",
            deleted,
            cutoff.isoformat(),
        )
        return CleanupReport(cutoff=cutoff, messages_deleted=deleted)
