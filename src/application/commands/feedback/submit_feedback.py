"""SubmitFeedback Command - Store a rating for an assistant reply."""

from dataclasses import dataclass
from typing import Optional

from src.application.common.interfaces import Command, CommandHandler
from src.domain.exceptions import DomainValidationError
from src.domain.ports.repositories import AnalyticsRepository
from src.utils.safety import InputValidator

FEEDBACK_CATEGORIES = ("accuracy", "helpfulness", "speed", "other")
MAX_COMMENT_CHARS = 2000


@dataclass(frozen=True)
class SubmitFeedbackCommand(Command[None]):
    user_id: str
    rating: int
    comment: str = ""
    category: str = "other"
    message_id: Optional[str] = None


class SubmitFeedbackHandler(CommandHandler[None]):
    def __init__(self, analytics: AnalyticsRepository):
        self.analytics = analytics

    async def execute(self, command: SubmitFeedbackCommand) -> None:
        if not 1 <= command.rating <= 5:
            raise DomainValidationError("Rating must be between 1 and 5")
        category = command.category if command.category in FEEDBACK_CATEGORIES else "other"
        comment = InputValidator.sanitize_input(command.comment or "")[:MAX_COMMENT_CHARS]
        await self.analytics.submit_feedback(
            command.user_id, command.message_id, command.rating, comment, category
        )
