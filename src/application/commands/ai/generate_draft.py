"""GenerateApplicationDraft Command - Draft an application and keep a copy."""

import logging
from dataclasses import dataclass, field
from typing import Any

from src.application.common.interfaces import Command, CommandHandler
from src.domain.ports.repositories import AnalyticsRepository, UserRepository
from src.services.ai_service import AIResponse, AIService

logger = logging.getLogger(__name__)


@dataclass
class DraftResult:
    response: AIResponse
    document_id: str = ""


@dataclass(frozen=True)
class GenerateApplicationDraftCommand(Command[DraftResult]):
    user_id: str
    opportunity: dict[str, Any]
    requirements: tuple[str, ...] = ()
    user_profile: dict[str, Any] = field(default_factory=dict)


class GenerateApplicationDraftHandler(CommandHandler[DraftResult]):
    def __init__(
        self, ai: AIService, users: UserRepository, analytics: AnalyticsRepository
    ):
        self.ai = ai
        self.users = users
        self.analytics = analytics

    async def _profile(self, command: GenerateApplicationDraftCommand) -> dict[str, Any]:
        if command.user_profile:
            return dict(command.user_profile)
        user = await self.users.get_by_id(command.user_id, command.user_id)
        if user is None:
            return {"id": command.user_id}
        record = user.service_record
        return {
            "id": user.id,
            "subscriptionStatus": user.subscription_status,
            "serviceRecord": {
                "branch": record.branch,
                "rank": record.rank,
                "serviceYears": record.service_years,
                "disabilities": record.disabilities,
            },
        }

    async def execute(self, command: GenerateApplicationDraftCommand) -> DraftResult:
        profile = await self._profile(command)
        response = await self.ai.generate_application_draft(
            command.opportunity, profile, command.requirements, user_id=command.user_id
        )
        result = DraftResult(response=response)
        if response.success:
            result.document_id = await self.analytics.store_generated_document(
                command.user_id,
                "application_draft",
                response.content,
                {
                    "opportunity": command.opportunity.get("title"),
                    "aiModel": response.metadata.get("aiModel"),
                },
            )
        return result
