"""AnalyzeDocument Command - PII-redacted document review."""

from dataclasses import dataclass

from src.application.common.interfaces import Command, CommandHandler
from src.domain.exceptions import DomainValidationError
from src.services.ai_service import AIResponse, AIService

MAX_DOCUMENT_CHARS = 50_000


@dataclass(frozen=True)
class AnalyzeDocumentCommand(Command[AIResponse]):
    user_id: str
    text: str
    document_type: str = "document"


class AnalyzeDocumentHandler(CommandHandler[AIResponse]):
    def __init__(self, ai: AIService):
        self.ai = ai

    async def execute(self, command: AnalyzeDocumentCommand) -> AIResponse:
        if not command.text or not command.text.strip():
            raise DomainValidationError("Document text is required")
        if len(command.text) > MAX_DOCUMENT_CHARS:
            raise DomainValidationError("Document is too large to analyze")
        return await self.ai.analyze_document(
            command.text, command.document_type, command.user_id
        )
