from src.application.commands.ai.analyze_document import (
    AnalyzeDocumentCommand,
    AnalyzeDocumentHandler,
)
from src.application.commands.ai.generate_draft import (
    DraftResult,
    GenerateApplicationDraftCommand,
    GenerateApplicationDraftHandler,
)

__all__ = [
    "AnalyzeDocumentCommand",
    "AnalyzeDocumentHandler",
    "DraftResult",
    "GenerateApplicationDraftCommand",
    "GenerateApplicationDraftHandler",
]
