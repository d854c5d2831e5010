from src.application.commands.feedback.submit_feedback import (
    FEEDBACK_CATEGORIES,
    SubmitFeedbackCommand,
    SubmitFeedbackHandler,
)

__all__ = ["FEEDBACK_CATEGORIES", "SubmitFeedbackCommand", "SubmitFeedbackHandler"]
