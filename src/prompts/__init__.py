"""
Centralized prompt management.

- ChatPrompts: tiered system prompt and canned replies for /chat/send-message
- VeteranPrompts: system prompt, focus sections and task prompts for AIService
"""

from src.prompts.chat import ChatPrompts
from src.prompts.veteran import VeteranPrompts

__all__ = ["ChatPrompts", "VeteranPrompts"]
