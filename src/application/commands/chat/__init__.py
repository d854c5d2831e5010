from src.application.commands.chat.send_message import (
    SendMessageCommand,
    SendMessageHandler,
    SendMessageResult,
)

__all__ = ["SendMessageCommand", "SendMessageHandler", "SendMessageResult"]
