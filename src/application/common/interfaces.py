"""
Base interfaces for CQRS pattern.

Usage:
    @dataclass(frozen=True)
    class SubmitFeedbackCommand(Command[None]):
        user_id: str
        rating: int

    class SubmitFeedbackHandler(CommandHandler[None]):
        def __init__(self, analytics: AnalyticsRepository):
            self.analytics = analytics

        async def execute(self, command: SubmitFeedbackCommand) -> None:
            await self.analytics.submit_feedback(command.user_id, None, command.rating, "", "other")
"""
from abc import ABC, abstractmethod
from typing import TypeVar, Generic

T = TypeVar("T")
class Command(ABC, Generic[T]):
    """Base class for write operations"""
    pass

class CommandHandler(ABC, Generic[T]):
    @abstractmethod
    async def execute(self, command: Command[T]) -> T:
        """Execute the command and return a result of type T"""
        ...

class Query(ABC, Generic[T]):
    """Base class for read operations"""
    pass

class QueryHandler(ABC, Generic[T]):
    @abstractmethod
    async def execute(self, query: Query[T]) -> T:
        """Execute the query and return a result of type T"""
        ...