"""
Opportunity and Resource Entities - Catalog rows veterans can act on.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Optional


@dataclass
class Opportunity:
    id: str
    title: str
    description: str
    type: str = "grant"
    status: str = "open"
    deadline: Optional[datetime] = None
    amount: float = 0.0
    application_url: str = ""
    opportunity_id: Optional[str] = None
    full_description: Optional[str] = None
    eligibility: dict[str, Any] = field(default_factory=dict)
    tags: list[str] = field(default_factory=list)
    created_at: Optional[datetime] = None

    @property
    def reference_id(self) -> str:
        return self.opportunity_id or self.id


@dataclass
class Resource:
    id: str
    title: str
    description: str
    category: str = "benefits"
    type: str = "Resource"
    cost: str = "free"
    url: str = ""
    availability: str = "Available"
    metadata: dict[str, Any] = field(default_factory=dict)


@dataclass
class UserMatch:
    id: str
    opportunity_id: Optional[str]
    match_score: float = 0.0
    match_reason: str = ""
    created_at: Optional[datetime] = None


@dataclass
class UserMatches:
    total_matches: int
    matches: list[UserMatch]
