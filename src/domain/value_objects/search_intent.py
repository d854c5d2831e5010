"""
SearchIntent Value Object - What data a chat message asks for.
"""

from dataclasses import dataclass, field, replace
from typing import Optional


@dataclass(frozen=True)
class BlockedFeatures:
    opportunities: bool = False
    matches: bool = False

    def __bool__(self) -> bool:
        return self.opportunities or self.matches

    def to_dict(self) -> dict[str, bool]:
        blocked = {}
        if self.opportunities:
            blocked["opportunities"] = True
        if self.matches:
            blocked["matches"] = True
        return blocked


@dataclass(frozen=True)
class SearchIntent:
    search_opportunities: bool = False
    search_resources: bool = False
    get_user_matches: bool = False
    get_opportunity_details: bool = False
    opportunity_id: Optional[str] = None
    keywords: tuple[str, ...] = ()
    blocked_features: BlockedFeatures = field(default_factory=BlockedFeatures)

    @property
    def search_required(self) -> bool:
        return (
            self.search_opportunities
            or self.search_resources
            or self.get_user_matches
            or self.get_opportunity_details
        )

    def restrict(self, **changes) -> "SearchIntent":
        return replace(self, **changes)

    def to_dict(self) -> dict:
        data = {
            "searchRequired": self.search_required,
            "searchOpportunities": self.search_opportunities,
            "searchResources": self.search_resources,
            "getUserMatches": self.get_user_matches,
            "getOpportunityDetails": self.get_opportunity_details,
            "opportunityId": self.opportunity_id,
            "keywords": list(self.keywords),
        }
        if self.blocked_features:
            data["blockedFeatures"] = self.blocked_features.to_dict()
        return data
