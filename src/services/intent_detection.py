"""
Keyword-based detection of which VADIY data a chat message needs, and the
tier gate applied before any lookup runs.
"""

import re

from src.domain.value_objects.search_intent import BlockedFeatures, SearchIntent
from src.domain.value_objects.service_tier import UserServiceTier

OPPORTUNITY_KEYWORDS = (
    "opportunities", "jobs", "employment", "career", "position", "opening",
    "work", "internship", "apprenticeship", "training program", "scholarship",
    "contracts", "government contracts", "grants", "funding",
)  # fmt: skip

RESOURCE_KEYWORDS = (
    "resources", "benefits", "assistance", "help", "support", "services",
    "healthcare", "disability", "compensation", "education", "housing",
    "mental health", "counseling", "financial aid", "loan", "grant",
    "sba", "business resources", "veteran benefits",
)  # fmt: skip

MATCH_KEYWORDS = (
    "my opportunities", "my matches", "recommended", "personalized",
    "what's available for me", "what can i apply for", "my benefits",
    "matched for me", "tailored",
)  # fmt: skip

DETAIL_KEYWORDS = (
    "details", "more info", "tell me more", "full description", "specific", "about this",
)  # fmt: skip

OPPORTUNITY_ID_RE = re.compile(r"\b(rec[A-Za-z0-9]{14}|[A-Za-z0-9\-]+)\b")
RECORD_ID_RE = re.compile(r"^rec[A-Za-z0-9]{14}$")


def _found(keywords: tuple[str, ...], text: str) -> list[str]:
    return [keyword for keyword in keywords if keyword in text]


def _pick_opportunity_id(candidates: list[str]) -> str:
    # Airtable record ids win over ordinary words
    for candidate in candidates:
        if RECORD_ID_RE.match(candidate):
            return candidate
    return candidates[0]


def detect_search_intent(message: str) -> SearchIntent:
    lower = message.lower()

    id_candidates = OPPORTUNITY_ID_RE.findall(message)
    wants_details = bool(_found(DETAIL_KEYWORDS, lower)) and bool(id_candidates)

    opportunity_hits = _found(OPPORTUNITY_KEYWORDS, lower)
    resource_hits = _found(RESOURCE_KEYWORDS, lower)
    match_hits = _found(MATCH_KEYWORDS, lower)

    return SearchIntent(
        search_opportunities=bool(opportunity_hits),
        search_resources=bool(resource_hits),
        get_user_matches=bool(match_hits),
        get_opportunity_details=wants_details,
        opportunity_id=_pick_opportunity_id(id_candidates) if wants_details else None,
        keywords=tuple(opportunity_hits + resource_hits + match_hits),
    )


def apply_tier_restrictions(
    intent: SearchIntent, service_tier: UserServiceTier
) -> SearchIntent:
    """Drop searches the tier cannot use and record which ones were blocked."""
    features = service_tier.features
    blocked = BlockedFeatures(
        opportunities=intent.search_opportunities and not features.opportunities,
        matches=intent.get_user_matches and not features.matches,
    )
    return intent.restrict(
        search_opportunities=intent.search_opportunities and features.opportunities,
        get_user_matches=intent.get_user_matches and features.matches,
        search_resources=intent.search_resources and features.resources,
        blocked_features=blocked,
    )
