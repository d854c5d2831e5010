"""
Airtable record -> domain entity mappers.

Field names follow the live VADIY base first, then older or alternative
spellings. A falsy value falls through to the next candidate.
"""

import json
import logging
from datetime import datetime, timezone
from typing import Any, Optional

from src.domain.entities.conversation import Conversation
from src.domain.entities.message import Message
from src.domain.entities.opportunity import Opportunity, Resource, UserMatch
from src.domain.entities.user import ServiceRecord, User, UserProfile, default_preferences
from src.domain.value_objects.conversation_id import ConversationId
from src.infrastructure.airtable.client import AirtableRecord

logger = logging.getLogger(__name__)


def parse_datetime(value: Any, default: Optional[datetime] = None) -> Optional[datetime]:
    if isinstance(value, datetime):
        return value
    if not value:
        return default
    try:
        parsed = datetime.fromisoformat(str(value).replace("Z", "+00:00"))
    except ValueError:
        return default
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def parse_json(value: Any, default: Any) -> Any:
    if not value:
        return default
    if not isinstance(value, str):
        return value
    try:
        return json.loads(value)
    except ValueError:
        logger.warning("[Airtable] Could not parse JSON field value")
        return default


def _to_float(value: Any) -> Optional[float]:
    try:
        return float(str(value).replace(",", "").replace("$", ""))
    except (TypeError, ValueError):
        return None


def _split_name(full_name: Any) -> tuple[Optional[str], Optional[str]]:
    if not full_name:
        return None, None
    parts = str(full_name).split(" ")
    return parts[0], (" ".join(parts[1:]) or None)


def normalize_cost(cost: Any) -> str:
    if not cost:
        return "free"
    text = str(cost).lower()
    if "free" in text:
        return "free"
    if "sliding" in text or "scale" in text:
        return "sliding-scale"
    return "paid"


# ==================== USERS ====================


def map_user_record(record: AirtableRecord) -> User:
    now = datetime.now(timezone.utc)
    first, last = _split_name(record.get("Users Name"))
    disability = record.get("Disability rating % (VA)")
    return User(
        id=record.id,
        email=record.first("Contact Email", "Email", default=""),
        first_name=first or record.first("First_Name", "FirstName", default=""),
        last_name=last or record.first("Last_Name", "LastName", default=""),
        veteran_id=record.first("Veteran Owner Name(s)", "Veteran_ID", "VeteranID"),
        service_record=ServiceRecord(
            branch=record.first("Military Branch", default="army"),
            rank=record.first("Veteran Status", default=""),
            disabilities=[f"{disability}%"] if disability else [],
        ),
        security_level=record.first("Security_Level", "SecurityLevel", default="standard"),
        last_login=parse_datetime(record.first("Last_Login", "LastLogin"), now),
        subscription_status=record.first("Subscription_Status", default="free"),
        preferences=parse_json(
            record.first("ai_preferences", "Preferences"), default_preferences()
        ),
        created_at=parse_datetime(record.first("CreatedDate", "Created_At"), now),
        updated_at=parse_datetime(
            record.first("Submission Timestamp", "Updated_At"), now
        ),
    )


def map_user_profile(record: AirtableRecord) -> UserProfile:
    return UserProfile(
        id=record.id,
        first_name=record.first("Users Name", "First Name", "firstName"),
        last_name=record.first("Last Name", "lastName"),
        email=record.first("Contact Email", "email", "Email"),
        subscription_status=record.first(
            "Subscription_Status", "subscription_status", "Tier", default="Free"
        ),
        profile_data=dict(record.fields),
    )


# ==================== CONVERSATIONS / MESSAGES ====================


def map_conversation_record(record: AirtableRecord) -> Conversation:
    now = datetime.now(timezone.utc)
    return Conversation(
        id=ConversationId(record.first("Conversation_ID", default=record.id)),
        user_id=record.get("User_ID", ""),
        title=record.get("Title", ""),
        is_encrypted=bool(record.get("Is_Encrypted", False)),
        status=record.get("Status") or "active",
        tags=parse_json(record.get("Tags"), []),
        created_at=parse_datetime(record.get("Created_At"), now),
        updated_at=parse_datetime(record.get("Updated_At"), now),
        last_message_at=parse_datetime(record.get("Last_Message_At"), now),
        message_count=int(record.get("Message_Count") or 0),
    )


def map_message_record(record: AirtableRecord) -> Message:
    return Message(
        id=record.first("Message_ID", default=record.id),
        conversation_id=ConversationId(record.get("Conversation_ID", "")),
        role=record.get("Role", "user"),
        content=record.get("Content") or "",
        encrypted_content=record.get("Encrypted_Content"),
        metadata=parse_json(record.get("Metadata"), {}),
        attachments=parse_json(record.get("Attachments"), []),
        timestamp=parse_datetime(record.get("Timestamp"), datetime.now(timezone.utc)),
        edited=bool(record.get("Edited", False)),
        edited_at=parse_datetime(record.get("Edited_At")),
    )


# ==================== CATALOG ====================


def _keywords(value: Any) -> list[str]:
    if isinstance(value, str):
        return [kw.strip() for kw in value.split(",") if kw.strip()]
    if isinstance(value, list):
        return [str(kw) for kw in value]
    return []


def map_opportunity_record(record: AirtableRecord) -> Opportunity:
    amount = _to_float(record.first("totalfunding", "awardceiling")) or 0.0
    rating = _to_float(record.get("Disability rating % (VA)"))
    duns = record.get("DUNUEI Number")
    return Opportunity(
        id=record.id,
        title=record.get("title") or "",
        description=record.first("description", "aisummary", default=""),
        type=record.first("Funding_Type", "opportunity_type", default="grant"),
        amount=amount,
        deadline=parse_datetime(record.first("deadline", "Date")),
        eligibility={
            "veteranStatus": True,
            "serviceConnected": record.get("Veteran_Benefit") == "Service-Connected",
            "disabilityRating": int(rating) if rating is not None else None,
            "location": [str(record.get("CountyBorough"))] if record.get("CountyBorough") else [],
            "businessType": (
                [str(record.get("Business_Size_Requirements"))]
                if record.get("Business_Size_Requirements")
                else []
            ),
            "other": [
                item
                for item in (
                    record.get("eligibility"),
                    record.get("Required_Docs"),
                    f"DUNS/UEI Required: {duns}" if duns else "",
                )
                if item
            ],
        },
        application_url=record.first("Resource_Link", "PDFlink", "originurl", default=""),
        status=record.first("status", "Deadline Status", default="open"),
        tags=_keywords(record.get("keywords")),
        opportunity_id=record.get("opportunityID"),
        full_description=record.get("description"),
        created_at=parse_datetime(record.first("posteddate", "Date")),
    )


def map_search_opportunity(record: AirtableRecord) -> Opportunity:
    """Lightweight mapping for AI context: AI summary instead of full text."""
    return Opportunity(
        id=record.id,
        title=record.get("title") or "Untitled",
        description=record.get("aisummary") or "No summary available",
        type="Government Contract",
        status="Available",
        deadline=parse_datetime(record.get("Date")),
        opportunity_id=record.get("opportunityID"),
        full_description=record.get("description"),
        created_at=parse_datetime(record.get("Date")),
    )


def map_resource_record(record: AirtableRecord) -> Resource:
    return Resource(
        id=record.id,
        title=record.get("Resource_Name") or "",
        description=record.first("Full_Description", "aisummary", "snippet", default=""),
        category=record.get("Resource_Type") or "benefits",
        url=record.get("Forms_Links") or "",
        availability=record.get("Update_Cadence") or "always",
        cost="free",
    )


def map_search_resource(record: AirtableRecord) -> Resource:
    return Resource(
        id=record.id,
        title=record.first("Resource_Name", "title", default="Untitled Resource"),
        description=record.first(
            "aisummary", "Full_Description", default="No description available"
        ),
        category=record.get("Resource_Type") or "Support",
        type=record.get("Resource_Type") or "Resource",
        cost=normalize_cost(record.get("cost") or "free"),
        url=record.first("Forms_Links", "url", default=""),
        availability="Available",
        metadata={
            "lastReviewed": record.get("Last_Reviewed"),
            "updateCadence": record.get("Update_Cadence"),
            "snippet": record.get("snippet"),
        },
    )


def map_user_match(record: AirtableRecord) -> UserMatch:
    return UserMatch(
        id=record.id,
        opportunity_id=record.first("opportunity_id", "OpportunityID"),
        match_score=_to_float(record.first("match_score", "score")) or 0.0,
        match_reason=record.first("match_reason", "reason", default=""),
        created_at=parse_datetime(record.first("created_at", "timestamp")),
    )
