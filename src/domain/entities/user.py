"""
User Entity - A veteran account mirrored from the User Profiles table.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Optional


def default_preferences() -> dict[str, Any]:
    return {
        "language": "en",
        "timezone": "America/New_York",
        "notifications": {
            "email": True,
            "sms": False,
            "deadlineReminders": True,
            "opportunityAlerts": True,
        },
        "privacy": {
            "shareProfile": False,
            "allowAnalytics": True,
            "dataRetention": 90,
        },
        "accessibility": {
            "fontSize": "medium",
            "highContrast": False,
            "screenReader": False,
        },
    }


@dataclass
class ServiceRecord:
    branch: str = "army"
    rank: str = ""
    service_years: int = 0
    discharge_type: str = ""
    disabilities: list[str] = field(default_factory=list)
    security_clearance: str = ""


@dataclass
class User:
    id: str
    email: str
    first_name: str
    last_name: str
    created_at: datetime
    updated_at: datetime
    last_login: datetime
    subscription_status: str = "free"
    security_level: str = "standard"
    veteran_id: Optional[str] = None
    service_record: ServiceRecord = field(default_factory=ServiceRecord)
    preferences: dict[str, Any] = field(default_factory=default_preferences)

    def __post_init__(self):
        if self.security_level not in ("standard", "enhanced"):
            self.security_level = "standard"

    @property
    def requires_enhanced_security(self) -> bool:
        return self.security_level == "enhanced"

    @property
    def is_free(self) -> bool:
        return self.subscription_status.strip().lower() == "free"

    def public_view(self) -> dict[str, Any]:
        """User fields safe to hand back to the client."""
        return {
            "id": self.id,
            "email": self.email,
            "firstName": self.first_name,
            "lastName": self.last_name,
            "subscriptionStatus": self.subscription_status,
            "preferences": self.preferences,
            "securityLevel": self.security_level,
        }


@dataclass
class UserProfile:
    """Lightweight profile used for tier resolution and greetings."""

    id: str
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    email: Optional[str] = None
    subscription_status: str = "Free"
    profile_data: dict[str, Any] = field(default_factory=dict)
