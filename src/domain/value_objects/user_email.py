"""
UserEmail Value Object - Wraps user email with validation.
"""

import re
from dataclasses import dataclass

_EMAIL_RE = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")


@dataclass(frozen=True)
class UserEmail:
    value: str

    def __post_init__(self):
        if not self.value or not _EMAIL_RE.match(self.value):
            raise ValueError(f"Invalid user email: {self.value}")

    def __str__(self) -> str:
        return self.value
