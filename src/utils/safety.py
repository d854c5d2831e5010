from __future__ import annotations
import re
from typing import Dict, Iterable, List

# --- 1) Markup that must never reach prompts or storage ---
STRIP_PATTERNS = [
    r"[<>]",
    r"javascript:",
    r"on\w+=",
]
STRIP_RE = re.compile("|".join(STRIP_PATTERNS), re.IGNORECASE)

# --- 2) Malicious content heuristics, by category ---
MALICIOUS_PATTERNS: Dict[str, List[str]] = {
    "script_injection": [
        r"<script",
        r"javascript:",
        r"vbscript:",
    ],
    "event_handlers": [
        r"onload=",
        r"onerror=",
    ],
    "code_execution": [
        r"eval\(",
    ],
    "browser_state": [
        r"document\.cookie",
        r"window\.location",
    ],
}

COMPILED_PATTERNS: Dict[str, re.Pattern] = {
    category: re.compile("|".join(patterns), re.IGNORECASE)
    for category, patterns in MALICIOUS_PATTERNS.items()
}

EMAIL_RE = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")


class InputValidator:
    @staticmethod
    def sanitize_input(text: str) -> str:
        """Remove angle brackets, `javascript:` and inline event handlers, then trim."""
        return STRIP_RE.sub("", text).strip()

    @staticmethod
    def is_valid_email(email: str) -> bool:
        return bool(EMAIL_RE.match(email or ""))

    @staticmethod
    def is_allowed_file_type(filename: str, allowed_types: Iterable[str]) -> bool:
        if "." not in filename:
            return False
        extension = filename.rsplit(".", 1)[-1].lower()
        return bool(extension) and extension in set(allowed_types)

    @staticmethod
    def is_valid_file_size(size: int, max_size: int) -> bool:
        return size <= max_size

    @staticmethod
    def malicious_category(content: str) -> str:
        """Return the first matching category name, or "" when clean."""
        if not content:
            return ""
        for category, pattern in COMPILED_PATTERNS.items():
            if pattern.search(content):
                return category
        return ""

    @classmethod
    def contains_malicious_content(cls, content: str) -> bool:
        return bool(cls.malicious_category(content))
