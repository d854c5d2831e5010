"""Regex PII detection, masking (for logs) and redaction (for storage)."""

import re
from typing import Any

PII_PATTERNS: dict[str, re.Pattern] = {
    "ssn": re.compile(r"\b\d{3}-?\d{2}-?\d{4}\b"),
    "phone": re.compile(r"\b\d{3}[-.]?\d{3}[-.]?\d{4}\b"),
    "email": re.compile(r"\b[A-Za-z0-9._%+-]+@[A-Za-z0-9.-]+\.[A-Za-z]{2,}\b"),
    "creditCard": re.compile(r"\b\d{4}[-\s]?\d{4}[-\s]?\d{4}[-\s]?\d{4}\b"),
    "address": re.compile(
        r"\b\d+\s+[A-Za-z\s]+(?:Street|St|Avenue|Ave|Road|Rd|Boulevard|Blvd|Lane|Ln|Drive|Dr)\b",
        re.IGNORECASE,
    ),
    "militaryId": re.compile(r"\b[A-Z]{2}\d{8}\b"),
}

REDACTED = "[REDACTED]"


def _mask_match(pii_type: str, value: str) -> str:
    if pii_type == "email":
        local, _, domain = value.partition("@")
        return f"{local[:1]}***@{domain}"
    if pii_type == "ssn":
        return "XXX-XX-" + value[-4:]
    if pii_type == "phone":
        return "XXX-XXX-" + value[-4:]
    if pii_type == "creditCard":
        return "**** **** **** " + value[-4:]
    return "*" * len(value)


class PIIProtector:
    @staticmethod
    def detect_pii(text: str) -> list[dict[str, Any]]:
        """
        Find every PII match, grouped by pattern in declaration order.

        Matches from different patterns may overlap (a bare 9-digit number
        is both a possible SSN and part of a phone number).
        """
        detected = []
        for pii_type, pattern in PII_PATTERNS.items():
            for match in pattern.finditer(text):
                detected.append(
                    {
                        "type": pii_type,
                        "value": match.group(0),
                        "start": match.start(),
                        "end": match.end(),
                    }
                )
        return detected

    @staticmethod
    def contains_pii(text: str) -> bool:
        return any(pattern.search(text) for pattern in PII_PATTERNS.values())

    @staticmethod
    def mask_pii(text: str) -> str:
        # Patterns run sequentially on the already-masked text
        masked = text
        for pii_type, pattern in PII_PATTERNS.items():
            masked = pattern.sub(lambda m, t=pii_type: _mask_match(t, m.group(0)), masked)
        return masked

    @staticmethod
    def redact_pii(text: str) -> str:
        redacted = text
        for pattern in PII_PATTERNS.values():
            redacted = pattern.sub(REDACTED, redacted)
        return redacted
