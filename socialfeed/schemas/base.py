"""Shared schema base and validators."""

import re

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

# Markup that would turn into active content when rendered by a client
PROHIBITED_PATTERNS = (
    re.compile(r"<script", re.IGNORECASE),
    re.compile(r"javascript:", re.IGNORECASE),
    re.compile(r"vbscript:", re.IGNORECASE),
    re.compile(r"onload=", re.IGNORECASE),
    re.compile(r"onerror=", re.IGNORECASE),
)


class APIModel(BaseModel):
    """Base for request and response bodies; fields are exposed in camelCase."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


def validate_message(value: str, max_length: int, label: str = "Message") -> str:
    """Reject empty, oversized or unsafe message text."""
    if not value.strip():
        raise ValueError(f"{label} cannot be empty")
    if len(value) > max_length:
        raise ValueError(f"{label} must be {max_length} characters or less")
    for pattern in PROHIBITED_PATTERNS:
        if pattern.search(value):
            raise ValueError(f"{label} contains prohibited content")
    return value
