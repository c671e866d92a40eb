"""Prompt validation.

Checks untrusted input before it is forwarded to a paid model API.
"""

import re
from dataclasses import dataclass
from typing import Any, List, Optional, Pattern

MIN_PROMPT_LENGTH = 3
MAX_PROMPT_LENGTH = 5000

# Markup and script injection markers
DANGEROUS_PATTERNS: List[Pattern[str]] = [
    re.compile(r"<script[^>]*>.*?</script>", re.IGNORECASE | re.DOTALL),
    re.compile(r"javascript:", re.IGNORECASE),
    re.compile(r"\bon\w+\s*=", re.IGNORECASE),
    re.compile(r"<iframe", re.IGNORECASE),
    re.compile(r"eval\(", re.IGNORECASE),
    re.compile(r"expression\(", re.IGNORECASE),
]


@dataclass(frozen=True)
class ValidationResult:
    """Outcome of a single validation call."""
    is_valid: bool
    error: Optional[str] = None


def validate_prompt(prompt: Any) -> ValidationResult:
    """Validate a candidate prompt.

    Checks run in order: presence and type, minimum length, maximum
    length, dangerous patterns. The first failing check decides the
    error message.

    Args:
        prompt: Raw value taken from the request body

    Returns:
        ValidationResult; ``error`` is safe to show to the client
    """
    if not prompt or not isinstance(prompt, str):
        return ValidationResult(False, "Prompt is required and must be a string")

    trimmed = prompt.strip()

    if len(trimmed) < MIN_PROMPT_LENGTH:
        return ValidationResult(
            False, f"Prompt must be at least {MIN_PROMPT_LENGTH} characters long"
        )

    if len(trimmed) > MAX_PROMPT_LENGTH:
        return ValidationResult(
            False, f"Prompt must not exceed {MAX_PROMPT_LENGTH} characters"
        )

    for pattern in DANGEROUS_PATTERNS:
        if pattern.search(trimmed):
            return ValidationResult(False, "Prompt contains potentially malicious content")

    return ValidationResult(True)
