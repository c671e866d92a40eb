"""Tests for prompt validation."""

import pytest

from promptproxy.app.services.validators import (
    MAX_PROMPT_LENGTH,
    MIN_PROMPT_LENGTH,
    ValidationResult,
    validate_prompt,
)


class TestValidatePrompt:
    """Tests for validate_prompt."""

    def test_accepts_plain_text(self):
        """A 500-character plain prompt is valid."""
        result = validate_prompt("a" * 500)
        assert result == ValidationResult(is_valid=True, error=None)

    @pytest.mark.parametrize("value", [None, "", 123, ["prompt"], {"prompt": "x"}])
    def test_rejects_missing_or_non_string(self, value):
        result = validate_prompt(value)
        assert result.is_valid is False
        assert result.error == "Prompt is required and must be a string"

    def test_rejects_two_characters(self):
        result = validate_prompt("hi")
        assert result.is_valid is False
        assert result.error == f"Prompt must be at least {MIN_PROMPT_LENGTH} characters long"

    def test_min_length_uses_trimmed_text(self):
        """Whitespace padding does not count towards the minimum."""
        result = validate_prompt("   hi   ")
        assert result.is_valid is False
        assert "at least 3" in result.error

    def test_accepts_exact_bounds(self):
        assert validate_prompt("abc").is_valid is True
        assert validate_prompt("a" * MAX_PROMPT_LENGTH).is_valid is True

    def test_rejects_over_max_length(self):
        result = validate_prompt("a" * (MAX_PROMPT_LENGTH + 1))
        assert result.is_valid is False
        assert result.error == f"Prompt must not exceed {MAX_PROMPT_LENGTH} characters"

    def test_max_length_uses_trimmed_text(self):
        assert validate_prompt("  " + "a" * MAX_PROMPT_LENGTH + "  ").is_valid is True

    @pytest.mark.parametrize(
        "prompt",
        [
            "<script>alert(1)</script>",
            "Summarize this <script>alert(1)</script> please",
            "<SCRIPT src='x.js'>steal()</SCRIPT>",
            "<script>\nalert(1)\n</script>",
            "click javascript:alert(1)",
            "<img src=x onerror=alert(1)>",
            "<div onClick = 'go()'>",
            "<iframe src='https://example.com'>",
            "run eval(payload) now",
            "width: expression(alert(1))",
        ],
    )
    def test_rejects_dangerous_patterns(self, prompt):
        result = validate_prompt(prompt)
        assert result.is_valid is False
        assert result.error == "Prompt contains potentially malicious content"

    def test_length_checked_before_patterns(self):
        """Oversized input reports the length error even if it also matches a pattern."""
        prompt = "<script>alert(1)</script>" + "a" * MAX_PROMPT_LENGTH
        result = validate_prompt(prompt)
        assert "must not exceed" in result.error

    def test_plain_assignment_text_is_allowed(self):
        """Words merely containing 'on' before '=' are not event handlers."""
        assert validate_prompt("Explain why condition = true in this loop").is_valid is True

    def test_idempotent(self):
        """Repeated calls on the same input give identical results."""
        for prompt in ["Write a haiku about autumn", "<iframe>", "hi"]:
            assert validate_prompt(prompt) == validate_prompt(prompt)
