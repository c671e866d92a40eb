"""Business services: validation, rate limiting and the optimization gateway."""

from promptproxy.app.services.optimization import (
    OptimizationGateway,
    OptimizationOutcome,
    classify_provider_error,
)
from promptproxy.app.services.validators import ValidationResult, validate_prompt

__all__ = [
    "OptimizationGateway",
    "OptimizationOutcome",
    "classify_provider_error",
    "ValidationResult",
    "validate_prompt",
]
