# flowhub/api.py
"""
The two entry points offered to the surrounding service.

    result = validate(document)
    if result.valid:
        digest = canonicalize_and_fingerprint(result.workflow)   # or the raw document
"""
from __future__ import annotations

from typing import Any, Union

from flowhub.canonical.canonicalizer import canonicalize
from flowhub.canonical.fingerprint import fingerprint
from flowhub.config import DEFAULT_LIMITS, ValidationLimits
from flowhub.errors import WorkflowPreconditionError
from flowhub.structural.validator import ValidatedWorkflow, ValidationResult
from flowhub.structural.validator import validate as _validate

__all__ = ["validate", "canonicalize_and_fingerprint", "ValidationResult", "ValidatedWorkflow"]


def validate(document: Any, limits: ValidationLimits = DEFAULT_LIMITS) -> ValidationResult:
    return _validate(document, limits)


def canonicalize_and_fingerprint(
    document: Union[ValidatedWorkflow, Any],
    limits: ValidationLimits = DEFAULT_LIMITS,
) -> str:
    """
    Hex SHA-256 fingerprint of a workflow.

    Accepts the ValidatedWorkflow from a successful `validate`, or a raw
    document, which is validated first. An invalid document raises
    WorkflowPreconditionError instead of producing a digest.
    """
    if not isinstance(document, ValidatedWorkflow):
        result = _validate(document, limits)
        if not result.valid:
            raise WorkflowPreconditionError(f"cannot fingerprint an invalid workflow: {result.error}")
        document = result.workflow
    return fingerprint(canonicalize(document))
