"""
Cross-reference validation of a loaded domain model.
"""

from .cross_reference import (
    CrossReferenceValidator,
    Severity,
    ValidationIssue,
    ValidationResult,
    ValidatorOptions,
    validate,
)

__all__ = [
    'CrossReferenceValidator',
    'Severity',
    'ValidationIssue',
    'ValidationResult',
    'ValidatorOptions',
    'validate',
]
