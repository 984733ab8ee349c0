"""
Utils module exports
"""

from utils.validation import (
    ValidationError,
    RegionValidationError,
    validate_region,
    validate_confidence_threshold,
    require_fields
)

__all__ = [
    'ValidationError',
    'RegionValidationError',
    'validate_region',
    'validate_confidence_threshold',
    'require_fields'
]
