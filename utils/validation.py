"""
Validation utilities
"""

import math

from config import config
from geometry.primitives import Region


class ValidationError(ValueError):
    """Client input that cannot be used as given"""


class RegionValidationError(ValidationError):
    """Selected region is below the minimum size"""


def validate_region(region, min_size=None):
    """
    Check a user-drawn region and return it as a Region.

    Args:
        region: Region or {x, y, width, height} dict
        min_size: Minimum width/height in pixels (defaults to config value)

    Raises:
        RegionValidationError: region missing, malformed, non-finite or
            smaller than min_size
    """
    if min_size is None:
        min_size = config.MIN_REGION_SIZE

    if region is None:
        raise RegionValidationError("region is required")

    if isinstance(region, dict):
        try:
            region = Region.from_dict(region)
        except (TypeError, ValueError):
            raise RegionValidationError(f"Invalid region: {region}")
    elif not isinstance(region, Region):
        raise RegionValidationError("region must be an object with x, y, width, height")

    if not all(math.isfinite(v) for v in (region.x, region.y, region.width, region.height)):
        raise RegionValidationError("region values must be finite numbers")

    if region.width < min_size or region.height < min_size:
        raise RegionValidationError(
            f"Region too small. Minimum size is {min_size}x{min_size} pixels."
        )

    return region


def validate_confidence_threshold(value):
    """Parse a confidence threshold into [0, 1], defaulting when absent."""
    if value is None:
        return config.DEFAULT_CONFIDENCE_THRESHOLD

    try:
        threshold = float(value)
    except (TypeError, ValueError):
        raise ValidationError(f"Invalid confidence_threshold: {value}")

    if not 0 <= threshold <= 1:
        raise ValidationError("confidence_threshold must be between 0 and 1")
    return threshold


def require_fields(data, *fields):
    """Raise ValidationError naming every missing field"""
    missing = [f for f in fields if not (data or {}).get(f)]
    if missing:
        raise ValidationError(f"{', '.join(missing)} required")
