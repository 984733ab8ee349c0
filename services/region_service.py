"""
Region filtering service.

Scopes raw detector predictions to a user-drawn rectangle. Membership uses
the prediction's CENTER point only, so a large detection straddling a small
selection is left out when its center falls outside.
"""

import math
from typing import List

from config import config
from geometry.primitives import Point, point_in_rect
from services.detection_service import Detection, normalize_center_box
from utils.validation import validate_region, validate_confidence_threshold

REGION_SOURCE = 'region_detect'


def filter_by_region(predictions, region, confidence_threshold=None,
                     min_region_size=None) -> List[Detection]:
    """
    Select predictions inside a region and above a confidence threshold.

    Args:
        predictions: Raw Roboflow predictions (center-based x/y)
        region: Region or {x, y, width, height}
        confidence_threshold: Minimum confidence; equal to threshold passes
        min_region_size: Minimum region width/height (defaults to config)

    Returns:
        New Detections tagged as region-derived, each with a fresh id

    Raises:
        RegionValidationError: region smaller than the minimum size
    """
    region = validate_region(region, min_region_size)
    threshold = validate_confidence_threshold(
        config.DEFAULT_CONFIDENCE_THRESHOLD if confidence_threshold is None else confidence_threshold
    )

    detections = []
    for pred in predictions or []:
        if not isinstance(pred, dict):
            continue
        try:
            confidence = float(pred.get('confidence', 0))
            center = Point(float(pred.get('x', 0)), float(pred.get('y', 0)))
        except (TypeError, ValueError):
            print(f"[detect-region] Skipping unreadable prediction: {pred}", flush=True)
            continue

        if not all(math.isfinite(v) for v in (confidence, center.x, center.y)):
            print(f"[detect-region] Skipping non-finite prediction: {pred}", flush=True)
            continue
        if not confidence >= threshold or not point_in_rect(center, region):
            continue

        try:
            detections.append(normalize_center_box(pred, source=REGION_SOURCE))
        except (TypeError, ValueError, OverflowError):
            print(f"[detect-region] Skipping unreadable prediction: {pred}", flush=True)

    print(f"[detect-region] Filtered {len(detections)} of {len(predictions or [])} detections in region", flush=True)
    return detections
