"""
Detection normalization service.

Every detector speaks its own format: Roboflow returns center-based boxes
(optionally with polygon points), SAM-style segmenters return point arrays,
contour lists or raw masks. This module converts all of them into one
canonical Detection record that the rest of the pipeline works with.

Pixel coordinates on a Detection are always CENTER based (Roboflow
convention), regardless of which detector produced it.
"""

import math
import re
import uuid
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, List, Optional

from geometry.primitives import Point, bounding_box_from_polygon, to_points
from utils.validation import ValidationError


class DetectorFormat(str, Enum):
    """Raw output shapes accepted at the ingestion boundary"""
    CENTER_BOX = "center_box"  # Roboflow-style {x, y, width, height, class, confidence}
    POLYGON = "polygon"        # SAM-style point arrays / contours / masks


class PolygonStatus(str, Enum):
    """Outcome of pulling a polygon out of segmenter output"""
    OK = "ok"
    EMPTY = "empty"
    MASK_UNSUPPORTED = "mask_unsupported"  # Raw RLE/bitmap mask without a contour
    UNRECOGNIZED = "unrecognized"


@dataclass
class PolygonExtraction:
    """Points extracted from segmenter output plus how we got them"""
    points: List[Point]
    status: PolygonStatus

    @property
    def ok(self) -> bool:
        return self.status == PolygonStatus.OK


@dataclass
class RawDetectorOutput:
    """Tagged detector payload"""
    format: DetectorFormat
    payload: Any
    source: str = "roboflow"
    detection_class: Optional[str] = None  # Class for polygon outputs (segmenters are class-agnostic)


@dataclass
class Detection:
    """Canonical detection record"""
    id: str
    detection_class: str
    confidence: float
    pixel_x: float  # Center X
    pixel_y: float  # Center Y
    pixel_width: float
    pixel_height: float
    source: str
    polygon_points: Optional[List[Point]] = None

    def to_dict(self) -> Dict:
        data = {
            'id': self.id,
            'class': self.detection_class,
            'confidence': self.confidence,
            'pixel_x': self.pixel_x,
            'pixel_y': self.pixel_y,
            'pixel_width': self.pixel_width,
            'pixel_height': self.pixel_height,
            'source': self.source
        }
        if self.polygon_points:
            data['polygon_points'] = [p.to_dict() for p in self.polygon_points]
        return data


_WHITESPACE = re.compile(r'\s+')


def normalize_class(raw_class) -> str:
    """
    Canonical class key: lowercase, whitespace runs collapsed to underscores.

    "Hardie  Plank" → "hardie_plank"; missing labels become "unknown".
    """
    if not raw_class or not isinstance(raw_class, str):
        return 'unknown'
    cleaned = raw_class.strip().lower()
    if not cleaned:
        return 'unknown'
    return _WHITESPACE.sub('_', cleaned)


def generate_detection_id(source) -> str:
    """Source-prefixed UUID so provenance stays traceable"""
    return f"{source}-{uuid.uuid4()}"


def detect_format(payload) -> Optional[DetectorFormat]:
    """
    Infer the format of untagged detector JSON.

    A list of dicts carrying a class label (or the Roboflow response envelope)
    is center-box output; any other list/dict is treated as segmenter output.
    """
    if isinstance(payload, dict) and isinstance(payload.get('predictions'), list):
        return DetectorFormat.CENTER_BOX
    if isinstance(payload, list) and payload and isinstance(payload[0], dict) \
            and 'class' in payload[0]:
        return DetectorFormat.CENTER_BOX
    if isinstance(payload, (list, dict)) and payload:
        return DetectorFormat.POLYGON
    return None


# ============================================
# CENTER-BOX (Roboflow) PREDICTIONS
# ============================================

def normalize_center_box(pred, source='roboflow') -> Detection:
    """
    Normalize a single Roboflow prediction.

    Args:
        pred: {x, y, width, height, class, confidence, points?} with (x, y) the center
        source: Provenance tag

    Returns:
        Detection with integer-rounded geometry
    """
    points = to_points(pred.get('points'))

    return Detection(
        id=generate_detection_id(source),
        detection_class=normalize_class(pred.get('class')),
        confidence=float(pred.get('confidence', 0)),
        pixel_x=round(float(pred.get('x', 0))),
        pixel_y=round(float(pred.get('y', 0))),
        pixel_width=round(float(pred.get('width', 0))),
        pixel_height=round(float(pred.get('height', 0))),
        source=source,
        polygon_points=points or None
    )


def normalize_center_boxes(predictions, source='roboflow') -> List[Detection]:
    """Normalize a list of predictions, skipping entries that cannot be read"""
    if isinstance(predictions, dict):
        predictions = predictions.get('predictions', [])
    if not isinstance(predictions, list):
        print(f"[normalize] Expected prediction list, got {type(predictions).__name__}", flush=True)
        return []

    detections = []
    for idx, pred in enumerate(predictions):
        if not isinstance(pred, dict):
            print(f"[normalize] Skipping prediction {idx}: not an object", flush=True)
            continue
        try:
            detections.append(normalize_center_box(pred, source))
        except (TypeError, ValueError, KeyError, IndexError, OverflowError) as e:
            print(f"[normalize] Skipping prediction {idx}: {e}", flush=True)

    return detections


# ============================================
# POLYGON / CONTOUR (SAM) OUTPUT
# ============================================

def _is_pair(value) -> bool:
    return isinstance(value, (list, tuple)) and len(value) == 2


def extract_polygon(output) -> PolygonExtraction:
    """
    Pull polygon points out of segmenter output.

    Resolution order:
        1. list of {x, y} objects
        2. list of [x, y] pairs
        3. object with "contours" → first contour (positional, not largest)
        4. object with "polygon"
        5. object with only "mask"/"masks" → MASK_UNSUPPORTED (no decoding)
    """
    if not output:
        return PolygonExtraction([], PolygonStatus.EMPTY)

    try:
        if isinstance(output, list):
            first = output[0]
            if isinstance(first, dict) and 'x' in first:
                return PolygonExtraction(to_points(output), PolygonStatus.OK)
            if _is_pair(first):
                return PolygonExtraction(to_points(output), PolygonStatus.OK)

        elif isinstance(output, dict):
            contours = output.get('contours')
            if isinstance(contours, list):
                contour = contours[0] if contours else None
                if isinstance(contour, list) and contour:
                    return PolygonExtraction(to_points(contour), PolygonStatus.OK)
                return PolygonExtraction([], PolygonStatus.EMPTY)

            polygon = output.get('polygon')
            if isinstance(polygon, list):
                status = PolygonStatus.OK if polygon else PolygonStatus.EMPTY
                return PolygonExtraction(to_points(polygon), status)

            if output.get('mask') is not None or output.get('masks') is not None:
                print("[normalize] Received mask without contour, polygon extraction not supported", flush=True)
                return PolygonExtraction([], PolygonStatus.MASK_UNSUPPORTED)

    except (TypeError, ValueError, KeyError, IndexError) as e:
        print(f"[normalize] Malformed polygon output: {e}", flush=True)
        return PolygonExtraction([], PolygonStatus.UNRECOGNIZED)

    print(f"[normalize] Unknown output format: {type(output).__name__}", flush=True)
    return PolygonExtraction([], PolygonStatus.UNRECOGNIZED)


def detection_from_polygon(points, source='sam', detection_class=None) -> Optional[Detection]:
    """
    Build a Detection around polygon points.

    The box fields are derived from the polygon's extents (converted to
    center-based), confidence is 1.0 because the shape was click-confirmed.
    """
    bbox = bounding_box_from_polygon(points)
    if bbox is None:
        return None

    center = bbox.center
    return Detection(
        id=generate_detection_id(source),
        detection_class=normalize_class(detection_class),
        confidence=1.0,
        pixel_x=center.x,
        pixel_y=center.y,
        pixel_width=bbox.width,
        pixel_height=bbox.height,
        source=source,
        polygon_points=to_points(points)
    )


def normalize_polygon(output, source='sam', detection_class=None) -> List[Detection]:
    """Normalize segmenter output into at most one Detection."""
    extraction = extract_polygon(output)
    if not extraction.ok:
        print(f"[normalize] No polygon points ({extraction.status.value})", flush=True)
        return []

    detection = detection_from_polygon(extraction.points, source, detection_class)
    return [detection] if detection else []


# ============================================
# DISPATCH
# ============================================

def normalize_detector_output(raw: RawDetectorOutput) -> List[Detection]:
    """
    Normalize any tagged detector output to canonical Detections.

    Never raises for malformed shape data, unreadable output degrades to
    an empty list with a logged diagnostic.
    """
    if raw.format == DetectorFormat.CENTER_BOX:
        return normalize_center_boxes(raw.payload, raw.source)
    if raw.format == DetectorFormat.POLYGON:
        return normalize_polygon(raw.payload, raw.source, raw.detection_class)

    print(f"[normalize] Unsupported detector format: {raw.format}", flush=True)
    return []


def normalize_payload(payload, source=None, detection_class=None, fmt=None) -> List[Detection]:
    """
    Normalize untagged JSON, inferring the format when none is given.

    Args:
        payload: Raw detector JSON
        source: Provenance tag (defaults per format)
        detection_class: Class for polygon outputs
        fmt: DetectorFormat or its string value

    Returns:
        List of Detection (empty when the shape is unknown)
    """
    if fmt is not None:
        try:
            fmt = DetectorFormat(fmt)
        except ValueError:
            print(f"[normalize] Unknown format tag: {fmt}", flush=True)
            return []
    else:
        fmt = detect_format(payload)

    if fmt is None:
        print("[normalize] Empty or unknown detector output", flush=True)
        return []

    if source is None:
        source = 'roboflow' if fmt == DetectorFormat.CENTER_BOX else 'sam'

    return normalize_detector_output(RawDetectorOutput(
        format=fmt, payload=payload, source=source, detection_class=detection_class
    ))


def _finite_number(detection, key, idx):
    try:
        value = float(detection.get(key, 0))
    except (TypeError, ValueError):
        raise ValidationError(f"Detection {idx}: {key} must be a number")
    if not math.isfinite(value):
        raise ValidationError(f"Detection {idx}: {key} must be finite")
    return value


def to_renderable(detection, idx=0) -> Dict:
    """
    Project a Detection (or detection dict) onto the fields the renderer uses.

    Class is normalized and polygon points coerced; id, confidence and
    source are dropped.

    Raises:
        ValidationError: detection is not an object or has unusable geometry
    """
    if isinstance(detection, Detection):
        return {
            'class': detection.detection_class,
            'pixel_x': detection.pixel_x,
            'pixel_y': detection.pixel_y,
            'pixel_width': detection.pixel_width,
            'pixel_height': detection.pixel_height,
            'polygon_points': detection.polygon_points
        }

    if not isinstance(detection, dict):
        raise ValidationError(f"Detection {idx} must be an object")

    try:
        points = to_points(detection.get('polygon_points')) or None
    except (TypeError, ValueError, KeyError, IndexError):
        raise ValidationError(f"Detection {idx}: polygon_points must be {{x, y}} objects or [x, y] pairs")
    if points and not all(math.isfinite(p.x) and math.isfinite(p.y) for p in points):
        raise ValidationError(f"Detection {idx}: polygon_points must be finite")

    return {
        'class': normalize_class(detection.get('class')),
        'pixel_x': _finite_number(detection, 'pixel_x', idx),
        'pixel_y': _finite_number(detection, 'pixel_y', idx),
        'pixel_width': _finite_number(detection, 'pixel_width', idx),
        'pixel_height': _finite_number(detection, 'pixel_height', idx),
        'polygon_points': points
    }
