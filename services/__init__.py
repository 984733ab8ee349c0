"""
Services module exports
"""

from services.detection_service import (
    Detection,
    DetectorFormat,
    PolygonStatus,
    PolygonExtraction,
    RawDetectorOutput,
    normalize_class,
    normalize_center_box,
    normalize_center_boxes,
    extract_polygon,
    detection_from_polygon,
    normalize_polygon,
    normalize_detector_output,
    normalize_payload,
    to_renderable
)
from services.region_service import filter_by_region
from services.markup_service import (
    MarkupRenderError,
    load_image,
    prepare_detections,
    render_markup,
    render_markup_png,
    render_markup_from_url,
    render_markup_bundle,
    elevation_header,
    markup_filename
)

__all__ = [
    # Normalization
    'Detection',
    'DetectorFormat',
    'PolygonStatus',
    'PolygonExtraction',
    'RawDetectorOutput',
    'normalize_class',
    'normalize_center_box',
    'normalize_center_boxes',
    'extract_polygon',
    'detection_from_polygon',
    'normalize_polygon',
    'normalize_detector_output',
    'normalize_payload',
    'to_renderable',

    # Region
    'filter_by_region',

    # Markup
    'MarkupRenderError',
    'load_image',
    'prepare_detections',
    'render_markup',
    'render_markup_png',
    'render_markup_from_url',
    'render_markup_bundle',
    'elevation_header',
    'markup_filename'
]
