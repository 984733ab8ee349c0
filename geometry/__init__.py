"""
Geometry module exports
"""

from geometry.primitives import (
    Point, BoundingBox, Region,
    to_point, to_points, is_valid_polygon,
    bounding_box_from_polygon, point_in_rect,
    polygon_area, polygon_perimeter, polygon_centroid,
    rect_to_polygon_points
)
from geometry.measurements import (
    center_to_canvas,
    pixel_area_to_sf, pixel_length_to_lf,
    polygon_measurements,
    format_feet_inches, format_area
)
from geometry.siding import (
    SidingGeometryError, SidingHole, SidingSummary, SidingPolygon,
    measure_holes, compute_siding_summary, build_siding_polygon, compute_page_siding
)

__all__ = [
    # Primitives
    'Point', 'BoundingBox', 'Region',
    'to_point', 'to_points', 'is_valid_polygon',
    'bounding_box_from_polygon', 'point_in_rect',
    'polygon_area', 'polygon_perimeter', 'polygon_centroid',
    'rect_to_polygon_points',

    # Measurements
    'center_to_canvas',
    'pixel_area_to_sf', 'pixel_length_to_lf',
    'polygon_measurements',
    'format_feet_inches', 'format_area',

    # Net siding area
    'SidingGeometryError', 'SidingHole', 'SidingSummary', 'SidingPolygon',
    'measure_holes', 'compute_siding_summary', 'build_siding_polygon', 'compute_page_siding'
]
