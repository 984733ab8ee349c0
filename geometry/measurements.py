"""
Measurement and coordinate conversion utilities
"""

from geometry.primitives import (
    bounding_box_from_polygon, polygon_area, polygon_perimeter, polygon_centroid
)


def center_to_canvas(pixel_x, pixel_y, pixel_width, pixel_height):
    """
    Convert detector center-based coordinates to a top-left box.

    Args:
        pixel_x: Center X
        pixel_y: Center Y
        pixel_width: Width in pixels
        pixel_height: Height in pixels

    Returns:
        Dict with x, y (top-left), width, height
    """
    return {
        'x': pixel_x - pixel_width / 2,
        'y': pixel_y - pixel_height / 2,
        'width': pixel_width,
        'height': pixel_height
    }


def pixel_length_to_lf(length_px, pixels_per_foot=None):
    """
    Convert a pixel length to linear feet.

    Without a usable scale the value stays in pixels.
    """
    if not pixels_per_foot or pixels_per_foot <= 0:
        return length_px
    return length_px / pixels_per_foot


def pixel_area_to_sf(area_px, pixels_per_foot=None):
    """
    Convert a pixel area to square feet.

    Without a usable scale the value stays in square pixels.
    """
    if not pixels_per_foot or pixels_per_foot <= 0:
        return area_px
    return area_px / (pixels_per_foot ** 2)


def polygon_measurements(points, pixels_per_foot=None):
    """
    Calculate all measurements for a polygon.

    Args:
        points: Polygon vertices in pixel coordinates
        pixels_per_foot: Drawing scale in pixels per foot (optional)

    Returns:
        Dict with center box fields, centroid, area/perimeter/real dimensions
        and a feet-inches dimension label when the scale is known, or None
        when there are no points
    """
    bbox = bounding_box_from_polygon(points)
    if bbox is None:
        return None

    center = bbox.center
    centroid = polygon_centroid(points)
    real_width_ft = pixel_length_to_lf(bbox.width, pixels_per_foot)
    real_height_ft = pixel_length_to_lf(bbox.height, pixels_per_foot)

    dimensions = None
    if pixels_per_foot and pixels_per_foot > 0:
        dimensions = f"{format_feet_inches(real_width_ft)} x {format_feet_inches(real_height_ft)}"

    return {
        'pixel_x': center.x,
        'pixel_y': center.y,
        'pixel_width': bbox.width,
        'pixel_height': bbox.height,
        'centroid_x': centroid.x,
        'centroid_y': centroid.y,
        'area_sf': pixel_area_to_sf(polygon_area(points), pixels_per_foot),
        'perimeter_lf': pixel_length_to_lf(polygon_perimeter(points), pixels_per_foot),
        'real_width_ft': real_width_ft,
        'real_height_ft': real_height_ft,
        'dimensions': dimensions
    }


def format_feet_inches(feet):
    """
    Format feet as feet-inches notation.

    Examples:
        3.5 → 3'-6"
        4.0 → 4'
    """
    whole_feet = int(feet)
    inches = round((feet - whole_feet) * 12)

    if inches == 12:
        return f"{whole_feet + 1}'"
    if inches == 0:
        return f"{whole_feet}'"
    return f"{whole_feet}'-{inches}\""


def format_area(area_sf):
    """Area label with SF suffix, one decimal below 10 SF."""
    if area_sf < 10:
        return f"{area_sf:.1f} SF"
    return f"{round(area_sf)} SF"
