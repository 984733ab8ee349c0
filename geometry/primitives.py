"""
Geometry primitives: points, polygons, bounding boxes and regions.

All coordinates are image pixels with the origin at the top-left corner.
A polygon is an ordered list of points that is implicitly closed; anything
with fewer than 3 points is treated as "no shape" by area and rendering.
"""

import math
from dataclasses import dataclass
from typing import Dict, Iterable, List, NamedTuple, Optional


class Point(NamedTuple):
    """Immutable pixel-space point"""
    x: float
    y: float

    def to_dict(self) -> Dict:
        return {'x': self.x, 'y': self.y}


@dataclass(frozen=True)
class BoundingBox:
    """Axis-aligned box, (x, y) is the top-left corner"""
    x: float
    y: float
    width: float
    height: float

    @property
    def center(self) -> Point:
        return Point(self.x + self.width / 2, self.y + self.height / 2)

    def to_dict(self) -> Dict:
        return {'x': self.x, 'y': self.y, 'width': self.width, 'height': self.height}


@dataclass(frozen=True)
class Region:
    """User-drawn rectangular selection, (x, y) is the top-left corner"""
    x: float
    y: float
    width: float
    height: float

    @classmethod
    def from_dict(cls, d: Dict) -> 'Region':
        return cls(
            x=float(d.get('x', 0)),
            y=float(d.get('y', 0)),
            width=float(d.get('width', 0)),
            height=float(d.get('height', 0))
        )

    def to_dict(self) -> Dict:
        return {'x': self.x, 'y': self.y, 'width': self.width, 'height': self.height}


def to_point(raw) -> Point:
    """Coerce a {x, y} mapping, an [x, y] pair or a Point into a Point."""
    if isinstance(raw, Point):
        return raw
    if isinstance(raw, dict):
        return Point(float(raw['x']), float(raw['y']))
    x, y = raw[0], raw[1]
    return Point(float(x), float(y))


def to_points(raw_points: Optional[Iterable]) -> List[Point]:
    """Coerce a sequence of point-like values into a list of Points."""
    if not raw_points:
        return []
    return [to_point(p) for p in raw_points]


def is_valid_polygon(points) -> bool:
    """A polygon needs at least 3 points to have area or be drawn."""
    return points is not None and len(points) >= 3


def bounding_box_from_polygon(points) -> Optional[BoundingBox]:
    """
    Axis-aligned bounding box spanning all points.

    Args:
        points: Point-like values (any count)

    Returns:
        BoundingBox, or None for an empty point list
    """
    pts = to_points(points)
    if not pts:
        return None

    xs = [p.x for p in pts]
    ys = [p.y for p in pts]
    min_x, max_x = min(xs), max(xs)
    min_y, max_y = min(ys), max(ys)

    return BoundingBox(x=min_x, y=min_y, width=max_x - min_x, height=max_y - min_y)


def point_in_rect(point, rect) -> bool:
    """Inclusive containment test; points on an edge count as inside."""
    p = to_point(point)
    return (
        rect.x <= p.x <= rect.x + rect.width and
        rect.y <= p.y <= rect.y + rect.height
    )


def polygon_area(points) -> float:
    """Absolute shoelace area; 0.0 for fewer than 3 points."""
    pts = to_points(points)
    if len(pts) < 3:
        return 0.0

    area = 0.0
    n = len(pts)
    for i in range(n):
        j = (i + 1) % n
        area += pts[i].x * pts[j].y
        area -= pts[j].x * pts[i].y

    return abs(area) / 2


def polygon_perimeter(points) -> float:
    """Length of the closed outline; 0.0 for fewer than 2 points."""
    pts = to_points(points)
    if len(pts) < 2:
        return 0.0

    n = len(pts)
    return sum(math.dist(pts[i], pts[(i + 1) % n]) for i in range(n))


def polygon_centroid(points) -> Optional[Point]:
    """
    Area centroid of a polygon.

    Degenerate input (fewer than 3 points or near-zero area) falls back to
    the average of the vertices. Returns None for an empty list.
    """
    pts = to_points(points)
    if not pts:
        return None

    n = len(pts)
    avg = Point(sum(p.x for p in pts) / n, sum(p.y for p in pts) / n)
    if n < 3:
        return avg

    cx = cy = signed_area = 0.0
    for i in range(n):
        x0, y0 = pts[i]
        x1, y1 = pts[(i + 1) % n]
        a = x0 * y1 - x1 * y0
        signed_area += a
        cx += (x0 + x1) * a
        cy += (y0 + y1) * a

    signed_area *= 0.5
    if abs(signed_area) < 1e-4:
        return avg

    return Point(cx / (6 * signed_area), cy / (6 * signed_area))


def rect_to_polygon_points(pixel_x, pixel_y, pixel_width, pixel_height) -> List[Point]:
    """Corners of a center-based box, clockwise from top-left."""
    half_w = pixel_width / 2
    half_h = pixel_height / 2
    return [
        Point(pixel_x - half_w, pixel_y - half_h),
        Point(pixel_x + half_w, pixel_y - half_h),
        Point(pixel_x + half_w, pixel_y + half_h),
        Point(pixel_x - half_w, pixel_y + half_h),
    ]
