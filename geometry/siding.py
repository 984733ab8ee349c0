"""
Net siding area calculations.

Gross facade area comes from the exterior building polygon; every hole
(window, door, garage opening...) is subtracted to get the net area of
cladding to install. Holes are assigned to a building upstream, a hole is
never shared between buildings.

FORMULA: Net Siding = Gross Facade - Openings (floored at 0)
"""

import math
from dataclasses import dataclass, field, replace
from typing import Dict, List, Optional

from geometry.primitives import (
    Point, polygon_area, to_points, is_valid_polygon, rect_to_polygon_points
)
from geometry.measurements import pixel_area_to_sf, polygon_measurements, format_area


class SidingGeometryError(ValueError):
    """Building or hole geometry that cannot be measured"""


@dataclass
class SidingHole:
    """An opening cut out of a building's facade"""
    hole_class: str
    points: List[Point]
    area_sf: float = 0.0

    def to_dict(self) -> Dict:
        return {
            'class': self.hole_class,
            'points': [[p.x, p.y] for p in self.points],
            'area_sf': round(self.area_sf, 2)
        }


@dataclass
class SidingSummary:
    """Area totals for one building"""
    building_sf: float
    roof_sf: float
    gross_facade_sf: float
    openings_sf: float
    net_siding_sf: float
    opening_count: int

    def to_dict(self) -> Dict:
        gross = round(self.gross_facade_sf, 2)
        openings = round(self.openings_sf, 2)
        # net == max(0, gross - openings) on the serialized values
        net = round(max(0.0, gross - openings), 2)
        return {
            'building_sf': round(self.building_sf, 2),
            'roof_sf': round(self.roof_sf, 2),
            'gross_facade_sf': gross,
            'openings_sf': openings,
            'net_siding_sf': net,
            'net_siding_label': format_area(net),
            'opening_count': self.opening_count
        }


@dataclass
class SidingPolygon:
    """Exterior outline, its holes and the resulting summary"""
    building_id: str
    exterior: List[Point]
    holes: List[SidingHole] = field(default_factory=list)
    summary: Optional[SidingSummary] = None
    measurements: Optional[Dict] = None

    def to_dict(self) -> Dict:
        measurements = None
        if self.measurements:
            measurements = {
                k: round(v, 2) if isinstance(v, float) else v
                for k, v in self.measurements.items()
            }
        summary = self.summary.to_dict() if self.summary else None
        return {
            'building_id': self.building_id,
            'exterior': {
                'points': [[p.x, p.y] for p in self.exterior],
                'gross_facade_sf': summary['gross_facade_sf'] if summary else 0,
                'measurements': measurements
            },
            'holes': [h.to_dict() for h in self.holes],
            'summary': summary
        }


def _parse_points(raw, label) -> List[Point]:
    try:
        points = to_points(raw)
    except (TypeError, ValueError, KeyError, IndexError):
        raise SidingGeometryError(f"{label} must be a list of {{x, y}} objects or [x, y] pairs")
    if not all(math.isfinite(p.x) and math.isfinite(p.y) for p in points):
        raise SidingGeometryError(f"{label} must contain finite coordinates")
    return points


def parse_hole(raw) -> SidingHole:
    """
    Build a SidingHole from request JSON.

    Accepts {"class": ..., "points": [...]}, a detection box
    {"class", "pixel_x", "pixel_y", "pixel_width", "pixel_height"} or a bare
    point list (class defaults to "opening"). SidingHole inputs are copied.
    """
    if isinstance(raw, SidingHole):
        return replace(raw, points=list(raw.points))

    if isinstance(raw, dict):
        hole_class = str(raw.get('class') or 'opening')
        if 'points' not in raw and 'pixel_x' in raw:
            try:
                points = rect_to_polygon_points(
                    float(raw['pixel_x']), float(raw['pixel_y']),
                    float(raw['pixel_width']), float(raw['pixel_height'])
                )
            except (TypeError, ValueError, KeyError):
                raise SidingGeometryError("hole box needs numeric pixel_x, pixel_y, pixel_width, pixel_height")
            return SidingHole(hole_class=hole_class, points=points)
        return SidingHole(hole_class=hole_class, points=_parse_points(raw.get('points'), 'hole points'))

    if isinstance(raw, (list, tuple)):
        return SidingHole(hole_class='opening', points=_parse_points(raw, 'hole points'))

    raise SidingGeometryError(f"Unsupported hole: {raw!r}")


def measure_holes(holes, pixels_per_foot=None) -> List[SidingHole]:
    """New SidingHoles with area_sf filled in; the inputs are left untouched."""
    measured = []
    for raw in holes or []:
        hole = parse_hole(raw)
        measured.append(replace(hole, area_sf=pixel_area_to_sf(polygon_area(hole.points), pixels_per_foot)))
    return measured


def compute_siding_summary(exterior, holes, pixels_per_foot=None,
                           building_sf=None, roof_sf=0.0) -> SidingSummary:
    """
    Compute gross, openings and net siding area for one building.

    Args:
        exterior: Exterior polygon points
        holes: List of SidingHole (or hole JSON); not modified
        pixels_per_foot: Drawing scale; areas stay in square pixels without it
        building_sf: Whole-building area if known (defaults to gross facade)
        roof_sf: Roof area reported alongside the facade

    Returns:
        SidingSummary
    """
    gross_facade_sf = pixel_area_to_sf(polygon_area(exterior), pixels_per_foot)
    measured = measure_holes(holes, pixels_per_foot)
    openings_sf = sum(h.area_sf for h in measured)

    # Openings larger than the facade mean bad upstream data, not negative material
    net_siding_sf = max(0.0, gross_facade_sf - openings_sf)

    return SidingSummary(
        building_sf=gross_facade_sf if building_sf is None else float(building_sf),
        roof_sf=float(roof_sf or 0.0),
        gross_facade_sf=gross_facade_sf,
        openings_sf=openings_sf,
        net_siding_sf=net_siding_sf,
        opening_count=len(measured)
    )


def build_siding_polygon(building_id, exterior, holes=None, pixels_per_foot=None,
                         building_sf=None, roof_sf=0.0) -> SidingPolygon:
    """
    Parse one building's geometry and attach its summary.

    Raises:
        SidingGeometryError: exterior has fewer than 3 points or a hole is malformed
    """
    exterior_points = _parse_points(exterior, 'exterior')
    if not is_valid_polygon(exterior_points):
        raise SidingGeometryError("exterior needs at least 3 points")

    measured = measure_holes(holes, pixels_per_foot)
    summary = compute_siding_summary(
        exterior_points, measured, pixels_per_foot,
        building_sf=building_sf, roof_sf=roof_sf
    )

    return SidingPolygon(
        building_id=str(building_id),
        exterior=exterior_points,
        holes=measured,
        summary=summary,
        measurements=polygon_measurements(exterior_points, pixels_per_foot)
    )


def compute_page_siding(buildings, pixels_per_foot=None):
    """
    Compute siding polygons for every building on a page.

    Args:
        buildings: List of dicts with exterior, holes and optional
                   building_id, building_sf, roof_sf
        pixels_per_foot: Drawing scale shared by the page

    Returns:
        Dict with siding_polygons, page_summary and the first building's
        exterior/holes/summary under the legacy top-level keys

    Raises:
        SidingGeometryError: a building is not an object or its geometry is unusable
    """
    if buildings is not None and not isinstance(buildings, (list, tuple)):
        raise SidingGeometryError("buildings must be a list")

    polygons = []
    for idx, building in enumerate(buildings or []):
        if not isinstance(building, dict):
            raise SidingGeometryError(f"Building {idx + 1} must be an object")
        if building.get('exterior') is None:
            raise SidingGeometryError(f"Building {idx + 1} is missing its exterior polygon")
        try:
            polygons.append(build_siding_polygon(
                building.get('building_id') or f"building-{idx + 1}",
                building.get('exterior'),
                building.get('holes'),
                pixels_per_foot,
                building_sf=building.get('building_sf'),
                roof_sf=building.get('roof_sf') or 0.0
            ))
        except SidingGeometryError as e:
            raise SidingGeometryError(f"Building {idx + 1}: {e}") from e

    polygon_dicts = [p.to_dict() for p in polygons]
    summaries = [d['summary'] for d in polygon_dicts]

    page_summary = {
        'total_buildings': len(polygons),
        'total_gross_facade_sf': round(sum(s['gross_facade_sf'] for s in summaries), 2),
        'total_openings_sf': round(sum(s['openings_sf'] for s in summaries), 2),
        'total_net_siding_sf': round(sum(s['net_siding_sf'] for s in summaries), 2)
    }

    first = polygon_dicts[0] if polygon_dicts else {
        'exterior': {'points': [], 'gross_facade_sf': 0, 'measurements': None},
        'holes': [],
        'summary': SidingSummary(0.0, 0.0, 0.0, 0.0, 0.0, 0).to_dict()
    }

    return {
        'exterior': first['exterior'],
        'holes': first['holes'],
        'summary': first['summary'],
        'siding_polygons': polygon_dicts,
        'page_summary': page_summary
    }
