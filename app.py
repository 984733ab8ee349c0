"""
Detection Geometry API
Normalizes detector output, filters detections by region, computes net
siding area and renders markup images.
"""

from flask import Flask, request, jsonify, send_file
from flask_cors import CORS
from io import BytesIO

from config import config
from core import detect_objects, segment_at_point
from geometry import compute_page_siding
from services import (
    PolygonStatus,
    filter_by_region, normalize_payload, extract_polygon, detection_from_polygon,
    render_markup_from_url, render_markup_bundle,
    elevation_header, markup_filename, MarkupRenderError
)
from utils import (
    ValidationError,
    validate_region, validate_confidence_threshold, require_fields
)

VERSION = "1.0"

SAM_STATUS_MESSAGES = {
    PolygonStatus.EMPTY: "SAM returned no polygon for this point",
    PolygonStatus.MASK_UNSUPPORTED: "SAM returned a mask without a contour; mask outputs are not supported",
    PolygonStatus.UNRECOGNIZED: "SAM returned an unrecognized output format",
}

app = Flask(__name__)
CORS(app, origins=config.CORS_ORIGINS)


@app.errorhandler(ValidationError)
def handle_validation_error(e):
    return jsonify({"success": False, "error": str(e)}), 400


def _json_body(required=False):
    """Request body as a dict; a non-object body is a validation error."""
    data = request.get_json(silent=True)
    if data is None:
        if required:
            raise ValidationError("Invalid JSON in request body")
        return {}
    if not isinstance(data, dict):
        raise ValidationError("Request body must be a JSON object")
    return data


# ============================================
# API ENDPOINTS
# ============================================

@app.route('/health', methods=['GET'])
def health():
    return jsonify({
        "status": "healthy",
        "version": VERSION,
        "services": {
            "roboflow": bool(config.ROBOFLOW_API_KEY),
            "replicate": bool(config.REPLICATE_API_TOKEN),
            "sam_enabled": config.SAM_FEATURE_ENABLED
        }
    })


@app.route('/normalize', methods=['POST'])
def normalize():
    """Normalize raw detector output into canonical detections"""
    data = _json_body()

    detections = normalize_payload(
        data.get('output'),
        source=data.get('source'),
        detection_class=data.get('class'),
        fmt=data.get('format')
    )

    return jsonify({
        "success": True,
        "detections": [d.to_dict() for d in detections],
        "detection_count": len(detections)
    })


@app.route('/detect-region', methods=['POST'])
def detect_region():
    """Run Roboflow on a page image and keep detections inside the selected region"""
    data = _json_body(required=True)

    require_fields(data, 'image_url', 'region')
    region = validate_region(data.get('region'))
    threshold = validate_confidence_threshold(data.get('confidence_threshold'))

    image_url = data['image_url']
    print(f"[detect-region] Region: {region.to_dict()}, threshold: {threshold}", flush=True)

    if not config.ROBOFLOW_API_KEY:
        print("[detect-region] ROBOFLOW_API_KEY not configured", flush=True)
        return jsonify({
            "success": False,
            "error": "Detection service not configured. Please set ROBOFLOW_API_KEY."
        }), 503

    result = detect_objects(image_url)
    if 'error' in result:
        return jsonify({"success": False, "error": f"Roboflow detection failed: {result['error']}"}), 502

    detections = filter_by_region(result.get('predictions', []), region, threshold)

    return jsonify({
        "success": True,
        "detections": [d.to_dict() for d in detections],
        "detection_count": len(detections),
        "message": f"Found {len(detections)} objects in selected region",
        "region": region.to_dict()
    })


@app.route('/sam-segment', methods=['POST'])
def sam_segment():
    """Click-to-segment with SAM, returns one polygon detection"""
    if not config.SAM_FEATURE_ENABLED:
        print("[sam-segment] Feature is currently disabled", flush=True)
        return jsonify({
            "success": False,
            "error": "SAM Magic Select is temporarily unavailable. Use the polygon or rectangle tools instead.",
            "feature_disabled": True
        }), 503

    data = _json_body()
    require_fields(data, 'image_url', 'click_point')

    click_point = data['click_point']
    try:
        click_x, click_y = float(click_point['x']), float(click_point['y'])
    except (TypeError, KeyError, ValueError):
        raise ValidationError("click_point must have numeric x and y")

    if not config.REPLICATE_API_TOKEN:
        return jsonify({
            "success": False,
            "error": "No SAM provider configured. Set REPLICATE_API_TOKEN."
        }), 503

    result = segment_at_point(data['image_url'], click_x, click_y)
    if 'error' in result:
        return jsonify({"success": False, "error": f"SAM segmentation failed: {result['error']}"}), 500

    extraction = extract_polygon(result.get('output'))
    detection = detection_from_polygon(extraction.points, 'sam', data.get('class')) if extraction.ok else None
    if detection is None:
        status = extraction.status if not extraction.ok else PolygonStatus.EMPTY
        print(f"[sam-segment] No polygon ({status.value})", flush=True)
        return jsonify({
            "success": False,
            "error": SAM_STATUS_MESSAGES[status],
            "status": status.value
        }), 422

    print(f"[sam-segment] Success! Polygon points: {len(detection.polygon_points)}", flush=True)

    return jsonify({
        "success": True,
        "detection": detection.to_dict(),
        "status": extraction.status.value,
        "source": "replicate_sam"
    })


@app.route('/siding-polygons', methods=['POST'])
def siding_polygons():
    """Net siding area per building plus page totals"""
    data = _json_body()

    buildings = data.get('buildings')
    if buildings is None and data.get('exterior') is not None:
        # Single-building shorthand
        buildings = [{'exterior': data.get('exterior'), 'holes': data.get('holes', [])}]
    if not buildings:
        raise ValidationError("buildings required")

    try:
        result = compute_page_siding(buildings, data.get('pixels_per_foot'))
    except (TypeError, ValueError) as e:
        raise ValidationError(f"Invalid polygon data: {e}")

    return jsonify({"success": True, "page_id": data.get('page_id'), **result})


@app.route('/render-markup', methods=['POST'])
def render_markup_route():
    """Render detection overlays onto a page image and return a PNG download"""
    data = _json_body()
    require_fields(data, 'image_url')

    header_label = data.get('header_label') or elevation_header(data.get('elevation_name'))
    try:
        index = int(data.get('index') or 1)
    except (TypeError, ValueError):
        raise ValidationError("index must be an integer")
    filename = data.get('filename') or markup_filename(index, data.get('elevation_name'), data.get('page_number'))

    try:
        png = render_markup_from_url(data['image_url'], data.get('detections') or [], header_label)
    except MarkupRenderError as e:
        print(f"[markup] FAILED: {e}", flush=True)
        return jsonify({"success": False, "error": str(e)}), 502

    return send_file(BytesIO(png), mimetype='image/png', as_attachment=True, download_name=filename)


@app.route('/render-markup-bundle', methods=['POST'])
def render_markup_bundle_route():
    """Render markups for several pages and return them zipped"""
    data = _json_body()
    pages = data.get('pages')
    if not pages or not isinstance(pages, list):
        raise ValidationError("pages required")
    if not all(isinstance(page, dict) for page in pages):
        raise ValidationError("every page must be an object")

    zip_bytes, zip_filename, errors = render_markup_bundle(pages, data.get('project_name') or 'project')
    if errors and len(errors) == len(pages):
        return jsonify({"success": False, "error": "No pages could be rendered", "errors": errors}), 502

    return send_file(BytesIO(zip_bytes), mimetype='application/zip', as_attachment=True, download_name=zip_filename)


if __name__ == '__main__':
    app.run(host='0.0.0.0', port=config.PORT, debug=config.DEBUG)
