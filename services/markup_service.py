"""
Markup generation service
"""

import re
import zipfile
from datetime import datetime
from io import BytesIO

import requests
from PIL import Image, ImageDraw, ImageFont

from config import config
from geometry.measurements import center_to_canvas
from geometry.primitives import is_valid_polygon
from services.detection_service import to_renderable
from utils.validation import ValidationError


class MarkupRenderError(RuntimeError):
    """Base image could not be fetched or decoded"""


def get_class_colors(class_name, palette=None):
    """Fill/stroke pair for a normalized class, falling back to the default color"""
    palette = config.DETECTION_COLORS if palette is None else palette
    return palette.get(class_name, config.DEFAULT_DETECTION_COLOR)


def _load_font(path, size):
    try:
        return ImageFont.truetype(path, size)
    except OSError:
        return ImageFont.load_default()


def load_image(image_url, timeout=None):
    """
    Download the base image for a markup.

    Args:
        image_url: Public URL of the page image
        timeout: Request timeout in seconds (defaults to config value)

    Returns:
        Raw image bytes

    Raises:
        MarkupRenderError: network failure or non-200 response
    """
    if timeout is None:
        timeout = config.IMAGE_FETCH_TIMEOUT

    try:
        response = requests.get(image_url, timeout=timeout)
    except requests.exceptions.RequestException as e:
        raise MarkupRenderError(f"Failed to load image: {image_url} ({e})") from e

    if response.status_code != 200:
        raise MarkupRenderError(f"Failed to load image: {image_url} ({response.status_code})")

    return response.content


def open_base_image(image_data):
    """Decode image bytes into an RGB canvas at native resolution"""
    try:
        return Image.open(BytesIO(image_data)).convert('RGB')
    except (OSError, ValueError) as e:
        raise MarkupRenderError(f"Failed to decode image: {e}") from e


def _draw_polygon(draw, points, colors, width):
    xy = [(p.x, p.y) for p in points]
    draw.polygon(xy, fill=colors['fill'], outline=colors['stroke'], width=width)


def _draw_box(draw, det, colors, width):
    box = center_to_canvas(det['pixel_x'], det['pixel_y'], det['pixel_width'], det['pixel_height'])
    x2 = box['x'] + max(box['width'], 0)
    y2 = box['y'] + max(box['height'], 0)
    draw.rectangle([box['x'], box['y'], x2, y2], fill=colors['fill'], outline=colors['stroke'], width=width)


def _draw_header(draw, label):
    font = _load_font(config.BOLD_FONT_PATH, 24)
    left, top, right, bottom = draw.textbbox((0, 0), label, font=font)
    text_w = right - left
    text_h = bottom - top

    # Banner sized to the measured text
    draw.rectangle([10, 10, 10 + text_w + 20, 46], fill=(0, 0, 0, 178))
    draw.text((20 - left, 10 + (36 - text_h) / 2 - top), label, fill=(255, 255, 255), font=font)


def _draw_legend(draw, image_width, classes):
    if not classes:
        return

    font = _load_font(config.BOLD_FONT_PATH, 12)
    legend_x = image_width - 200
    legend_y = 20

    draw.rectangle(
        [legend_x - 10, legend_y - 10, legend_x + 180, legend_y - 10 + len(classes) * 25 + 20],
        fill=(0, 0, 0, 204)
    )

    for cls in classes:
        colors = get_class_colors(cls)
        draw.rectangle([legend_x, legend_y, legend_x + 20, legend_y + 16],
                       fill=colors['fill'], outline=colors['stroke'], width=2)
        draw.text((legend_x + 28, legend_y + 2), cls.upper(), fill=(255, 255, 255), font=font)
        legend_y += 25


def prepare_detections(detections):
    """
    Validate detections and project them onto the renderer's fields.

    Raises:
        ValidationError: detections is not a list or an entry has unusable geometry
    """
    if detections is None:
        return []
    if not isinstance(detections, (list, tuple)):
        raise ValidationError("detections must be a list")
    return [to_renderable(det, idx) for idx, det in enumerate(detections)]


def render_markup(image_data, detections, header_label=None):
    """
    Draw detection overlays onto a page image.

    Shapes are drawn in input order (later detections paint over earlier
    ones), then the header banner and the class legend.

    Args:
        image_data: Raw image bytes
        detections: Detections or detection dicts (center-based pixel fields,
                    optional polygon_points)
        header_label: Text for the top-left banner

    Returns:
        PIL Image (RGB) at the base image's native size
    """
    renderables = prepare_detections(detections)

    img = open_base_image(image_data)
    # RGBA drawing onto an RGB image blends the translucent fills
    draw = ImageDraw.Draw(img, 'RGBA')
    stroke_width = config.MARKUP_STROKE_WIDTH

    used_classes = []
    for det in renderables:
        cls = det['class']
        colors = get_class_colors(cls)

        points = det.get('polygon_points')
        if is_valid_polygon(points):
            _draw_polygon(draw, points, colors, stroke_width)
        else:
            _draw_box(draw, det, colors, stroke_width)

        if cls not in used_classes:
            used_classes.append(cls)

    if header_label:
        _draw_header(draw, header_label)

    _draw_legend(draw, img.width, used_classes)

    return img


def render_markup_png(image_data, detections, header_label=None):
    """Render a markup and encode it as lossless PNG bytes"""
    img = render_markup(image_data, detections, header_label)

    buffer = BytesIO()
    img.save(buffer, format='PNG')
    buffer.seek(0)
    return buffer.getvalue()


def render_markup_from_url(image_url, detections, header_label=None):
    """
    Fetch the base image and render its markup.

    Detections are validated before the fetch. The image fetch must succeed
    before anything is drawn; a failed fetch fails the whole render.
    """
    if not image_url:
        raise MarkupRenderError("No image URL for page")

    renderables = prepare_detections(detections)
    print(f"[markup] Rendering {len(renderables)} detections on {image_url[:60]}...", flush=True)
    image_data = load_image(image_url)
    return render_markup_png(image_data, renderables, header_label)


def elevation_header(elevation_name):
    """Header label for an elevation page, e.g. "FRONT ELEVATION"."""
    if not elevation_name:
        return None
    return f"{elevation_name.upper()} ELEVATION"


def markup_filename(index=1, elevation_name=None, page_number=None):
    """
    Download filename for a rendered markup.

    Examples:
        (1, "Front") → elevation_01_Front_markup.png
        (2, None, 7) → elevation_02_page_7_markup.png
    """
    if elevation_name:
        label = re.sub(r'[^a-z0-9]', '_', elevation_name, flags=re.IGNORECASE)
    else:
        label = f"page_{page_number if page_number is not None else index}"
    return f"elevation_{index:02d}_{label}_markup.png"


def render_markup_bundle(pages, bundle_name='project'):
    """
    Render a markup for every page and pack them into a zip.

    Pages whose image cannot be loaded are skipped and reported.

    Args:
        pages: List of dicts with image_url, detections, elevation_name?, page_number?
        bundle_name: Prefix for the zip filename

    Returns:
        Tuple of (zip bytes, zip filename, list of error strings)
    """
    buffer = BytesIO()
    errors = []

    with zipfile.ZipFile(buffer, 'w', zipfile.ZIP_DEFLATED) as zf:
        for i, page in enumerate(pages):
            elevation_name = page.get('elevation_name')
            try:
                png = render_markup_from_url(
                    page.get('image_url'),
                    page.get('detections') or [],
                    elevation_header(elevation_name)
                )
            except MarkupRenderError as e:
                print(f"[markup] Error rendering page {page.get('page_number')}: {e}", flush=True)
                errors.append(f"page {page.get('page_number', i + 1)}: {e}")
                continue

            filename = markup_filename(i + 1, elevation_name, page.get('page_number'))
            zf.writestr(f"markup_plans/{filename}", png)

    safe_name = re.sub(r'[^a-z0-9]', '_', bundle_name or 'project', flags=re.IGNORECASE)
    zip_filename = f"{safe_name}_markup_plans_{datetime.now().strftime('%Y-%m-%d')}.zip"

    buffer.seek(0)
    return buffer.getvalue(), zip_filename, errors
