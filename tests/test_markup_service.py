"""Unit tests for markup rendering."""

import io
import zipfile
import unittest
from unittest.mock import patch, MagicMock
import sys
import os

# Add parent directory to path for imports
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

import requests
from PIL import Image

from config import config
from services.detection_service import Detection
from utils.validation import ValidationError
from services.markup_service import (
    MarkupRenderError, get_class_colors, load_image, prepare_detections,
    render_markup, render_markup_png, render_markup_from_url,
    render_markup_bundle, elevation_header, markup_filename
)

WHITE = (255, 255, 255)


def make_png(width=400, height=300):
    buffer = io.BytesIO()
    Image.new('RGB', (width, height), WHITE).save(buffer, format='PNG')
    return buffer.getvalue()


def box(cls, x, y, w, h, **extra):
    return {'class': cls, 'pixel_x': x, 'pixel_y': y, 'pixel_width': w, 'pixel_height': h, **extra}


def ok_response(content):
    response = MagicMock()
    response.status_code = 200
    response.content = content
    return response


class TestRenderMarkup(unittest.TestCase):
    """Test cases for drawing overlays."""

    def setUp(self):
        self.image = make_png()

    def test_output_keeps_native_size(self):
        img = render_markup(self.image, [box('window', 100, 150, 80, 60)])
        self.assertEqual(img.size, (400, 300))

        img = render_markup(make_png(1234, 567), [])
        self.assertEqual(img.size, (1234, 567))

    def test_box_fill_and_stroke(self):
        img = render_markup(self.image, [box('window', 100, 150, 80, 60)])

        # Stroke sits on the box edge at full opacity
        self.assertEqual(img.getpixel((60, 150)), config.DETECTION_COLORS['window']['stroke'])

        # Interior is tinted, not painted over
        r, g, b = img.getpixel((100, 150))
        self.assertNotEqual((r, g, b), WHITE)
        self.assertGreater(g, r)
        self.assertGreater(r, 34)

        # Outside the box is untouched
        self.assertEqual(img.getpixel((30, 150)), WHITE)

    def test_later_detections_paint_over_earlier(self):
        dets = [box('window', 100, 150, 80, 60), box('door', 100, 150, 80, 60)]
        img = render_markup(self.image, dets)
        self.assertEqual(img.getpixel((60, 150)), config.DETECTION_COLORS['door']['stroke'])

    def test_unknown_class_uses_default_color(self):
        img = render_markup(self.image, [box('Mystery Thing', 100, 150, 80, 60)])
        self.assertEqual(img.getpixel((60, 150)), config.DEFAULT_DETECTION_COLOR['stroke'])

    def test_polygon_is_drawn_instead_of_box(self):
        det = box('window', 100, 150, 80, 60,
                  polygon_points=[{'x': 60, 'y': 120}, {'x': 140, 'y': 120}, {'x': 100, 'y': 180}])

        with patch('services.markup_service._draw_box') as draw_box, \
                patch('services.markup_service._draw_polygon') as draw_polygon:
            render_markup(self.image, [det])

        draw_box.assert_not_called()
        draw_polygon.assert_called_once()

    def test_short_polygon_falls_back_to_box(self):
        det = box('window', 100, 150, 80, 60, polygon_points=[{'x': 60, 'y': 120}, {'x': 140, 'y': 120}])

        with patch('services.markup_service._draw_box') as draw_box, \
                patch('services.markup_service._draw_polygon') as draw_polygon:
            render_markup(self.image, [det])

        draw_box.assert_called_once()
        draw_polygon.assert_not_called()

    def test_accepts_detection_records(self):
        det = Detection('sam-1', 'door', 1.0, 100, 150, 80, 60, 'sam')
        img = render_markup(self.image, [det])
        self.assertEqual(img.getpixel((60, 150)), config.DETECTION_COLORS['door']['stroke'])

    def test_legend_only_when_detections_present(self):
        img = render_markup(self.image, [box('window', 100, 150, 80, 60)])
        self.assertTrue(all(c < 80 for c in img.getpixel((375, 15))))

        img = render_markup(self.image, [])
        self.assertEqual(img.getpixel((375, 15)), WHITE)

    def test_header_banner(self):
        img = render_markup(self.image, [], header_label='FRONT ELEVATION')
        self.assertTrue(all(c < 120 for c in img.getpixel((12, 12))))

        img = render_markup(self.image, [])
        self.assertEqual(img.getpixel((12, 12)), WHITE)

    def test_png_output(self):
        png = render_markup_png(self.image, [box('window', 100, 150, 80, 60)])
        self.assertTrue(png.startswith(b'\x89PNG'))
        self.assertEqual(Image.open(io.BytesIO(png)).size, (400, 300))

    def test_undecodable_image(self):
        with self.assertRaises(MarkupRenderError):
            render_markup(b'not an image', [])


class TestLoadImage(unittest.TestCase):
    """Test cases for fetching the base image."""

    @patch('services.markup_service.requests.get')
    def test_network_failure(self, mock_get):
        mock_get.side_effect = requests.exceptions.ConnectionError('refused')
        with self.assertRaises(MarkupRenderError):
            load_image('https://example.com/page.png')

    @patch('services.markup_service.requests.get')
    def test_bad_status(self, mock_get):
        response = MagicMock()
        response.status_code = 404
        mock_get.return_value = response

        with self.assertRaises(MarkupRenderError) as ctx:
            load_image('https://example.com/page.png')
        self.assertIn('404', str(ctx.exception))

    @patch('services.markup_service.requests.get')
    def test_failed_fetch_draws_nothing(self, mock_get):
        mock_get.side_effect = requests.exceptions.Timeout()
        with patch('services.markup_service.render_markup_png') as render:
            with self.assertRaises(MarkupRenderError):
                render_markup_from_url('https://example.com/page.png', [])
        render.assert_not_called()

    @patch('services.markup_service.requests.get')
    def test_invalid_detection_is_rejected_before_fetch(self, mock_get):
        with self.assertRaises(ValidationError):
            render_markup_from_url('https://example.com/page.png', [box('window', None, 10, 5, 5)])
        mock_get.assert_not_called()

    def test_prepare_detections(self):
        prepared = prepare_detections([box('Exterior Wall', '10', 20, 4, 6)])
        self.assertEqual(prepared[0]['class'], 'exterior_wall')
        self.assertEqual(prepare_detections(None), [])
        with self.assertRaises(ValidationError):
            prepare_detections({'class': 'window'})

    def test_missing_url(self):
        with self.assertRaises(MarkupRenderError):
            render_markup_from_url(None, [])

    @patch('services.markup_service.requests.get')
    def test_render_from_url(self, mock_get):
        mock_get.return_value = ok_response(make_png(200, 100))
        png = render_markup_from_url('https://example.com/page.png', [box('door', 50, 50, 20, 20)])
        self.assertEqual(Image.open(io.BytesIO(png)).size, (200, 100))


class TestNamingAndBundles(unittest.TestCase):
    """Test cases for filenames and zip bundles."""

    def test_colors(self):
        self.assertEqual(get_class_colors('siding'), config.DETECTION_COLORS['siding'])
        self.assertEqual(get_class_colors('nope'), config.DEFAULT_DETECTION_COLOR)

    def test_elevation_header(self):
        self.assertEqual(elevation_header('front'), 'FRONT ELEVATION')
        self.assertIsNone(elevation_header(None))

    def test_markup_filename(self):
        self.assertEqual(markup_filename(1, 'Front'), 'elevation_01_Front_markup.png')
        self.assertEqual(markup_filename(3, 'Front Left'), 'elevation_03_Front_Left_markup.png')
        self.assertEqual(markup_filename(2, None, 7), 'elevation_02_page_7_markup.png')
        self.assertEqual(markup_filename(4), 'elevation_04_page_4_markup.png')

    @patch('services.markup_service.requests.get')
    def test_bundle_skips_failed_pages(self, mock_get):
        good = ok_response(make_png(100, 100))
        bad = MagicMock()
        bad.status_code = 500
        mock_get.side_effect = [good, bad]

        pages = [
            {'image_url': 'https://example.com/1.png', 'elevation_name': 'Front', 'page_number': 1,
             'detections': [box('window', 50, 50, 20, 20)]},
            {'image_url': 'https://example.com/2.png', 'elevation_name': 'Rear', 'page_number': 2},
        ]
        zip_bytes, zip_name, errors = render_markup_bundle(pages, 'Smith Residence')

        self.assertTrue(zip_name.startswith('Smith_Residence_markup_plans_'))
        self.assertTrue(zip_name.endswith('.zip'))
        self.assertEqual(len(errors), 1)
        self.assertIn('page 2', errors[0])

        with zipfile.ZipFile(io.BytesIO(zip_bytes)) as zf:
            self.assertEqual(zf.namelist(), ['markup_plans/elevation_01_Front_markup.png'])


if __name__ == '__main__':
    unittest.main()
