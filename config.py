"""
Centralized configuration for the Detection Geometry API
"""

import os
from dotenv import load_dotenv

load_dotenv()


class Config:
    """Application configuration"""

    # Flask
    DEBUG = os.getenv('FLASK_DEBUG', 'false').lower() == 'true'
    PORT = int(os.getenv('PORT', 5050))

    # Detectors
    ROBOFLOW_API_KEY = os.getenv('ROBOFLOW_API_KEY')
    ROBOFLOW_WORKFLOW_URL = os.getenv(
        'ROBOFLOW_WORKFLOW_URL',
        "https://serverless.roboflow.com/infer/workflows/exterior-finishes/find-windows-garages-exterior-walls-roofs-buildings-doors-and-gables"
    )
    REPLICATE_API_TOKEN = os.getenv('REPLICATE_API_TOKEN')
    SAM_MODEL = os.getenv('SAM_MODEL', 'meta/sam-2')
    SAM_FEATURE_ENABLED = os.getenv('SAM_FEATURE_ENABLED', 'false').lower() == 'true'
    SAM_MAX_POLL_ATTEMPTS = 30

    # Timeouts (seconds)
    DETECTOR_TIMEOUT = 120
    IMAGE_FETCH_TIMEOUT = 30

    # CORS
    CORS_ORIGINS = ['http://localhost:3000', 'https://*.vercel.app']

    # Region selection
    MIN_REGION_SIZE = 50
    DEFAULT_CONFIDENCE_THRESHOLD = 0.3

    # Markup rendering
    MARKUP_STROKE_WIDTH = 3
    BOLD_FONT_PATH = "/usr/share/fonts/truetype/dejavu/DejaVuSans-Bold.ttf"

    # Markup colors keyed by normalized class: fill is RGBA (~35% alpha), stroke is RGB
    DETECTION_COLORS = {
        'siding': {'fill': (239, 68, 68, 89), 'stroke': (239, 68, 68)},
        'window': {'fill': (34, 197, 94, 89), 'stroke': (34, 197, 94)},
        'door': {'fill': (59, 130, 246, 89), 'stroke': (59, 130, 246)},
        'garage': {'fill': (168, 85, 247, 89), 'stroke': (168, 85, 247)},
        'gable': {'fill': (249, 115, 22, 89), 'stroke': (249, 115, 22)},
        'roof': {'fill': (6, 182, 212, 89), 'stroke': (6, 182, 212)},
        'trim': {'fill': (236, 72, 153, 89), 'stroke': (236, 72, 153)},
        'soffit': {'fill': (132, 204, 22, 89), 'stroke': (132, 204, 22)},
        'fascia': {'fill': (251, 191, 36, 89), 'stroke': (251, 191, 36)},
        'exterior_wall': {'fill': (107, 114, 128, 89), 'stroke': (107, 114, 128)},
        'corbel': {'fill': (219, 39, 119, 89), 'stroke': (219, 39, 119)},
        'shutter': {'fill': (139, 92, 246, 89), 'stroke': (139, 92, 246)},
        'column': {'fill': (20, 184, 166, 89), 'stroke': (20, 184, 166)},
        'railing': {'fill': (245, 158, 11, 89), 'stroke': (245, 158, 11)},
        'deck': {'fill': (168, 162, 158, 89), 'stroke': (168, 162, 158)},
        'porch': {'fill': (120, 113, 108, 89), 'stroke': (120, 113, 108)},
        'chimney': {'fill': (87, 83, 78, 89), 'stroke': (87, 83, 78)},
        'vent': {'fill': (156, 163, 175, 89), 'stroke': (156, 163, 175)},
    }
    DEFAULT_DETECTION_COLOR = {'fill': (100, 116, 139, 89), 'stroke': (100, 116, 139)}


# Singleton instance
config = Config()
