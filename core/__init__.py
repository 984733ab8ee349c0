"""
Core module exports - external detector integrations
"""

from core.roboflow_client import detect_objects, extract_predictions
from core.sam_client import segment_at_point

__all__ = [
    # Roboflow
    'detect_objects', 'extract_predictions',

    # SAM
    'segment_at_point'
]
