"""
Replicate SAM client for click-to-segment
"""

import time
import requests
from config import config

REPLICATE_API_BASE = "https://api.replicate.com/v1"


def _headers(api_token):
    return {
        'Authorization': f'Bearer {api_token}',
        'Content-Type': 'application/json',
        'Prefer': 'wait'  # Hold the request open until the prediction finishes (up to 60s)
    }


def segment_at_point(image_url, click_x, click_y, api_token=None, poll_interval=1.0):
    """
    Run SAM on an image with a single foreground click.

    Args:
        image_url: Public URL to the image
        click_x: Click X in image pixels
        click_y: Click Y in image pixels
        api_token: Replicate token (defaults to config value)
        poll_interval: Seconds between status polls

    Returns:
        Dict with raw 'output' or 'error' string
    """
    api_token = api_token or config.REPLICATE_API_TOKEN
    if not api_token:
        return {"error": "REPLICATE_API_TOKEN not configured"}

    payload = {
        "input": {
            "image": image_url,
            "point_coords": [[round(click_x), round(click_y)]],
            "point_labels": [1]  # 1 = foreground
        }
    }

    try:
        response = requests.post(
            f"{REPLICATE_API_BASE}/models/{config.SAM_MODEL}/predictions",
            headers=_headers(api_token),
            json=payload,
            timeout=config.DETECTOR_TIMEOUT
        )
        if response.status_code not in (200, 201):
            print(f"[sam-segment] Replicate API error: {response.status_code} - {response.text[:200]}", flush=True)
            return {"error": f"Replicate API error: {response.status_code}"}

        result = response.json()
        print(f"[sam-segment] Replicate response status: {result.get('status')}", flush=True)

        attempts = 0
        while result.get('status') in ('starting', 'processing') and attempts < config.SAM_MAX_POLL_ATTEMPTS:
            time.sleep(poll_interval)
            status_url = (result.get('urls') or {}).get('get') or f"{REPLICATE_API_BASE}/predictions/{result.get('id')}"
            result = requests.get(status_url, headers=_headers(api_token), timeout=config.DETECTOR_TIMEOUT).json()
            attempts += 1
            print(f"[sam-segment] Status: {result.get('status')} (attempt {attempts})", flush=True)

    except requests.exceptions.RequestException as e:
        print(f"[sam-segment] FAILED: {e}", flush=True)
        return {"error": f"Replicate request failed: {e}"}
    except ValueError as e:
        print(f"[sam-segment] FAILED: Invalid response: {e}", flush=True)
        return {"error": f"Invalid Replicate response: {e}"}

    if result.get('status') == 'failed':
        return {"error": f"SAM prediction failed: {result.get('error')}"}
    if result.get('status') != 'succeeded':
        return {"error": "SAM prediction timed out"}

    return {"output": result.get('output')}
