"""
Roboflow object detection client with retry logic for serverless resilience
"""

import time
import requests
from config import config

# Retry configuration
MAX_RETRIES = 3
RETRY_STATUS_CODES = {500, 502, 503, 504}  # Server errors worth retrying


def extract_predictions(result):
    """
    Pull the prediction list out of a workflow response.

    Handles {outputs: [{predictions: {predictions: [...]}}]},
    {outputs: [{predictions: [...]}]}, a later output carrying the
    predictions, and a bare {predictions: [...]}.
    """
    if not isinstance(result, dict):
        return []

    outputs = result.get('outputs')
    if isinstance(outputs, list):
        for output in outputs:
            if not isinstance(output, dict) or 'predictions' not in output:
                continue
            pred_data = output['predictions']
            if isinstance(pred_data, dict) and 'predictions' in pred_data:
                return pred_data['predictions'] or []
            if isinstance(pred_data, list):
                return pred_data

    if isinstance(result.get('predictions'), list):
        return result['predictions']

    return []


def detect_objects(image_url, api_key=None, workflow_url=None):
    """
    Run Roboflow detection on an image with automatic retry on failures.

    Args:
        image_url: Public URL to the image
        api_key: Roboflow API key (defaults to config value)
        workflow_url: Workflow endpoint (defaults to config value)

    Returns:
        Dict with 'predictions' list or 'error' string

    Retry behavior:
        - Retries up to 3 times on 5xx errors or timeouts
        - Uses exponential backoff: 1s, 2s, 4s between retries
    """
    payload = {
        "api_key": api_key or config.ROBOFLOW_API_KEY,
        "inputs": {
            "image": {
                "type": "url",
                "value": image_url
            }
        }
    }
    url = workflow_url or config.ROBOFLOW_WORKFLOW_URL

    last_error = None

    for attempt in range(MAX_RETRIES):
        final_attempt = attempt == MAX_RETRIES - 1
        try:
            response = requests.post(url, json=payload, timeout=config.DETECTOR_TIMEOUT)
        except requests.exceptions.Timeout:
            last_error = "Roboflow timeout"
            if final_attempt:
                print(f"[Roboflow] FAILED: Timeout after {MAX_RETRIES} attempts", flush=True)
                return {"error": f"Roboflow timeout after {MAX_RETRIES} attempts"}
            _backoff(attempt, "Timeout")
            continue
        except requests.exceptions.ConnectionError as e:
            last_error = f"Connection error: {e}"
            if final_attempt:
                print(f"[Roboflow] FAILED: Connection error after {MAX_RETRIES} attempts", flush=True)
                return {"error": f"Connection failed after {MAX_RETRIES} attempts"}
            _backoff(attempt, "Connection error")
            continue

        if response.status_code == 200:
            try:
                predictions = extract_predictions(response.json())
            except ValueError as e:
                # Body was not JSON
                print(f"[Roboflow] FAILED: Invalid response: {e}", flush=True)
                return {"error": f"Invalid Roboflow response: {e}"}

            suffix = f" on attempt {attempt + 1}" if attempt > 0 else ""
            print(f"[Roboflow] Returned {len(predictions)} predictions{suffix}", flush=True)
            return {"predictions": predictions}

        last_error = f"Roboflow error: {response.status_code}"
        if response.status_code in RETRY_STATUS_CODES and not final_attempt:
            _backoff(attempt, str(response.status_code), image_url)
            continue

        if attempt > 0:
            last_error += f" (after {attempt + 1} attempts)"
        print(f"[Roboflow] FAILED: {last_error}", flush=True)
        return {"error": last_error}

    return {"error": last_error or "Max retries exceeded"}


def _backoff(attempt, reason, image_url=None):
    """Sleep 1s, 2s, 4s... before the next attempt"""
    wait_time = 2 ** attempt
    target = f" (image: {image_url[:60]}...)" if image_url else ""
    print(f"[Roboflow] {reason} on attempt {attempt + 1}/{MAX_RETRIES}, retrying in {wait_time}s...{target}", flush=True)
    time.sleep(wait_time)
