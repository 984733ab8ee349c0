"""Unit tests for the Roboflow and Replicate SAM clients."""

import unittest
from unittest.mock import patch, MagicMock
import sys
import os

# Add parent directory to path for imports
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

import requests

from core.roboflow_client import extract_predictions, detect_objects, MAX_RETRIES
from core.sam_client import segment_at_point


def response(status_code, body=None):
    mock = MagicMock()
    mock.status_code = status_code
    mock.json.return_value = body
    mock.text = str(body)
    return mock


class TestExtractPredictions(unittest.TestCase):
    """Test cases for workflow response shapes."""

    def test_nested_predictions(self):
        result = {'outputs': [{'predictions': {'predictions': [{'class': 'window'}]}}]}
        self.assertEqual(extract_predictions(result), [{'class': 'window'}])

    def test_flat_predictions(self):
        result = {'outputs': [{'predictions': [{'class': 'door'}]}]}
        self.assertEqual(extract_predictions(result), [{'class': 'door'}])

    def test_later_output(self):
        result = {'outputs': [{'visualization': 'x'}, {'predictions': [{'class': 'gable'}]}]}
        self.assertEqual(extract_predictions(result), [{'class': 'gable'}])

    def test_top_level(self):
        self.assertEqual(extract_predictions({'predictions': [{'class': 'roof'}]}), [{'class': 'roof'}])

    def test_nothing_found(self):
        self.assertEqual(extract_predictions({'outputs': []}), [])
        self.assertEqual(extract_predictions(None), [])


class TestDetectObjects(unittest.TestCase):
    """Test cases for Roboflow retries."""

    @patch('core.roboflow_client.requests.post')
    def test_success(self, mock_post):
        mock_post.return_value = response(200, {'outputs': [{'predictions': [{'class': 'window'}]}]})

        result = detect_objects('https://example.com/page.png', api_key='key')

        self.assertEqual(result, {'predictions': [{'class': 'window'}]})
        payload = mock_post.call_args.kwargs['json']
        self.assertEqual(payload['inputs']['image']['value'], 'https://example.com/page.png')

    @patch('core.roboflow_client.time.sleep')
    @patch('core.roboflow_client.requests.post')
    def test_retries_server_errors(self, mock_post, mock_sleep):
        mock_post.side_effect = [response(503), response(200, {'predictions': []})]

        result = detect_objects('https://example.com/page.png', api_key='key')

        self.assertEqual(result, {'predictions': []})
        self.assertEqual(mock_post.call_count, 2)
        mock_sleep.assert_called_once_with(1)

    @patch('core.roboflow_client.requests.post')
    def test_client_error_is_not_retried(self, mock_post):
        mock_post.return_value = response(401)

        result = detect_objects('https://example.com/page.png', api_key='bad')

        self.assertEqual(result['error'], 'Roboflow error: 401')
        self.assertEqual(mock_post.call_count, 1)

    @patch('core.roboflow_client.time.sleep')
    @patch('core.roboflow_client.requests.post')
    def test_timeouts_give_up(self, mock_post, mock_sleep):
        mock_post.side_effect = requests.exceptions.Timeout()

        result = detect_objects('https://example.com/page.png', api_key='key')

        self.assertIn('timeout', result['error'])
        self.assertEqual(mock_post.call_count, MAX_RETRIES)


class TestSegmentAtPoint(unittest.TestCase):
    """Test cases for the Replicate SAM client."""

    def test_requires_token(self):
        with patch('core.sam_client.config') as mock_config:
            mock_config.REPLICATE_API_TOKEN = None
            result = segment_at_point('https://example.com/page.png', 10, 20)
        self.assertIn('not configured', result['error'])

    @patch('core.sam_client.requests.post')
    def test_immediate_result(self, mock_post):
        output = {'contours': [[[0, 0], [5, 0], [5, 5]]]}
        mock_post.return_value = response(201, {'status': 'succeeded', 'output': output})

        result = segment_at_point('https://example.com/page.png', 10.4, 20.6, api_token='tok')

        self.assertEqual(result, {'output': output})
        sent = mock_post.call_args.kwargs
        self.assertEqual(sent['json']['input']['point_coords'], [[10, 21]])
        self.assertEqual(sent['headers']['Prefer'], 'wait')

    @patch('core.sam_client.requests.get')
    @patch('core.sam_client.requests.post')
    def test_polls_until_done(self, mock_post, mock_get):
        mock_post.return_value = response(201, {'status': 'starting', 'id': 'abc',
                                                'urls': {'get': 'https://replicate/p/abc'}})
        mock_get.side_effect = [
            response(200, {'status': 'processing', 'id': 'abc'}),
            response(200, {'status': 'succeeded', 'output': [[1, 1], [2, 1], [2, 2]]}),
        ]

        result = segment_at_point('https://example.com/page.png', 1, 1, api_token='tok', poll_interval=0)

        self.assertEqual(result['output'], [[1, 1], [2, 1], [2, 2]])
        self.assertEqual(mock_get.call_count, 2)

    @patch('core.sam_client.requests.post')
    def test_failed_prediction(self, mock_post):
        mock_post.return_value = response(201, {'status': 'failed', 'error': 'CUDA OOM'})
        result = segment_at_point('https://example.com/page.png', 1, 1, api_token='tok')
        self.assertIn('CUDA OOM', result['error'])

    @patch('core.sam_client.requests.post')
    def test_api_error(self, mock_post):
        mock_post.return_value = response(422, {'detail': 'bad input'})
        result = segment_at_point('https://example.com/page.png', 1, 1, api_token='tok')
        self.assertEqual(result['error'], 'Replicate API error: 422')


if __name__ == '__main__':
    unittest.main()
