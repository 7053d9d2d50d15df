"""
Tests for the HTTP client's failure handling.
"""

import unittest
from unittest import mock

import requests

from uibugscan.config import CIRCUIT_BREAKER_THRESHOLD
from uibugscan.utils.http import HTTPClient


class TestHTTPClient(unittest.TestCase):

    def setUp(self):
        self.client = HTTPClient(request_delay=0)
        self.addCleanup(self.client.close)

    def test_failure_returns_none(self):
        with mock.patch.object(self.client.session, 'request',
                               side_effect=requests.exceptions.ConnectionError("refused")):
            with self.assertLogs('uibugscan.utils.http', level='WARNING'):
                self.assertIsNone(self.client.head("https://example.com/down"))

    def test_circuit_breaker_skips_failing_endpoint(self):
        with mock.patch.object(self.client.session, 'request',
                               side_effect=requests.exceptions.Timeout("slow")) as request:
            with self.assertLogs('uibugscan.utils.http', level='WARNING'):
                for _ in range(CIRCUIT_BREAKER_THRESHOLD + 2):
                    self.client.get("https://example.com/slow")
        self.assertEqual(request.call_count, CIRCUIT_BREAKER_THRESHOLD)

    def test_success_resets_failures(self):
        ok = mock.Mock(status_code=200)
        effects = [requests.exceptions.Timeout("slow"), ok, requests.exceptions.Timeout("slow"), ok]
        with mock.patch.object(self.client.session, 'request', side_effect=effects):
            with self.assertLogs('uibugscan.utils.http', level='WARNING'):
                results = [self.client.get("https://example.com/flaky") for _ in range(4)]
        self.assertEqual(results, [None, ok, None, ok])
        self.assertEqual(self.client.request_count, 4)

    def test_user_agent_header(self):
        client = HTTPClient(user_agent="custom-agent")
        self.addCleanup(client.close)
        self.assertEqual(client.session.headers['User-Agent'], "custom-agent")


if __name__ == '__main__':
    unittest.main()
