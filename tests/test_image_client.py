import unittest

import requests

from app.data_sources import image_client


class DummyResp:
    def __init__(self, payload=None, status_code=200):
        self._payload = payload
        self.status_code = status_code

    def raise_for_status(self):
        if self.status_code >= 400:
            raise requests.exceptions.HTTPError(f"{self.status_code} error")

    def json(self):
        if self._payload is None:
            raise ValueError("no json")
        return self._payload


class TestImageClient(unittest.TestCase):
    def setUp(self):
        self._orig_session = image_client.session

    def tearDown(self):
        image_client.session = self._orig_session

    def _use(self, resp):
        def get(*_args, **_kwargs):
            if isinstance(resp, Exception):
                raise resp
            return resp
        image_client.session = type("S", (), {"get": staticmethod(get)})()

    def _fetch(self):
        return image_client.fetch_image_index(url="https://example.test/images", user_agent="UA", timeout=8)

    def test_returns_image_data(self):
        images = {"Carrot": {"url": "https://img/carrot.png"}}
        self._use(DummyResp({"imageData": images, "other": 1}))
        self.assertEqual(self._fetch(), images)

    def test_missing_image_data_is_empty(self):
        self._use(DummyResp({"stock": []}))
        self.assertEqual(self._fetch(), {})

    def test_network_error_is_empty(self):
        self._use(requests.exceptions.ConnectionError("down"))
        self.assertEqual(self._fetch(), {})

    def test_bad_status_is_empty(self):
        self._use(DummyResp({"imageData": {"x": {}}}, status_code=500))
        self.assertEqual(self._fetch(), {})


if __name__ == "__main__":
    unittest.main()
