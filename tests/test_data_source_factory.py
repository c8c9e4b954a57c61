import unittest

from app.config import Settings
from app.data_sources import gamersberg_client, image_client, vulcan_client
from app.data_sources.base import CallableStockDataSource
from app.data_sources.factory import build_data_source


class DummyResp:
    def __init__(self, payload, status_code=200):
        self._payload = payload
        self.status_code = status_code
        self.ok = status_code < 400
        self.reason = "OK"

    def raise_for_status(self):
        pass

    def json(self):
        return self._payload


class RecordingSession:
    def __init__(self, payload):
        self.payload = payload
        self.calls = []

    def get(self, url, headers=None, timeout=None):
        self.calls.append((url, timeout))
        return DummyResp(self.payload)


class StaticCredentials:
    def get_credential(self):
        return "sid=1"

    def refresh(self):
        return "sid=2"


class TestDataSourceFactory(unittest.TestCase):
    def setUp(self):
        self._orig = (gamersberg_client.session, vulcan_client.session, image_client.session)

    def tearDown(self):
        gamersberg_client.session, vulcan_client.session, image_client.session = self._orig

    def test_binds_configured_urls_and_timeouts(self):
        cfg = Settings(
            stock_api_url="https://stock.test/api/",
            timers_api_url="https://timers.test/api",
            images_api_url="https://images.test/api",
            primary_timeout_seconds=11,
            aux_timeout_seconds=3,
        )
        stock = RecordingSession({"success": True, "data": [{"timestamp": 1}]})
        timers = RecordingSession({"success": True, "data": {"seedsTimer": 60}})
        images = RecordingSession({"imageData": {}})
        gamersberg_client.session, vulcan_client.session, image_client.session = stock, timers, images

        ds = build_data_source(cfg, StaticCredentials())
        self.assertIsInstance(ds, CallableStockDataSource)

        ds.fetch_stock()
        ds.fetch_timers()
        ds.fetch_images()
        self.assertEqual(stock.calls, [("https://stock.test/api", 11)])
        self.assertEqual(timers.calls, [("https://timers.test/api", 3)])
        self.assertEqual(images.calls, [("https://images.test/api", 3)])

    def test_builds_browser_session_when_none_given(self):
        ds = build_data_source(Settings())
        credentials = ds.stock.args[0]
        try:
            self.assertEqual(type(credentials).__name__, "BrowserSessionManager")
        finally:
            credentials.close()


if __name__ == "__main__":
    unittest.main()
