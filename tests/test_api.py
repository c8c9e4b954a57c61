import datetime as dt
import unittest

from fastapi.testclient import TestClient

from app.domain import StockItem, StockSnapshot, WeatherInfo
from app.main import app as fastapi_app
from app.refresh_cache import RefreshCache


class FakeNow:
    def __init__(self, start):
        self.now = start

    def __call__(self):
        return self.now


def _snapshot():
    return StockSnapshot(
        seeds_stock=(StockItem(name="Carrot", value=5),),
        weather=WeatherInfo(type="Rain", duration_seconds=600),
        image_data={"Carrot": {"url": "https://img/carrot.png"}},
        last_updated="2023-11-14T22:13:20.000Z",
    )


class TestApi(unittest.TestCase):
    def setUp(self):
        self._orig_cache = fastapi_app.state.refresh_cache
        self.clock = FakeNow(dt.datetime(2024, 1, 1, 12, 0, tzinfo=dt.timezone.utc))
        self.cache = RefreshCache(_snapshot, stale_threshold_seconds=60, now=self.clock)
        fastapi_app.state.refresh_cache = self.cache
        self.client = TestClient(fastapi_app)

    def tearDown(self):
        fastapi_app.state.refresh_cache = self._orig_cache

    def test_stock_503_before_first_success(self):
        resp = self.client.get("/stock")
        self.assertEqual(resp.status_code, 503)
        data = resp.json()
        self.assertIsNone(data["lastScraped"])
        self.assertIn("error", data)

    def test_stock_returns_snapshot_and_meta(self):
        self.cache.refresh()
        self.clock.now += dt.timedelta(seconds=5)

        resp = self.client.get("/stock")
        self.assertEqual(resp.status_code, 200)
        data = resp.json()
        self.assertEqual(data["seedsStock"], [{"name": "Carrot", "value": 5}])
        self.assertEqual(data["gearStock"], [])
        self.assertEqual(data["weather"], {"type": "Rain", "durationSeconds": 600})
        self.assertEqual(data["zenEvent"], {"active": False, "timeRemaining": None})
        self.assertEqual(data["imageData"], {"Carrot": {"url": "https://img/carrot.png"}})
        self.assertEqual(data["lastUpdated"], "2023-11-14T22:13:20.000Z")
        self.assertEqual(
            data["_meta"],
            {"stale": False, "ageSeconds": 5, "lastScraped": "2024-01-01T12:00:00.000Z"},
        )

    def test_stock_flags_stale_snapshot(self):
        self.cache.refresh()
        self.clock.now += dt.timedelta(seconds=90)

        meta = self.client.get("/stock").json()["_meta"]
        self.assertTrue(meta["stale"])
        self.assertEqual(meta["ageSeconds"], 90)

    def test_health_before_and_after_scrape(self):
        before = self.client.get("/health").json()
        self.assertEqual(before["status"], "ok")
        self.assertEqual(before["scrapes"], 0)
        self.assertEqual(before["errors"], 0)
        self.assertIsNone(before["lastScraped"])
        self.assertFalse(before["hasData"])
        self.assertFalse(before["isCurrentlyScraping"])
        self.assertTrue(before["uptime"].endswith("s"))

        self.cache.refresh()
        after = self.client.get("/health").json()
        self.assertEqual(after["scrapes"], 1)
        self.assertTrue(after["hasData"])
        self.assertEqual(after["lastScraped"], "2024-01-01T12:00:00.000Z")

    def test_debug_dumps_state(self):
        self.cache.refresh()
        data = self.client.get("/debug").json()
        self.assertEqual(data["scrapeCount"], 1)
        self.assertEqual(data["data"]["seedsStock"], [{"name": "Carrot", "value": 5}])

    def test_options_answered_with_bare_200(self):
        resp = self.client.options("/stock")
        self.assertEqual(resp.status_code, 200)

        preflight = self.client.options(
            "/stock",
            headers={"Origin": "https://lootify.example", "Access-Control-Request-Method": "GET"},
        )
        self.assertEqual(preflight.status_code, 200)
        self.assertEqual(preflight.headers["access-control-allow-origin"], "*")

    def test_preflight_for_other_headers_and_methods_still_200(self):
        for headers in (
            {"Access-Control-Request-Method": "GET", "Access-Control-Request-Headers": "Authorization"},
            {"Access-Control-Request-Method": "DELETE"},
        ):
            resp = self.client.options("/stock", headers={"Origin": "https://lootify.example", **headers})
            self.assertEqual(resp.status_code, 200, headers)
            self.assertEqual(resp.text, "")
            self.assertEqual(resp.headers["access-control-allow-origin"], "*")
            self.assertEqual(resp.headers["access-control-allow-methods"], "GET, POST, OPTIONS")
            self.assertEqual(resp.headers["access-control-allow-headers"], "Content-Type")

    def test_options_on_unknown_path(self):
        self.assertEqual(self.client.options("/nowhere").status_code, 200)

    def test_cors_allows_any_origin(self):
        resp = self.client.get("/health", headers={"Origin": "https://anywhere.example"})
        self.assertEqual(resp.headers["access-control-allow-origin"], "*")


if __name__ == "__main__":
    unittest.main()
