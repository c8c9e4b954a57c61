import unittest

from app.main import app, build_refresh_cache
from app.config import Settings
from app.refresh_cache import RefreshCache
from app.session_manager import BrowserSessionManager


class TestMain(unittest.TestCase):
    def test_app_metadata(self):
        self.assertEqual(app.title, "Garden Stock Relay")
        self.assertIsInstance(app.state.refresh_cache, RefreshCache)
        self.assertIsInstance(app.state.session_manager, BrowserSessionManager)

    def test_browser_not_started_at_import(self):
        self.assertIsNone(app.state.session_manager.credential)
        self.assertEqual(app.state.session_manager.refresh_count, 0)

    def test_lifespan_closes_browser_session(self):
        from fastapi.testclient import TestClient
        from app.config import settings

        class FakeSessionManager:
            closed = False

            def close(self):
                self.closed = True

        fake = FakeSessionManager()
        orig_mgr = app.state.session_manager
        orig_enabled = settings.poller_enabled
        try:
            settings.poller_enabled = False
            app.state.session_manager = fake
            with TestClient(app) as client:
                self.assertIsNone(app.state.poller)
                self.assertEqual(client.get("/health").status_code, 200)
            self.assertTrue(fake.closed)
        finally:
            app.state.session_manager = orig_mgr
            settings.poller_enabled = orig_enabled

    def test_build_refresh_cache_uses_stale_threshold(self):
        cfg = Settings(stale_threshold_seconds=15)
        mgr = BrowserSessionManager.from_settings(cfg)
        try:
            cache = build_refresh_cache(cfg, mgr)
            self.assertEqual(cache.stale_threshold_seconds, 15)
        finally:
            mgr.close()


if __name__ == "__main__":
    unittest.main()
