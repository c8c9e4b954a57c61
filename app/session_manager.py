"""Browser-backed session for the gamersberg stock API.

The stock API only accepts requests carrying cookies that a real browser picks
up while loading the stock page. This module keeps one headless Chromium alive
and, on refresh, opens a page, lets the site establish its session, and
serializes every cookie into a `Cookie` header value.

Playwright's sync API is bound to the thread that started it, so every browser
call is funnelled through a dedicated single-thread executor. That makes
`refresh()` safe to call from whichever fetch thread sees a 401.
"""
from __future__ import annotations

import random
import time
from concurrent.futures import ThreadPoolExecutor
from typing import Any, Callable, Iterable, Mapping, Optional

from playwright.sync_api import Error as PlaywrightError
from playwright.sync_api import sync_playwright

from app.config import Settings
from app.errors import SessionError
from utils.logging_utils import get_tagged_logger, mask_cookie_header

logger = get_tagged_logger(__name__, tag="session_manager")

BROWSER_ARGS = [
    "--no-sandbox",
    "--disable-setuid-sandbox",
    "--disable-dev-shm-usage",
    "--disable-gpu",
]


def serialize_cookies(cookies: Iterable[Mapping[str, Any]]) -> str:
    """Join browser cookies into a `name=value; name=value` header string."""
    return "; ".join(f"{c['name']}={c['value']}" for c in cookies)


class BrowserSessionManager:
    """Owns the browser handle and the current cookie credential."""

    def __init__(
        self,
        page_url: str,
        *,
        user_agent: str,
        headless: bool = True,
        navigation_timeout_seconds: float = 30.0,
        settle_seconds: float = 2.0,
        max_age_seconds: float = 240.0,
        max_age_jitter_seconds: float = 60.0,
        clock: Callable[[], float] = time.monotonic,
        rng: Optional[random.Random] = None,
        playwright_factory: Callable[[], Any] = sync_playwright,
    ) -> None:
        self.page_url = page_url
        self.user_agent = user_agent
        self.headless = headless
        self.navigation_timeout_seconds = navigation_timeout_seconds
        self.settle_seconds = settle_seconds
        self.max_age_seconds = max_age_seconds
        self.max_age_jitter_seconds = max_age_jitter_seconds
        self._clock = clock
        self._rng = rng or random.Random()
        self._playwright_factory = playwright_factory

        self._credential: Optional[str] = None
        self._refreshed_at: Optional[float] = None
        self._refresh_after: float = max_age_seconds
        self._refresh_count = 0

        self._playwright = None
        self._browser = None
        self._browser_thread = ThreadPoolExecutor(max_workers=1, thread_name_prefix="browser")

    @classmethod
    def from_settings(cls, settings: Settings) -> "BrowserSessionManager":
        """Build a manager from the application settings."""
        return cls(
            settings.page_url,
            user_agent=settings.user_agent,
            headless=settings.browser_headless,
            navigation_timeout_seconds=settings.navigation_timeout_seconds,
            settle_seconds=settings.session_settle_seconds,
            max_age_seconds=settings.session_max_age_seconds,
            max_age_jitter_seconds=settings.session_max_age_jitter_seconds,
        )

    @property
    def credential(self) -> Optional[str]:
        return self._credential

    @property
    def refresh_count(self) -> int:
        """Number of successful refreshes since start."""
        return self._refresh_count

    def needs_refresh(self) -> bool:
        """True when there is no credential yet or it is older than its jittered max age."""
        if not self._credential or self._refreshed_at is None:
            return True
        return self._clock() - self._refreshed_at >= self._refresh_after

    def get_credential(self) -> str:
        """Return the current credential, renewing it first when it is missing or aged out."""
        if self.needs_refresh():
            return self.refresh()
        return self._credential  # type: ignore[return-value]

    def refresh(self) -> str:
        """Drive a browser page load and replace the credential with its cookies.

        Raises SessionError if the browser cannot be started or the navigation
        fails or times out. The previous credential is kept in that case.
        """
        logger.info("Refreshing session cookies", extra={"page_url": self.page_url})
        credential = self._browser_thread.submit(self._harvest_cookies).result()

        # Whole-value swap; a concurrent refresh simply wins or loses.
        self._credential = credential
        self._refreshed_at = self._clock()
        self._refresh_after = self.max_age_seconds + self._rng.uniform(0, self.max_age_jitter_seconds)
        self._refresh_count += 1

        if credential:
            logger.info(
                "Session cookies refreshed",
                extra={"cookies": mask_cookie_header(credential), "next_refresh_s": round(self._refresh_after)},
            )
        else:
            logger.warning("Session refresh returned no cookies")
        return credential

    def close(self) -> None:
        """Shut the browser down. Safe to call more than once."""
        try:
            self._browser_thread.submit(self._shutdown_browser).result()
        except RuntimeError:
            # executor already shut down
            return
        self._browser_thread.shutdown(wait=True)

    # --- browser thread only -------------------------------------------------

    def _get_browser(self):
        """Launch the browser once and reuse it; relaunch only if it has died."""
        if self._browser is not None and self._browser.is_connected():
            return self._browser
        if self._browser is not None:
            logger.warning("Browser disconnected; relaunching")
            self._browser = None

        try:
            if self._playwright is None:
                self._playwright = self._playwright_factory().start()
            self._browser = self._playwright.chromium.launch(headless=self.headless, args=BROWSER_ARGS)
        except PlaywrightError as exc:
            raise SessionError(f"Failed to launch browser: {exc}") from exc
        logger.info("Browser launched", extra={"headless": self.headless})
        return self._browser

    def _harvest_cookies(self) -> str:
        browser = self._get_browser()
        page = None
        try:
            page = browser.new_page(user_agent=self.user_agent)
            page.goto(
                self.page_url,
                wait_until="networkidle",
                timeout=self.navigation_timeout_seconds * 1000,
            )
            # give the site's auth scripts time to set their cookies
            page.wait_for_timeout(self.settle_seconds * 1000)
            return serialize_cookies(page.context.cookies())
        except PlaywrightError as exc:
            raise SessionError(f"Session page load failed: {exc}") from exc
        finally:
            if page is not None:
                _close_page(page)

    def _shutdown_browser(self) -> None:
        if self._browser is not None:
            try:
                self._browser.close()
            except PlaywrightError as exc:
                logger.warning("Browser close failed", extra={"error": str(exc)})
            self._browser = None
        if self._playwright is not None:
            self._playwright.stop()
            self._playwright = None
        logger.info("Browser shut down")


def _close_page(page) -> None:
    try:
        page.close()
    except PlaywrightError as exc:
        # a close failure must not mask the refresh outcome
        logger.warning("Page close failed", extra={"error": str(exc)})
