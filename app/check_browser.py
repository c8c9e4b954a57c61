# app/check_browser.py
"""Startup check that Playwright can actually launch headless Chromium."""

import sys
from typing import Any, Callable, Dict

from playwright.sync_api import sync_playwright

from utils.logging_utils import get_tagged_logger

logger = get_tagged_logger(__name__, tag="check_browser")


def get_browser_status(
    *,
    headless: bool = True,
    playwright_factory: Callable[[], Any] = sync_playwright,
) -> Dict[str, Any]:
    """
    Non-fatal probe of the browser the session manager will use.

    Returns a dict like:
    {
      "ok": bool,
      "browser": "chromium",
      "version": "121.0...",   # None if launch failed
      "error": "...",          # None unless something went wrong
    }

    This NEVER sys.exit(). Suitable for diagnostics.
    """
    status: Dict[str, Any] = {
        "ok": False,
        "browser": "chromium",
        "version": None,
        "error": None,
    }

    try:
        with playwright_factory() as pw:
            browser = pw.chromium.launch(headless=headless)
            try:
                status["version"] = browser.version
            finally:
                browser.close()
    except Exception as e:
        status["error"] = str(e)
        return status

    status["ok"] = True
    return status


def check_browser(*, headless: bool = True) -> None:
    """
    "Hard" check for startup.

    Fails with sys.exit(1) if Chromium cannot be launched, since no stock data
    can be fetched without a browser session.
    """
    status = get_browser_status(headless=headless)

    if status["ok"]:
        logger.info(f"Chromium {status['version']} launches fine (headless={headless})")
        return

    logger.error("\nERROR: Playwright could not launch Chromium.")
    if status["error"]:
        logger.error(f"   Details: {status['error']}")
    logger.error("\n   Install the browser and its system dependencies:\n"
                 "     playwright install --with-deps chromium")
    sys.exit(1)
