import os

import uvicorn

from app.check_browser import check_browser
from app.config import settings
from utils.logging_utils import get_tagged_logger

logger = get_tagged_logger(__name__, tag="server")


def maybe_check_browser() -> None:
    """
    Optionally run the browser preflight. Controlled by:
    - STOCK_SKIP_BROWSER_CHECK=true to skip entirely (useful in dev/tests)
    - STOCK_BROWSER_HEADLESS to pick the launch mode that gets probed.
    """
    if os.getenv("STOCK_SKIP_BROWSER_CHECK", "false").lower() in ("1", "true", "yes"):
        logger.info("Skipping browser preflight (STOCK_SKIP_BROWSER_CHECK=true)")
        return

    try:
        check_browser(headless=settings.browser_headless)
    except SystemExit:
        logger.error("Browser preflight failed; set STOCK_SKIP_BROWSER_CHECK=true to bypass during dev/tests.")
        raise


if __name__ == "__main__":
    maybe_check_browser()

    uvicorn.run(
        "app.main:app",
        host="0.0.0.0",
        port=int(os.getenv("PORT", 8000)),
        reload=False,
    )
