"""Authenticated client for the gamersberg Grow a Garden stock API."""
from __future__ import annotations

from typing import Any, Dict, Mapping

import requests

from app.data_sources.base import CredentialProvider, browser_headers
from app.errors import DataError, FetchError
from app.normalizer import validate_stock_payload
from utils.logging_utils import get_tagged_logger

logger = get_tagged_logger(__name__, tag="gamersberg_client")

session = requests.Session()

AUTH_FAILURE_STATUSES = (401, 403)


def _stock_headers(credential: str, *, page_url: str, user_agent: str) -> Dict[str, str]:
    headers = browser_headers(user_agent)
    headers["Cookie"] = credential
    headers["Referer"] = page_url
    return headers


def _get_stock(url: str, headers: Dict[str, str], timeout: float) -> requests.Response:
    try:
        return session.get(url, headers=headers, timeout=timeout)
    except requests.exceptions.RequestException as exc:
        raise FetchError(f"Stock API request failed: {exc}") from exc


def fetch_stock(
    credentials: CredentialProvider,
    *,
    api_url: str,
    page_url: str,
    user_agent: str,
    timeout: float = 15.0,
) -> Mapping[str, Any]:
    """Fetch the raw stock payload, renewing the session once on 401/403.

    Raises FetchError for a non-success status (including a second auth
    failure after the retry) and DataError when the body is not a successful,
    non-empty stock payload.
    """
    credential = credentials.get_credential()
    resp = _get_stock(api_url, _stock_headers(credential, page_url=page_url, user_agent=user_agent), timeout)

    if resp.status_code in AUTH_FAILURE_STATUSES:
        logger.info("Session rejected; refreshing and retrying once", extra={"status": resp.status_code})
        credential = credentials.refresh()
        resp = _get_stock(api_url, _stock_headers(credential, page_url=page_url, user_agent=user_agent), timeout)

    if not resp.ok:
        raise FetchError(f"Stock API returned {resp.status_code}: {resp.reason}", status_code=resp.status_code)

    try:
        payload = resp.json()
    except ValueError as exc:
        raise DataError(f"Stock API returned non-JSON response: {resp.text[:200]}") from exc

    validate_stock_payload(payload)
    return payload
