import os
import logging
from typing import Optional

import requests
from dotenv import load_dotenv

logger = logging.getLogger(__name__)

# Ensure environment variables from .env are loaded when this module is imported.
load_dotenv()


def resolve_base_url(base_url: Optional[str] = None) -> str:
    """Return the chain API base URL without a trailing slash.

    Raises
    ------
    ValueError
        If neither ``base_url`` nor ``CHAIN_BASE_URL`` is set.
    """
    url = base_url or os.environ.get("CHAIN_BASE_URL")
    if not url:
        raise ValueError("Environment variable 'CHAIN_BASE_URL' is not set")
    if "://" not in url:
        url = "https://" + url
    return url.rstrip("/")


def open_session(base_url: str) -> requests.Session:
    """Open a requests session to the chain API and check it is reachable.

    Parameters
    ----------
    base_url : str
        Base URL of the chain API.

    Returns
    -------
    requests.Session
        The initialized session.

    Raises
    ------
    RuntimeError
        If the health check fails. Any underlying exception is re-raised as a
        ``RuntimeError`` with context.
    """
    session = requests.Session()
    session.headers.update({"Accept": "application/json"})
    try:
        response = session.get(base_url + "/api/v1/status", timeout=10)
        response.raise_for_status()
        logger.debug("Chain API reachable at %s", base_url)
        return session
    except Exception as e:
        session.close()
        logger.critical(f"Error occurred while starting session: {e}")
        raise RuntimeError(f"Failed to establish session: {e}") from e
