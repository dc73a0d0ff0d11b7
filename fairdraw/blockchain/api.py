import os
import logging
from urllib.parse import urljoin
from dotenv import load_dotenv
from .utils import open_session, resolve_base_url
from typing import Any, Optional, Mapping

logger = logging.getLogger(__name__)


class ChainClient:
    """Reads block data used as external entropy when finalizing draws."""

    def __init__(self, base_url: Optional[str] = None, timeout: Optional[int] = None):
        load_dotenv()
        self.base_url = resolve_base_url(base_url)
        self.session = open_session(self.base_url)
        self.timeout = timeout or int(os.getenv("CHAIN_TIMEOUT", "30"))

    # -------- headers --------
    @property
    def public_headers(self) -> Mapping[str, str]:
        return {"Accept": "application/json"}

    # -------- core request --------
    def _request(
        self,
        method: str,
        path: str,
        *,
        headers: Optional[Mapping[str, str]] = None,
        params: Optional[dict] = None,
    ) -> Any:
        url = urljoin(self.base_url + "/", path.lstrip("/"))
        r = self.session.request(
            method=method.upper(),
            url=url,
            headers=headers or self.public_headers,
            params=params,
            timeout=self.timeout,
        )
        r.raise_for_status()
        return r.json() if r.content else None

    # -------- API callers --------
    def latest_block(self) -> dict:
        return self._request("GET", "/api/v1/blocks/latest")

    def get_block(self, height: int) -> dict:
        return self._request("GET", f"/api/v1/blocks/{height}")

    def block_hash(self, height: Optional[int] = None) -> bytes:
        """Return the 32-byte hash of the block at ``height`` (latest by default).

        Raises
        ------
        ValueError
            If the response has no usable ``hash`` field.
        """
        block = self.latest_block() if height is None else self.get_block(height)
        if not isinstance(block, dict) or not block.get("hash"):
            raise ValueError(f"Unexpected block response: {block!r}")
        text = str(block["hash"]).lower()
        if text.startswith("0x"):
            text = text[2:]
        digest = bytes.fromhex(text)
        if len(digest) != 32:
            raise ValueError("block hash must be 32 bytes")
        logger.debug("Fetched block hash for height %s", block.get("height"))
        return digest
