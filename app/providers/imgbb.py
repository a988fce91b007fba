"""
ImgBB image hosting client.

Uploads a base64-encoded image with the account API key and returns the
hosted URL from ``data.url``. Every failure mode (no key, timeout, HTTP
error, unexpected body) yields None so the caller can fall back to a
locally served URL.
"""

import base64
import logging

import httpx

from app.core.interfaces import IImageHost

logger = logging.getLogger(__name__)


class ImgBBClient(IImageHost):
    """Thin async client for the ImgBB v1 upload endpoint."""

    def __init__(
        self,
        api_key: str,
        upload_url: str = "https://api.imgbb.com/1/upload",
        timeout: float = 30.0,
    ):
        self._api_key = api_key
        self._upload_url = upload_url
        self._timeout = timeout

    @property
    def is_configured(self) -> bool:
        return bool(self._api_key)

    async def upload(self, image_bytes: bytes, name: str) -> str | None:
        if not self.is_configured:
            logger.debug("ImgBB API key not configured, skipping upload")
            return None

        payload = {
            "image": base64.b64encode(image_bytes).decode("ascii"),
            "name": name,
        }

        try:
            async with httpx.AsyncClient(timeout=self._timeout) as client:
                response = await client.post(
                    self._upload_url,
                    params={"key": self._api_key},
                    data=payload,
                )
            response.raise_for_status()
            body = response.json()
        except httpx.HTTPStatusError as e:
            logger.warning(
                f"ImgBB upload of {name} rejected: HTTP {e.response.status_code}",
                extra={"status": e.response.status_code},
            )
            return None
        except (httpx.HTTPError, ValueError) as e:
            logger.warning(f"ImgBB upload of {name} failed: {type(e).__name__}: {e}")
            return None

        url = ((body or {}).get("data") or {}).get("url") if isinstance(body, dict) else None
        if not url:
            logger.warning(f"ImgBB response for {name} has no data.url")
            return None

        logger.info(f"Uploaded {name} to ImgBB: {url}")
        return url
