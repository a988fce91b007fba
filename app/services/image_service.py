"""
Listing image post-processing.

Turns a product's image list into listing-ready URLs:

    1. Only the primary image is transformed; up to 3 more pass through
       unchanged (4 images total).
    2. The primary image gets the badge overlay composited across its top
       edge and is cached on disk as ``<ASIN>-<md5[:8]>.jpg``.
    3. The cached artifact is uploaded to the image host; if that fails or
       is unconfigured, a ``<base_url>/processed/<name>`` URL is used.

Any failure for the primary slot degrades to the original URL; nothing
in here raises out to the content generator.
"""

import asyncio
import hashlib
import io
import logging
import os
import tempfile
from pathlib import Path

import httpx
from PIL import Image

from app.core.exceptions import ImageProcessingError
from app.core.interfaces import IImageHost

logger = logging.getLogger(__name__)

DOWNLOAD_USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36"
)
JPEG_QUALITY = 90


class ImageService:
    """
    Badge-overlay compositor with a local artifact cache and remote upload.

    Usage:
        service = ImageService(processed_dir, overlay_path, image_host=ImgBBClient(key))
        urls = await service.process_listing_images(product.images, product.asin, base_url)
    """

    def __init__(
        self,
        processed_dir: str | Path,
        overlay_path: str | Path,
        image_host: IImageHost | None = None,
        download_timeout: float = 10.0,
        max_images: int = 4,
    ):
        self._processed_dir = Path(processed_dir)
        self._overlay_path = Path(overlay_path)
        self._image_host = image_host
        self._download_timeout = download_timeout
        self._max_images = max_images

    # ─── Public API ──────────────────────────────────────────

    async def process_listing_images(
        self,
        images: list[str],
        asin: str,
        base_url: str = "",
    ) -> list[str]:
        """
        Produce listing-ready URLs for a product's images.

        Args:
            images: Source image URLs in provider order.
            asin: Product ASIN (part of the artifact name).
            base_url: Public base URL for the local-file fallback.

        Returns:
            At most ``max_images`` URLs; the first is the processed primary.
        """
        if not images:
            return []

        primary = await self.process_primary_image(images[0], asin, base_url)
        processed = [primary, *images[1:self._max_images]]
        logger.info(
            f"Processed listing images for {asin}: 1 with overlay, "
            f"{len(processed) - 1} passed through"
        )
        return processed

    async def process_primary_image(self, image_url: str, asin: str, base_url: str = "") -> str:
        """Overlay, cache, and publish one image. Returns the original URL on failure."""
        name = self.artifact_name(image_url, asin)
        output_path = self._processed_dir / name

        try:
            if output_path.exists():
                logger.debug(f"Found cached listing image {name}")
            else:
                if not self._overlay_path.exists():
                    logger.warning(f"Overlay image not found at {self._overlay_path}")
                    return image_url

                source = await self._download(image_url)
                if source is None:
                    return image_url

                await asyncio.to_thread(self._composite_to_file, source, output_path)
                logger.info(f"Composited badge overlay for {asin} → {name}")
        except (ImageProcessingError, OSError, ValueError) as e:
            logger.warning(f"Image processing failed for {asin}, using original URL: {e}")
            return image_url

        hosted = await self._upload(output_path, name)
        if hosted:
            return hosted
        return self.local_url(name, base_url)

    # ─── Naming ──────────────────────────────────────────────

    @staticmethod
    def artifact_name(image_url: str, asin: str) -> str:
        """Deterministic cache file name for a (source URL, ASIN) pair."""
        digest = hashlib.md5(image_url.encode("utf-8")).hexdigest()[:8]
        return f"{asin.upper()}-{digest}.jpg"

    @staticmethod
    def local_url(name: str, base_url: str = "") -> str:
        path = f"/processed/{name}"
        return f"{base_url.rstrip('/')}{path}" if base_url else path

    # ─── I/O Steps ───────────────────────────────────────────

    async def _download(self, url: str) -> bytes | None:
        """Download the source image, or None on any network failure."""
        try:
            async with httpx.AsyncClient(
                timeout=self._download_timeout,
                follow_redirects=True,
            ) as client:
                response = await client.get(url, headers={"User-Agent": DOWNLOAD_USER_AGENT})
            response.raise_for_status()
            return response.content
        except (httpx.HTTPError, httpx.InvalidURL) as e:
            logger.warning(f"Error downloading image {url}: {type(e).__name__}: {e}")
            return None

    async def _upload(self, path: Path, name: str) -> str | None:
        if self._image_host is None:
            return None
        try:
            image_bytes = await asyncio.to_thread(path.read_bytes)
        except OSError as e:
            logger.warning(f"Could not read {name} for upload: {e}")
            return None
        return await self._image_host.upload(image_bytes, name)

    def _composite_to_file(self, source: bytes, output_path: Path) -> None:
        """Paste the width-matched overlay at the top of the image and save as JPEG."""
        try:
            with Image.open(io.BytesIO(source)) as opened:
                base = opened.convert("RGBA")
            with Image.open(self._overlay_path) as overlay_file:
                overlay = overlay_file.convert("RGBA")

            if overlay.width != base.width:
                height = max(1, round(overlay.height * base.width / overlay.width))
                overlay = overlay.resize((base.width, height), Image.Resampling.LANCZOS)

            base.alpha_composite(overlay.crop((0, 0, base.width, min(overlay.height, base.height))))
        except (OSError, ValueError, Image.DecompressionBombError) as e:
            raise ImageProcessingError(f"Could not composite image: {e}") from e

        self._write_atomically(base.convert("RGB"), output_path)

    @staticmethod
    def _write_atomically(image: Image.Image, output_path: Path) -> None:
        """Write via a temp file + rename so concurrent writers of the same name never clash."""
        output_path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(dir=output_path.parent, suffix=".tmp")
        try:
            with os.fdopen(fd, "wb") as tmp:
                image.save(tmp, format="JPEG", quality=JPEG_QUALITY)
            os.replace(tmp_name, output_path)
        except BaseException:
            Path(tmp_name).unlink(missing_ok=True)
            raise
