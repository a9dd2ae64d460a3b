"""Student photo hosting on Cloudinary (unsigned uploads)"""

import httpx

from verifyme import config
from verifyme.errors import ImageUploadFailed
from verifyme.utils.logger import get_logger

logger = get_logger(__name__)


class CloudinaryUploader:
    """Upload photos with an unsigned preset and fetch them back for ID cards."""

    def __init__(self, cloud_name: str = None, upload_preset: str = None,
                 transport: httpx.AsyncBaseTransport = None):
        self.cloud_name = cloud_name if cloud_name is not None else config.CLOUDINARY_CLOUD_NAME
        self.upload_preset = upload_preset or config.CLOUDINARY_UPLOAD_PRESET
        self.transport = transport

    @property
    def upload_url(self) -> str:
        return f"{config.CLOUDINARY_API_BASE}/{self.cloud_name}/image/upload"

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(timeout=config.UPLOAD_TIMEOUT_SECONDS, transport=self.transport)

    async def upload(self, content: bytes, filename: str, content_type: str) -> str:
        """Upload and return the hosted ``secure_url``"""
        if not self.cloud_name:
            raise ImageUploadFailed("CLOUDINARY_CLOUD_NAME is not configured")

        try:
            async with self._client() as client:
                response = await client.post(
                    self.upload_url,
                    data={"upload_preset": self.upload_preset},
                    files={"file": (filename, content, content_type)},
                )
                response.raise_for_status()
                result = response.json()
        except (httpx.HTTPError, ValueError) as e:
            logger.error("Image upload failed: %s", e)
            raise ImageUploadFailed(str(e)) from e

        secure_url = result.get("secure_url")
        if not secure_url:
            raise ImageUploadFailed("response has no secure_url")
        return secure_url

    async def fetch(self, url: str) -> bytes | None:
        """Hosted image bytes, or None when it cannot be downloaded"""
        try:
            async with self._client() as client:
                response = await client.get(url)
                response.raise_for_status()
                return response.content
        except httpx.HTTPError as e:
            logger.warning("Could not fetch photo %s: %s", url, e)
            return None
