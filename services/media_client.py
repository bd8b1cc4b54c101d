import logging
from typing import Optional

import httpx

from config.settings import Settings
from services.errors import MediaUploadError

logger = logging.getLogger(__name__)


class CloudinaryUploader:
    """Uploads one image with an unsigned preset and returns its HTTPS URL."""

    def __init__(self, settings: Settings, client: Optional[httpx.AsyncClient] = None):
        self.settings = settings
        self._client = client

    @property
    def upload_url(self) -> str:
        base = self.settings.CLOUDINARY_API_URL.rstrip("/")
        return f"{base}/{self.settings.CLOUDINARY_CLOUD_NAME}/image/upload"

    async def _post(self, **kwargs) -> httpx.Response:
        if self._client is not None:
            return await self._client.post(self.upload_url, **kwargs)
        async with httpx.AsyncClient() as client:
            return await client.post(self.upload_url, **kwargs)

    async def upload(self, filename: str, content: bytes, content_type: Optional[str] = None) -> str:
        if not self.settings.CLOUDINARY_CLOUD_NAME or not self.settings.CLOUDINARY_UPLOAD_PRESET:
            logger.error("Cloudinary env vars missing")
            raise MediaUploadError("Faltan variables de entorno de Cloudinary")

        files = {"file": (filename, content, content_type or "application/octet-stream")}
        data = {"upload_preset": self.settings.CLOUDINARY_UPLOAD_PRESET}

        try:
            response = await self._post(files=files, data=data)
        except httpx.HTTPError as e:
            logger.error(f"Cloudinary upload failed for {filename}: {e}")
            raise MediaUploadError() from e

        if not response.is_success:
            try:
                body = response.json()
            except ValueError:
                body = response.text
            logger.error(f"Cloudinary upload error ({filename}) HTTP {response.status_code}: {body}")
            raise MediaUploadError()

        # secure_url is the final HTTPS URL of the image
        return response.json()["secure_url"]
