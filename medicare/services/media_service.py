import io
import logging
from typing import Optional

import cloudinary
import cloudinary.exceptions
import cloudinary.uploader

from ..core.config import Settings
from ..core.exceptions import MediaUploadError

logger = logging.getLogger(__name__)


class CloudinaryMediaService:
    """Image uploads through the Cloudinary SDK."""

    def __init__(
        self,
        cloud_name: Optional[str],
        api_key: Optional[str],
        api_secret: Optional[str],
    ):
        self.cloud_name = cloud_name
        self.api_key = api_key
        self.api_secret = api_secret
        if self.is_configured:
            cloudinary.config(
                cloud_name=cloud_name,
                api_key=api_key,
                api_secret=api_secret,
                secure=True,
            )

    @classmethod
    def from_settings(cls, settings: Settings) -> "CloudinaryMediaService":
        return cls(
            cloud_name=settings.CLOUDINARY_CLOUD_NAME,
            api_key=settings.CLOUDINARY_API_KEY,
            api_secret=settings.CLOUDINARY_API_SECRET,
        )

    @property
    def is_configured(self) -> bool:
        return bool(self.cloud_name and self.api_key and self.api_secret)

    def upload_image(
        self,
        content: bytes,
        filename: str,
        folder: str,
    ) -> str:
        """Upload an image and return its HTTPS URL. Blocks until Cloudinary answers."""
        if not self.is_configured:
            raise MediaUploadError("Media storage is not configured")

        try:
            result = cloudinary.uploader.upload(
                io.BytesIO(content),
                folder=folder,
                filename=filename,
                resource_type="image",
            )
        except cloudinary.exceptions.Error as exc:
            logger.error(f"Media upload rejected: {exc}")
            raise MediaUploadError(str(exc)) from exc

        secure_url = result.get("secure_url")
        if not secure_url:
            raise MediaUploadError("Media storage response did not include a URL")

        return secure_url
