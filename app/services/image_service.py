import uuid
from typing import Optional
from PIL import Image
import io
from app.core.config import settings
from app.core.exceptions import PersistenceError, ValidationError
from app.db.supabase_client import get_supabase_service_client
import logging

logger = logging.getLogger(__name__)

class ImageService:
    """Validates uploads and hands them to Supabase storage"""

    def __init__(self, client=None, bucket_name: Optional[str] = None):
        self.bucket_name = bucket_name or settings.SUPABASE_STORAGE_BUCKET
        self._client = client

    @property
    def supabase_client(self):
        if self._client is None:
            self._client = get_supabase_service_client()
        return self._client

    def validate_image(self, image_data: bytes, content_type: Optional[str] = None) -> None:
        """
        Check size, declared type and that the bytes decode as an image.

        Raises:
            ValidationError: Empty, too large, disallowed type or corrupt image
        """
        if not image_data:
            raise ValidationError("Image is required")

        if len(image_data) > settings.MAX_IMAGE_SIZE:
            raise ValidationError(
                f"Image size too large. Maximum size is {settings.MAX_IMAGE_SIZE / (1024 * 1024):.1f}MB"
            )

        if content_type and content_type not in settings.ALLOWED_IMAGE_TYPES:
            logger.warning(f"Invalid content type: {content_type}, allowed: {settings.ALLOWED_IMAGE_TYPES}")
            raise ValidationError(
                f"Invalid image type. Allowed types: {', '.join(settings.ALLOWED_IMAGE_TYPES)}"
            )

        try:
            with Image.open(io.BytesIO(image_data)) as img:
                img.verify()
                logger.info(f"PIL image verification passed: size={img.size}, format={img.format}")
        except Exception as e:
            logger.error(f"PIL image verification failed: {e}")
            raise ValidationError("Invalid image file")

    def upload(self, image_data: bytes, filename: Optional[str] = None) -> Optional[str]:
        """
        Store the image and return its public URL.

        Returns None when storage is not configured and the memory backend is
        in use, so local development works without a bucket.

        Raises:
            PersistenceError: Upload or URL lookup failed
        """
        client = self.supabase_client
        if not client:
            if settings.STORAGE_BACKEND == "memory":
                logger.warning("Image storage not configured, report will have no image URL")
                return None
            raise PersistenceError("Image storage not available")

        file_extension = filename.rsplit('.', 1)[-1].lower() if filename and '.' in filename else 'jpg'
        unique_filename = f"{uuid.uuid4().hex}.{file_extension}"

        try:
            client.storage.from_(self.bucket_name).upload(path=unique_filename, file=image_data)
            public_url = client.storage.from_(self.bucket_name).get_public_url(unique_filename)
        except Exception as e:
            logger.error(f"Error uploading image to Supabase: {e}")
            raise PersistenceError("Image upload failed") from e

        if not public_url:
            raise PersistenceError("Failed to get public URL")

        logger.info(f"Image uploaded to Supabase: {unique_filename}")
        return public_url

    def delete(self, image_url: Optional[str]) -> bool:
        """Best-effort removal of an uploaded image, used to roll back a failed creation"""
        if not image_url or not self.supabase_client:
            return False

        # https://<project>.supabase.co/storage/v1/object/public/<bucket>/<file>?token=...
        filename = image_url.split('/')[-1].split('?')[0]
        if not filename or '.' not in filename:
            logger.error(f"Invalid filename extracted: '{filename}'")
            return False

        try:
            self.supabase_client.storage.from_(self.bucket_name).remove([filename])
            logger.info(f"Image deleted from Supabase: {filename}")
            return True
        except Exception as e:
            logger.error(f"Error deleting image from Supabase {image_url}: {e}")
            return False

# Global image service instance
image_service = ImageService()

def get_image_service() -> ImageService:
    return image_service
