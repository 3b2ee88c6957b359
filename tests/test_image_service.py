from unittest.mock import MagicMock

import pytest

from app.core.exceptions import PersistenceError, ValidationError
from app.services import image_service as image_module
from app.services.image_service import ImageService

PUBLIC_URL = "https://demo.supabase.co/storage/v1/object/public/issues_bucket/f00.png?token=abc"


@pytest.fixture
def storage_client():
    client = MagicMock()
    client.storage.from_.return_value.get_public_url.return_value = PUBLIC_URL
    return client


class TestValidateImage:

    def test_valid_jpeg(self, jpeg_bytes):
        ImageService(client=MagicMock()).validate_image(jpeg_bytes, "image/jpeg")

    def test_empty(self):
        with pytest.raises(ValidationError):
            ImageService(client=MagicMock()).validate_image(b"", "image/jpeg")

    def test_disallowed_type(self, jpeg_bytes):
        with pytest.raises(ValidationError):
            ImageService(client=MagicMock()).validate_image(jpeg_bytes, "application/pdf")

    def test_too_large(self, jpeg_bytes, monkeypatch):
        monkeypatch.setattr(image_module.settings, "MAX_IMAGE_SIZE", 10)
        with pytest.raises(ValidationError):
            ImageService(client=MagicMock()).validate_image(jpeg_bytes, "image/jpeg")

    def test_corrupt(self):
        with pytest.raises(ValidationError):
            ImageService(client=MagicMock()).validate_image(b"\xff\xd8garbage", "image/jpeg")


class TestUpload:

    def test_upload_keeps_extension(self, storage_client, jpeg_bytes):
        url = ImageService(client=storage_client, bucket_name="bucket").upload(jpeg_bytes, "photo.PNG")

        assert url == PUBLIC_URL
        storage_client.storage.from_.assert_called_with("bucket")
        path = storage_client.storage.from_.return_value.upload.call_args.kwargs["path"]
        assert path.endswith(".png")

    def test_upload_failure(self, storage_client, jpeg_bytes):
        storage_client.storage.from_.return_value.upload.side_effect = RuntimeError("bucket missing")

        with pytest.raises(PersistenceError):
            ImageService(client=storage_client).upload(jpeg_bytes, "a.jpg")

    def test_no_storage_in_memory_mode(self, monkeypatch, jpeg_bytes):
        monkeypatch.setattr(image_module, "get_supabase_service_client", lambda: None)
        assert ImageService().upload(jpeg_bytes, "a.jpg") is None

    def test_no_storage_with_supabase_backend(self, monkeypatch, jpeg_bytes):
        monkeypatch.setattr(image_module, "get_supabase_service_client", lambda: None)
        monkeypatch.setattr(image_module.settings, "STORAGE_BACKEND", "supabase")

        with pytest.raises(PersistenceError):
            ImageService().upload(jpeg_bytes, "a.jpg")


class TestDelete:

    def test_delete_strips_query(self, storage_client):
        assert ImageService(client=storage_client).delete(PUBLIC_URL) is True
        storage_client.storage.from_.return_value.remove.assert_called_once_with(["f00.png"])

    def test_delete_nothing(self, storage_client):
        assert ImageService(client=storage_client).delete(None) is False

    def test_delete_failure_is_reported(self, storage_client):
        storage_client.storage.from_.return_value.remove.side_effect = RuntimeError("gone")
        assert ImageService(client=storage_client).delete(PUBLIC_URL) is False
