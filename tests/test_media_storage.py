"""
Tests for the media storage backends.
"""

from unittest.mock import patch

import pytest

from realty_api.services.media_storage import CloudinaryStorage, LocalFileStorage, resource_type_for


class TestResourceType:

    @pytest.mark.parametrize("mime_type,expected", [
        ("image/png", "image"),
        ("application/pdf", "image"),
        ("application/msword", "raw"),
        (None, "raw"),
    ])
    def test_resource_type_for(self, mime_type, expected):
        assert resource_type_for(mime_type) == expected


class TestLocalFileStorage:

    @pytest.mark.asyncio
    async def test_upload_writes_file_under_folder(self, tmp_path):
        storage = LocalFileStorage(str(tmp_path))

        result = await storage.upload(b"binary", "Front.JPG", "image/jpeg", "properties/abc")

        assert result["public_id"].startswith("properties/abc/")
        assert result["public_id"].endswith(".jpg")
        assert result["url"] == f"/uploads/{result['public_id']}"
        assert (tmp_path / result["public_id"]).read_bytes() == b"binary"

    @pytest.mark.asyncio
    async def test_delete_and_delete_many(self, tmp_path):
        storage = LocalFileStorage(str(tmp_path))
        first = await storage.upload(b"1", "a.png", "image/png", "p")
        second = await storage.upload(b"2", "b.png", "image/png", "p")

        assert await storage.delete(first["public_id"]) is True
        assert await storage.delete(first["public_id"]) is False
        assert await storage.delete_many([first["public_id"], second["public_id"]]) == 1
        assert not (tmp_path / second["public_id"]).exists()

    @pytest.mark.asyncio
    async def test_keys_cannot_escape_base_dir(self, tmp_path):
        storage = LocalFileStorage(str(tmp_path / "media"))

        with pytest.raises(ValueError):
            await storage.delete("../outside.png")


class TestCloudinaryStorage:

    @pytest.mark.asyncio
    async def test_upload_uses_folder_and_resource_type(self):
        storage = CloudinaryStorage("demo", "key", "secret")

        with patch("cloudinary.uploader.upload") as upload:
            upload.return_value = {"secure_url": "https://res.cloudinary.com/demo/x.pdf", "public_id": "properties/1/x"}
            result = await storage.upload(b"%PDF", "plan.pdf", "application/pdf", "properties/1")

        assert result == {"url": "https://res.cloudinary.com/demo/x.pdf", "public_id": "properties/1/x"}
        kwargs = upload.call_args.kwargs
        assert kwargs["folder"] == "properties/1"
        assert kwargs["resource_type"] == "image"

    @pytest.mark.asyncio
    async def test_delete_reports_result(self):
        storage = CloudinaryStorage("demo", "key", "secret")

        with patch("cloudinary.uploader.destroy", return_value={"result": "not found"}):
            assert await storage.delete("properties/1/x") is False

        with patch("cloudinary.uploader.destroy", return_value={"result": "ok"}):
            assert await storage.delete("properties/1/x") is True

    @pytest.mark.asyncio
    async def test_delete_many_counts_deleted(self):
        storage = CloudinaryStorage("demo", "key", "secret")

        with patch("cloudinary.api.delete_resources") as delete_resources:
            delete_resources.return_value = {"deleted": {"a": "deleted", "b": "not_found"}}
            assert await storage.delete_many(["a", "b"]) == 1
            assert await storage.delete_many([]) == 0

        delete_resources.assert_called_once()
