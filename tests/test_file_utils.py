"""
Tests for upload validation.
"""

import io

import pytest
from fastapi import UploadFile
from starlette.datastructures import Headers

from realty_api.utils.exceptions import ValidationError
from realty_api.utils.file_utils import FileValidator, generate_unique_filename
from tests.conftest import image_bytes


def upload(content: bytes, filename: str, content_type: str = None) -> UploadFile:
    headers = Headers({"content-type": content_type}) if content_type else None
    return UploadFile(file=io.BytesIO(content), filename=filename, headers=headers)


class TestExtensions:

    @pytest.mark.parametrize("filename,expected", [("photo.JPG", "jpg"), ("plan.pdf", "pdf"), ("a.b.webp", "webp")])
    def test_allowed(self, filename, expected):
        assert FileValidator.validate_file_extension(filename) == expected

    @pytest.mark.parametrize("filename", ["", "README", "script.exe", "image.svg"])
    def test_rejected(self, filename):
        with pytest.raises(ValidationError):
            FileValidator.validate_file_extension(filename)


class TestSizes:

    def test_empty_file(self):
        with pytest.raises(ValidationError):
            FileValidator.validate_file_size(0)

    def test_over_limit(self):
        with pytest.raises(ValidationError) as exc_info:
            FileValidator.validate_file_size(11 * 1024 * 1024)
        assert "exceeds maximum" in exc_info.value.detail

    def test_custom_limit(self):
        assert FileValidator.validate_file_size(100, max_size=100) == 100


class TestUploadValidation:

    @pytest.mark.asyncio
    async def test_valid_png(self):
        validated = await FileValidator.validate_upload_file(upload(image_bytes("PNG", (40, 30)), "front.png", "image/png"))

        assert validated.mime_type == "image/png"
        assert (validated.width, validated.height) == (40, 30)
        assert validated.is_image

    @pytest.mark.asyncio
    async def test_generic_content_type_is_accepted(self):
        validated = await FileValidator.validate_upload_file(
            upload(image_bytes("JPEG"), "front.jpg", "application/octet-stream")
        )
        assert validated.mime_type == "image/jpeg"

    @pytest.mark.asyncio
    async def test_contradicting_content_type(self):
        with pytest.raises(ValidationError):
            await FileValidator.validate_upload_file(upload(image_bytes("PNG"), "front.png", "text/plain"))

    @pytest.mark.asyncio
    async def test_image_that_does_not_decode(self):
        with pytest.raises(ValidationError):
            await FileValidator.validate_upload_file(upload(b"definitely not a png", "front.png", "image/png"))

    @pytest.mark.asyncio
    async def test_image_with_wrong_format(self):
        with pytest.raises(ValidationError):
            await FileValidator.validate_upload_file(upload(image_bytes("PNG"), "front.jpg", "image/jpeg"))

    @pytest.mark.asyncio
    async def test_documents_skip_image_decoding(self):
        validated = await FileValidator.validate_upload_file(upload(b"%PDF-1.4 floor plan", "plan.pdf", "application/pdf"))

        assert validated.mime_type == "application/pdf"
        assert validated.width is None


def test_unique_filenames_keep_extension():
    first = generate_unique_filename("Living Room.PNG")
    second = generate_unique_filename("Living Room.PNG")

    assert first.endswith(".png")
    assert first != second
