"""
Upload validation for property media.
Enforces the extension allow-list and the size cap, and checks that image
uploads actually decode with Pillow before anything is stored.
"""

import io
import uuid
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, List, Optional

from PIL import Image
from fastapi import UploadFile

from realty_api.config import get_settings
from realty_api.utils.exceptions import ValidationError

settings = get_settings()


@dataclass
class ValidatedFile:
    """An upload that passed validation, with its bytes already read."""
    filename: str
    extension: str
    mime_type: str
    content: bytes
    width: Optional[int] = None
    height: Optional[int] = None

    @property
    def size(self) -> int:
        return len(self.content)

    @property
    def is_image(self) -> bool:
        return self.mime_type.startswith("image/")


class FileValidator:
    """Utility class for file validation operations."""

    MIME_TYPES: Dict[str, str] = {
        "jpeg": "image/jpeg",
        "jpg": "image/jpeg",
        "png": "image/png",
        "gif": "image/gif",
        "webp": "image/webp",
        "pdf": "application/pdf",
        "doc": "application/msword",
        "docx": "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
    }

    # Pillow format names accepted for each image MIME type
    IMAGE_FORMATS = {
        "image/jpeg": ["jpeg", "mpo"],
        "image/png": ["png"],
        "image/gif": ["gif"],
        "image/webp": ["webp"],
    }

    MAX_WIDTH = 10000
    MAX_HEIGHT = 10000

    @classmethod
    def allowed_extensions(cls) -> List[str]:
        return [ext for ext in settings.allowed_file_extensions if ext in cls.MIME_TYPES]

    @classmethod
    def validate_file_extension(cls, filename: str) -> str:
        """
        Validate file extension against the allow-list.

        Returns:
            Lowercase extension without the leading dot

        Raises:
            ValidationError: If extension is missing or not allowed
        """
        if not filename:
            raise ValidationError("Filename is required")

        extension = Path(filename).suffix.lower().lstrip(".")
        if not extension:
            raise ValidationError("File must have an extension")

        allowed = cls.allowed_extensions()
        if extension not in allowed:
            raise ValidationError(
                f"File extension '.{extension}' not supported. "
                f"Supported extensions: {', '.join(allowed)}",
                field_errors=[{"field": "images", "message": f"Unsupported file type: {filename}"}]
            )

        return extension

    @classmethod
    def validate_file_size(cls, file_size: int, max_size: Optional[int] = None) -> int:
        if file_size <= 0:
            raise ValidationError("File is empty")

        max_allowed = max_size or settings.max_file_size
        if file_size > max_allowed:
            max_mb = max_allowed / (1024 * 1024)
            actual_mb = file_size / (1024 * 1024)
            raise ValidationError(
                f"File size ({actual_mb:.1f}MB) exceeds maximum allowed size ({max_mb:.1f}MB)",
                field_errors=[{"field": "images", "message": "File too large"}]
            )

        return file_size

    @classmethod
    def validate_image_content(cls, content: bytes, mime_type: str):
        """
        Decode the image with Pillow and check its format and dimensions.

        Returns:
            Tuple of (width, height)
        """
        try:
            with Image.open(io.BytesIO(content)) as img:
                width, height = img.size
                pil_format = img.format.lower() if img.format else ""
        except Exception as e:
            raise ValidationError(f"Invalid image file: {str(e)}")

        if pil_format not in cls.IMAGE_FORMATS.get(mime_type, []):
            raise ValidationError(f"Image format '{pil_format}' doesn't match MIME type '{mime_type}'")

        if width > cls.MAX_WIDTH or height > cls.MAX_HEIGHT:
            raise ValidationError(
                f"Image dimensions {width}x{height}px exceed maximum {cls.MAX_WIDTH}x{cls.MAX_HEIGHT}px"
            )

        return width, height

    @classmethod
    async def validate_upload_file(cls, file: UploadFile) -> ValidatedFile:
        """
        Run every check on an uploaded file and return its validated contents.

        Raises:
            ValidationError: If any validation fails
        """
        extension = cls.validate_file_extension(file.filename or "")
        mime_type = cls.MIME_TYPES[extension]

        # Browsers sometimes send generic types; only reject a declared type that contradicts the extension
        declared = (file.content_type or "").split(";")[0].strip().lower()
        if declared and declared not in ("application/octet-stream", mime_type):
            raise ValidationError(
                f"File extension '.{extension}' doesn't match MIME type '{declared}'"
            )

        await file.seek(0)
        content = await file.read()
        await file.seek(0)

        cls.validate_file_size(len(content))

        validated = ValidatedFile(
            filename=file.filename,
            extension=extension,
            mime_type=mime_type,
            content=content,
        )

        if validated.is_image:
            validated.width, validated.height = cls.validate_image_content(content, mime_type)

        return validated


def generate_unique_filename(original_filename: str) -> str:
    """Random file name that keeps the original extension."""
    extension = Path(original_filename).suffix.lower()
    return f"{uuid.uuid4().hex}{extension}"
