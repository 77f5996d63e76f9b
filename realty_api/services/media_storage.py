"""
Media storage backends for property uploads.

CloudinaryStorage is used when Cloudinary credentials are configured; otherwise
files are written under the local upload directory and served from /uploads.
Both return {"url", "public_id"} from upload so records look the same either way.
"""

import asyncio
import logging
from functools import lru_cache
from pathlib import Path
from typing import Dict, List, Optional

import aiofiles
import aiofiles.os
import cloudinary
import cloudinary.api
import cloudinary.uploader

from realty_api.config import settings
from realty_api.utils.file_utils import generate_unique_filename

logger = logging.getLogger(__name__)


def resource_type_for(mime_type: Optional[str]) -> str:
    """Cloudinary stores images and PDFs as 'image' and other documents as 'raw'."""
    if mime_type and (mime_type.startswith("image/") or mime_type == "application/pdf"):
        return "image"
    return "raw"


class MediaStorage:
    """Interface shared by the storage backends."""

    async def upload(self, content: bytes, filename: str, mime_type: str, folder: str) -> Dict[str, str]:
        raise NotImplementedError

    async def delete(self, public_id: str, resource_type: str = "image") -> bool:
        raise NotImplementedError

    async def delete_many(self, public_ids: List[str], resource_type: str = "image") -> int:
        raise NotImplementedError


class CloudinaryStorage(MediaStorage):
    def __init__(self, cloud_name: str, api_key: str, api_secret: str):
        cloudinary.config(
            cloud_name=cloud_name,
            api_key=api_key,
            api_secret=api_secret,
            secure=True,
        )

    async def upload(self, content: bytes, filename: str, mime_type: str, folder: str) -> Dict[str, str]:
        loop = asyncio.get_running_loop()
        result = await loop.run_in_executor(
            None,
            lambda: cloudinary.uploader.upload(
                content,
                folder=folder,
                resource_type=resource_type_for(mime_type),
                use_filename=False,
                unique_filename=True,
            ),
        )
        logger.info(f"Uploaded {filename} to Cloudinary as {result['public_id']}")
        return {"url": result["secure_url"], "public_id": result["public_id"]}

    async def delete(self, public_id: str, resource_type: str = "image") -> bool:
        loop = asyncio.get_running_loop()
        result = await loop.run_in_executor(
            None,
            lambda: cloudinary.uploader.destroy(public_id, resource_type=resource_type, invalidate=True),
        )
        deleted = result.get("result") == "ok"
        if not deleted:
            logger.warning(f"Cloudinary did not delete {public_id}: {result}")
        return deleted

    async def delete_many(self, public_ids: List[str], resource_type: str = "image") -> int:
        if not public_ids:
            return 0
        loop = asyncio.get_running_loop()
        result = await loop.run_in_executor(
            None,
            lambda: cloudinary.api.delete_resources(public_ids, resource_type=resource_type, invalidate=True),
        )
        deleted = result.get("deleted") or {}
        return sum(1 for status in deleted.values() if status == "deleted")


class LocalFileStorage(MediaStorage):
    """Stores files on disk; public_id is the path relative to the base directory."""

    def __init__(self, base_dir: str, base_url: str = "/uploads"):
        self.base_dir = Path(base_dir).resolve()
        self.base_dir.mkdir(parents=True, exist_ok=True)
        self.base_url = base_url.rstrip("/")

    def _path_for(self, public_id: str) -> Path:
        path = (self.base_dir / public_id).resolve()
        if self.base_dir not in path.parents:
            raise ValueError(f"Invalid storage key: {public_id}")
        return path

    async def upload(self, content: bytes, filename: str, mime_type: str, folder: str) -> Dict[str, str]:
        public_id = f"{folder.strip('/')}/{generate_unique_filename(filename)}"
        path = self._path_for(public_id)
        path.parent.mkdir(parents=True, exist_ok=True)

        async with aiofiles.open(path, "wb") as f:
            await f.write(content)

        logger.debug(f"Stored {filename} at {path}")
        return {"url": f"{self.base_url}/{public_id}", "public_id": public_id}

    async def delete(self, public_id: str, resource_type: str = "image") -> bool:
        path = self._path_for(public_id)
        if not await aiofiles.os.path.exists(path):
            logger.warning(f"Local file {public_id} already missing")
            return False
        await aiofiles.os.remove(path)
        return True

    async def delete_many(self, public_ids: List[str], resource_type: str = "image") -> int:
        deleted = 0
        for public_id in public_ids:
            if await self.delete(public_id, resource_type):
                deleted += 1
        return deleted


@lru_cache()
def get_storage() -> MediaStorage:
    if settings.media_storage_configured:
        logger.info("Using Cloudinary media storage")
        return CloudinaryStorage(
            settings.cloudinary_cloud_name,
            settings.cloudinary_api_key,
            settings.cloudinary_api_secret,
        )
    logger.info(f"Using local media storage at {settings.upload_dir}")
    return LocalFileStorage(settings.upload_dir)
