from datetime import datetime
from typing import Dict, NamedTuple, Optional, Tuple

from gridfs.errors import NoFile
from motor.motor_asyncio import AsyncIOMotorDatabase, AsyncIOMotorGridFSBucket

from foodlink.core.config import settings


class PhotoUpload(NamedTuple):
    content_type: str
    data: bytes


def photo_key(user_id: str, ext: str, now: datetime) -> str:
    """Storage key namespaced by uploader: <user_id>/<epoch ms>.<ext>"""
    return f"{user_id}/{int(now.timestamp() * 1000)}.{ext}"


def public_url(key: str) -> str:
    return f"{settings.public_base_url.rstrip('/')}/photos/{key}"


class MemoryPhotoStore:
    def __init__(self):
        self.objects: Dict[str, Tuple[str, bytes]] = {}

    async def upload(self, key: str, upload: PhotoUpload) -> str:
        self.objects[key] = (upload.content_type, upload.data)
        return public_url(key)

    async def fetch(self, key: str) -> Optional[Tuple[str, bytes]]:
        return self.objects.get(key)

    async def delete(self, key: str) -> None:
        self.objects.pop(key, None)


class GridFSPhotoStore:
    def __init__(self, db: AsyncIOMotorDatabase):
        self.bucket = AsyncIOMotorGridFSBucket(db, bucket_name="photos")

    async def upload(self, key: str, upload: PhotoUpload) -> str:
        await self.bucket.upload_from_stream(key, upload.data, metadata={"contentType": upload.content_type})
        return public_url(key)

    async def fetch(self, key: str) -> Optional[Tuple[str, bytes]]:
        try:
            stream = await self.bucket.open_download_stream_by_name(key)
        except NoFile:
            return None
        data = await stream.read()
        meta = stream.metadata or {}
        return meta.get("contentType", "application/octet-stream"), data

    async def delete(self, key: str) -> None:
        async for grid_out in self.bucket.find({"filename": key}):
            await self.bucket.delete(grid_out._id)
