from fastapi import APIRouter, Depends
from fastapi.responses import Response

from foodlink.core.errors import NotFound
from foodlink.deps import get_photo_store

router = APIRouter(prefix="/photos", tags=["photos"])

@router.get("/{key:path}")
async def get_photo(key: str, photos=Depends(get_photo_store)):
    found = await photos.fetch(key)
    if found is None:
        raise NotFound("Photo not found")
    content_type, data = found
    return Response(content=data, media_type=content_type)
