# foodlink/core/db.py
from functools import lru_cache

from motor.motor_asyncio import AsyncIOMotorClient

from foodlink.core.config import settings

@lru_cache
def get_client() -> AsyncIOMotorClient:
    # tz_aware so expiry arithmetic compares against aware "now"
    return AsyncIOMotorClient(settings.mongo_uri, uuidRepresentation="standard", tz_aware=True)

def get_db():
    return get_client()[settings.mongo_db]
