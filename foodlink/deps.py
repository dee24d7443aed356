from datetime import datetime, timezone
from functools import lru_cache

from fastapi import Depends
from fastapi.security import OAuth2PasswordBearer

from foodlink.core.config import settings
from foodlink.core.errors import AuthenticationRequired
from foodlink.core.security import decode_token
from foodlink.core.session import Session
from foodlink.services.profiles import profile_for_user

oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/auth/login", auto_error=False)


@lru_cache(maxsize=1)
def get_repo():
    if settings.use_mongo:
        from foodlink.core.db import get_db
        from foodlink.repos.mongo import MongoRepo
        return MongoRepo(get_db())
    from foodlink.repos.inmemory import InMemoryRepo
    return InMemoryRepo()


@lru_cache(maxsize=1)
def get_photo_store():
    if settings.use_mongo:
        from foodlink.core.db import get_db
        from foodlink.services.photos import GridFSPhotoStore
        return GridFSPhotoStore(get_db())
    from foodlink.services.photos import MemoryPhotoStore
    return MemoryPhotoStore()


async def get_session(token: str | None = Depends(oauth2_scheme), repo=Depends(get_repo)) -> Session:
    if not token:
        raise AuthenticationRequired("Please log in to continue")
    data = decode_token(token)
    if not data:
        raise AuthenticationRequired("Invalid or expired token")
    if await repo.is_token_revoked(data["jti"]):
        raise AuthenticationRequired("Session has ended, please log in again")
    profile = await profile_for_user(repo, data["sub"])
    return Session(
        user_id=data["sub"],
        token_id=data["jti"],
        token_expires=datetime.fromtimestamp(data["exp"], tz=timezone.utc),
        profile=profile,
    )
