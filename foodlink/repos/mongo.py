from __future__ import annotations

from datetime import datetime
from typing import Dict, Iterable, List, Optional

from bson import ObjectId
from motor.motor_asyncio import AsyncIOMotorDatabase
from pymongo import ASCENDING, DESCENDING, ReturnDocument
from pymongo.errors import DuplicateKeyError

from foodlink.core.errors import EmailTaken, NotFound


class MongoRepo:
    def __init__(self, db: AsyncIOMotorDatabase):
        self.db = db

    async def ensure_indexes(self) -> None:
        async def ensure_index(col, keys, name: str, **kwargs):
            existing = [ix["name"] async for ix in col.list_indexes()]
            if name in existing:
                return
            await col.create_index(keys, name=name, **kwargs)

        await ensure_index(self.db.users, [("email", ASCENDING)], "email_1", unique=True)
        await ensure_index(self.db.profiles, [("user_id", ASCENDING)], "user_id_1", unique=True)
        await ensure_index(self.db.donations, [("status", ASCENDING), ("created_at", DESCENDING)], "status_1_created_at_-1")
        await ensure_index(self.db.donations, [("donor_id", ASCENDING)], "donor_id_1")
        await ensure_index(self.db.donations, [("accepted_by", ASCENDING)], "accepted_by_1")
        await ensure_index(self.db.donations, [("expires_at", ASCENDING)], "expires_at_1")
        # revoked tokens drop out once the token itself would have expired
        await ensure_index(self.db.revoked_tokens, [("expires_at", ASCENDING)], "expires_at_ttl", expireAfterSeconds=0)

    # Users
    async def create_user(self, email: str, password_hash: str, created_at: datetime) -> dict:
        doc = {"_id": str(ObjectId()), "email": email.lower(), "password_hash": password_hash, "created_at": created_at}
        try:
            await self.db.users.insert_one(doc)
        except DuplicateKeyError:
            raise EmailTaken("Email already registered")
        return doc

    async def find_user_by_email(self, email: str) -> Optional[dict]:
        return await self.db.users.find_one({"email": email.lower()})

    async def delete_user(self, user_id: str) -> None:
        await self.db.users.delete_one({"_id": user_id})

    # Profiles
    async def create_profile(self, doc: dict) -> dict:
        doc = dict(doc, _id=str(ObjectId()))
        await self.db.profiles.insert_one(doc)
        return doc

    async def get_profile(self, profile_id: str) -> Optional[dict]:
        return await self.db.profiles.find_one({"_id": profile_id})

    async def get_profile_by_user(self, user_id: str) -> Optional[dict]:
        return await self.db.profiles.find_one({"user_id": user_id})

    async def get_profiles(self, profile_ids: Iterable[str]) -> Dict[str, dict]:
        ids = list(set(profile_ids))
        if not ids:
            return {}
        return {p["_id"]: p async for p in self.db.profiles.find({"_id": {"$in": ids}})}

    async def update_profile(self, profile_id: str, changes: dict) -> dict:
        doc = await self.db.profiles.find_one_and_update(
            {"_id": profile_id}, {"$set": changes}, return_document=ReturnDocument.AFTER
        )
        if doc is None:
            raise NotFound("Profile not found")
        return doc

    # Donations
    async def insert_donation(self, doc: dict) -> dict:
        doc = dict(doc, _id=str(ObjectId()))
        await self.db.donations.insert_one(doc)
        return doc

    async def get_donation(self, donation_id: str) -> Optional[dict]:
        return await self.db.donations.find_one({"_id": donation_id})

    async def list_donations(
        self,
        statuses: Optional[Iterable[str]] = None,
        donor_id: Optional[str] = None,
        involving: Optional[str] = None,
        expires_after: Optional[datetime] = None,
    ) -> List[dict]:
        query: dict = {}
        if statuses is not None:
            query["status"] = {"$in": list(statuses)}
        if donor_id is not None:
            query["donor_id"] = donor_id
        if involving is not None:
            query["$or"] = [{"donor_id": involving}, {"accepted_by": involving}]
        if expires_after is not None:
            query["expires_at"] = {"$gt": expires_after}
        cur = self.db.donations.find(query).sort("created_at", DESCENDING)
        return [d async for d in cur]

    async def transition_donation(self, donation_id: str, expect_status: str, changes: dict) -> Optional[dict]:
        # status in the filter makes this a compare-and-swap; None means it lost
        return await self.db.donations.find_one_and_update(
            {"_id": donation_id, "status": expect_status},
            {"$set": changes},
            return_document=ReturnDocument.AFTER,
        )

    # Sessions
    async def revoke_token(self, jti: str, expires_at: datetime) -> None:
        await self.db.revoked_tokens.update_one(
            {"_id": jti}, {"$set": {"expires_at": expires_at}}, upsert=True
        )

    async def is_token_revoked(self, jti: str) -> bool:
        return await self.db.revoked_tokens.find_one({"_id": jti}) is not None
