# foodlink/repos/inmemory.py
import copy
from datetime import datetime
from typing import Optional, List, Dict, Iterable

from bson import ObjectId

from foodlink.core.errors import EmailTaken, NotFound

def _id() -> str:
    return str(ObjectId())

class InMemoryRepo:
    """Dict-backed store with the same contract as MongoRepo.

    Writes never await between reading and mutating a record, so a
    conditional update is atomic with respect to other coroutines.
    """

    def __init__(self):
        self.users: Dict[str, dict] = {}
        self.users_by_email: Dict[str, str] = {}
        self.profiles: Dict[str, dict] = {}
        self.donations: Dict[str, dict] = {}
        self.revoked: Dict[str, datetime] = {}

    async def ensure_indexes(self) -> None:
        return None

    # Users
    async def create_user(self, email: str, password_hash: str, created_at: datetime) -> dict:
        key = email.lower()
        if key in self.users_by_email:
            raise EmailTaken("Email already registered")
        uid = _id()
        doc = {"_id": uid, "email": key, "password_hash": password_hash, "created_at": created_at}
        self.users[uid] = doc
        self.users_by_email[key] = uid
        return copy.deepcopy(doc)

    async def find_user_by_email(self, email: str) -> Optional[dict]:
        uid = self.users_by_email.get(email.lower())
        return copy.deepcopy(self.users[uid]) if uid else None

    async def delete_user(self, user_id: str) -> None:
        doc = self.users.pop(user_id, None)
        if doc:
            self.users_by_email.pop(doc["email"], None)

    # Profiles
    async def create_profile(self, doc: dict) -> dict:
        doc = dict(doc, _id=_id())
        self.profiles[doc["_id"]] = doc
        return copy.deepcopy(doc)

    async def get_profile(self, profile_id: str) -> Optional[dict]:
        doc = self.profiles.get(profile_id)
        return copy.deepcopy(doc) if doc else None

    async def get_profile_by_user(self, user_id: str) -> Optional[dict]:
        for p in self.profiles.values():
            if p["user_id"] == user_id:
                return copy.deepcopy(p)
        return None

    async def get_profiles(self, profile_ids: Iterable[str]) -> Dict[str, dict]:
        return {pid: copy.deepcopy(self.profiles[pid]) for pid in set(profile_ids) if pid in self.profiles}

    async def update_profile(self, profile_id: str, changes: dict) -> dict:
        doc = self.profiles.get(profile_id)
        if doc is None:
            raise NotFound("Profile not found")
        doc.update(changes)
        return copy.deepcopy(doc)

    # Donations
    async def insert_donation(self, doc: dict) -> dict:
        doc = dict(doc, _id=_id())
        self.donations[doc["_id"]] = doc
        return copy.deepcopy(doc)

    async def get_donation(self, donation_id: str) -> Optional[dict]:
        doc = self.donations.get(donation_id)
        return copy.deepcopy(doc) if doc else None

    async def list_donations(
        self,
        statuses: Optional[Iterable[str]] = None,
        donor_id: Optional[str] = None,
        involving: Optional[str] = None,
        expires_after: Optional[datetime] = None,
    ) -> List[dict]:
        wanted = set(statuses) if statuses is not None else None
        out = []
        for d in self.donations.values():
            if wanted is not None and d["status"] not in wanted:
                continue
            if donor_id is not None and d["donor_id"] != donor_id:
                continue
            if involving is not None and involving not in (d["donor_id"], d.get("accepted_by")):
                continue
            if expires_after is not None and d["expires_at"] <= expires_after:
                continue
            out.append(copy.deepcopy(d))
        out.sort(key=lambda d: d["created_at"], reverse=True)
        return out

    async def transition_donation(self, donation_id: str, expect_status: str, changes: dict) -> Optional[dict]:
        doc = self.donations.get(donation_id)
        if doc is None or doc["status"] != expect_status:
            return None
        doc.update(changes)
        return copy.deepcopy(doc)

    # Sessions
    async def revoke_token(self, jti: str, expires_at: datetime) -> None:
        self.revoked[jti] = expires_at

    async def is_token_revoked(self, jti: str) -> bool:
        return jti in self.revoked
