"""Donation lifecycle operations.

Every mutation takes the caller's Session explicitly and returns the
updated record; re-querying lists afterwards is up to the caller.
"""
from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Dict, List, Mapping, Optional

from loguru import logger

from foodlink.core.errors import AlreadyTaken, InvalidTransition, NotFound, PermissionDenied
from foodlink.core.policy import require_scope
from foodlink.core.session import Session
from foodlink.core.states import (
    HELD_STATUSES,
    DonationStatus,
    can_transition,
    is_allowed,
    party_of,
)
from foodlink.services.photos import PhotoUpload, photo_key
from foodlink.services.visibility import expires_at, is_visible, visible_donations
from foodlink.validation.donation import validate_donation_form
from foodlink.validation.image import validate_image


def _now() -> datetime:
    return datetime.now(timezone.utc)


async def create_donation(
    repo,
    photos,
    session: Session,
    fields: Mapping[str, Any],
    photo: Optional[PhotoUpload] = None,
    now: Optional[datetime] = None,
) -> dict:
    require_scope(session.role, "donations:create")
    form = validate_donation_form(fields)
    ext = validate_image(photo.content_type, len(photo.data)) if photo else None

    now = now or _now()
    doc = form.to_record()
    doc.update({
        "donor_id": session.profile_id,
        "photo_url": None,
        "status": DonationStatus.AVAILABLE.value,
        "accepted_by": None,
        "created_at": now,
        "updated_at": now,
    })
    doc["expires_at"] = expires_at(doc)

    key = photo_key(session.user_id, ext, now) if photo is not None else None
    if key:
        doc["photo_url"] = await photos.upload(key, photo)

    try:
        saved = await repo.insert_donation(doc)
    except Exception:
        # no donation points at the photo, drop it
        if key:
            await photos.delete(key)
        raise
    logger.info("donation {} posted by {} (urgent={})", saved["_id"], session.profile_id, saved["urgent"])
    return saved


async def get_donation(repo, donation_id: str) -> dict:
    doc = await repo.get_donation(donation_id)
    if not doc:
        raise NotFound("Donation not found")
    return doc


async def browse(
    repo,
    now: Optional[datetime] = None,
    search: Optional[str] = None,
    food_type: Optional[str] = None,
    urgent_only: bool = False,
) -> List[dict]:
    now = now or _now()
    docs = await repo.list_donations(statuses=[DonationStatus.AVAILABLE.value], expires_after=now)
    return visible_donations(docs, now, search=search, food_type=food_type, urgent_only=urgent_only)


async def my_donations(repo, session: Session) -> List[dict]:
    return await repo.list_donations(donor_id=session.profile_id)


async def deliveries(repo, session: Session) -> List[dict]:
    """Donations the caller gave or took that are in progress or done."""
    return await repo.list_donations(
        statuses=[s.value for s in HELD_STATUSES],
        involving=session.profile_id,
    )


async def _transition(repo, session: Session, donation_id: str, dst: DonationStatus,
                      changes: Dict[str, Any], now: datetime) -> dict:
    doc = await get_donation(repo, donation_id)
    src = DonationStatus(doc["status"])
    if not is_allowed(src, dst):
        if dst is DonationStatus.ACCEPTED and src in HELD_STATUSES:
            raise AlreadyTaken("Donation has already been accepted")
        raise InvalidTransition(f"Cannot move a {src.value} donation to {dst.value}")
    if not can_transition(src, dst, party_of(doc, session.profile_id)):
        raise PermissionDenied(f"You cannot mark this donation {dst.value}")

    updated = await repo.transition_donation(
        donation_id, src.value, dict(changes, status=dst.value, updated_at=now)
    )
    if updated is None:
        if dst is DonationStatus.ACCEPTED:
            raise AlreadyTaken("Donation has already been accepted")
        raise InvalidTransition("Donation changed meanwhile. Refresh and retry.")
    logger.info("donation {} {} -> {} by {}", donation_id, src.value, dst.value, session.profile_id)
    return updated


async def accept_donation(repo, session: Session, donation_id: str, now: Optional[datetime] = None) -> dict:
    require_scope(session.role, "donations:accept")
    now = now or _now()
    doc = await get_donation(repo, donation_id)
    if doc["status"] == DonationStatus.AVAILABLE.value and not is_visible(doc, now):
        raise InvalidTransition("Donation has expired")
    return await _transition(repo, session, donation_id, DonationStatus.ACCEPTED,
                             {"accepted_by": session.profile_id}, now)


async def complete_donation(repo, session: Session, donation_id: str, now: Optional[datetime] = None) -> dict:
    return await _transition(repo, session, donation_id, DonationStatus.COMPLETED, {}, now or _now())


async def cancel_donation(repo, session: Session, donation_id: str, now: Optional[datetime] = None) -> dict:
    require_scope(session.role, "donations:cancel")
    return await _transition(repo, session, donation_id, DonationStatus.CANCELLED, {}, now or _now())
