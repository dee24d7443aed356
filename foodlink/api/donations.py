# foodlink/api/donations.py
from datetime import datetime, timezone
from typing import List, Optional

from fastapi import APIRouter, Depends, File, Form, Query, UploadFile, status

from foodlink.api.profiles import serialize_profile
from foodlink.core.config import settings
from foodlink.core.session import Session
from foodlink.deps import get_photo_store, get_repo, get_session
from foodlink.schemas import DonationList, DonationOut
from foodlink.services import donations as svc
from foodlink.services.photos import PhotoUpload
from foodlink.services.visibility import map_search_url, posted_ago
from foodlink.validation.image import MAX_IMAGE_BYTES

router = APIRouter(prefix="/api/donations", tags=["donations"])

def _serialize(doc: dict, donors: Optional[dict] = None, now: Optional[datetime] = None) -> dict:
    now = now or datetime.now(timezone.utc)
    out = {k: v for k, v in doc.items() if k != "_id"}
    out["id"] = str(doc["_id"])
    donor = (donors or {}).get(doc["donor_id"])
    out["donor"] = serialize_profile(donor) if donor else None
    out["posted_ago"] = posted_ago(doc["created_at"], now)
    out["map_url"] = map_search_url(doc, settings.map_region)
    return out

async def _listing(repo, docs: List[dict]) -> dict:
    donors = await repo.get_profiles(d["donor_id"] for d in docs)
    now = datetime.now(timezone.utc)
    items = [_serialize(d, donors, now) for d in docs]
    return {"donations": items, "count": len(items)}

# ---------- Queries ----------
@router.get("", response_model=DonationList)
async def browse_donations(
    q: Optional[str] = Query(None, description="matches location or food type"),
    food_type: Optional[str] = None,
    urgent_only: bool = False,
    repo=Depends(get_repo),
):
    docs = await svc.browse(repo, search=q, food_type=food_type, urgent_only=urgent_only)
    return await _listing(repo, docs)

@router.get("/mine", response_model=DonationList)
async def list_mine(session: Session = Depends(get_session), repo=Depends(get_repo)):
    return await _listing(repo, await svc.my_donations(repo, session))

@router.get("/deliveries", response_model=DonationList)
async def list_deliveries(session: Session = Depends(get_session), repo=Depends(get_repo)):
    return await _listing(repo, await svc.deliveries(repo, session))

@router.get("/{donation_id}", response_model=DonationOut)
async def read_donation(donation_id: str, repo=Depends(get_repo)):
    doc = await svc.get_donation(repo, donation_id)
    donors = await repo.get_profiles([doc["donor_id"]])
    return _serialize(doc, donors)

# ---------- Commands ----------
@router.post("", response_model=DonationOut, status_code=status.HTTP_201_CREATED)
async def create_donation(
    food_type: Optional[str] = Form(None, alias="foodType"),
    quantity: Optional[str] = Form(None),
    servings: Optional[str] = Form(None),
    location: Optional[str] = Form(None),
    expiry_hours: Optional[str] = Form(None, alias="expiryHours"),
    description: Optional[str] = Form(None),
    latitude: Optional[str] = Form(None),
    longitude: Optional[str] = Form(None),
    photo: Optional[UploadFile] = File(None),
    session: Session = Depends(get_session),
    repo=Depends(get_repo),
    photos=Depends(get_photo_store),
):
    fields = {
        "foodType": food_type,
        "quantity": quantity,
        "servings": servings,
        "location": location,
        "expiryHours": expiry_hours,
        "description": description,
        "latitude": latitude,
        "longitude": longitude,
    }
    upload = None
    if photo is not None and photo.filename:
        # one byte past the limit is enough to fail the size check
        upload = PhotoUpload(photo.content_type or "", await photo.read(MAX_IMAGE_BYTES + 1))
    doc = await svc.create_donation(repo, photos, session, fields, upload)
    return _serialize(doc, {session.profile_id: session.profile})

@router.post("/{donation_id}/accept", response_model=DonationOut)
async def accept_donation(donation_id: str, session: Session = Depends(get_session), repo=Depends(get_repo)):
    doc = await svc.accept_donation(repo, session, donation_id)
    return _serialize(doc)

@router.post("/{donation_id}/complete", response_model=DonationOut)
async def complete_donation(donation_id: str, session: Session = Depends(get_session), repo=Depends(get_repo)):
    doc = await svc.complete_donation(repo, session, donation_id)
    return _serialize(doc)

@router.post("/{donation_id}/cancel", response_model=DonationOut)
async def cancel_donation(donation_id: str, session: Session = Depends(get_session), repo=Depends(get_repo)):
    doc = await svc.cancel_donation(repo, session, donation_id)
    return _serialize(doc)
