from typing import Any, Dict

from fastapi import APIRouter, Body, Depends

from foodlink.core.session import Session
from foodlink.deps import get_repo, get_session
from foodlink.schemas import ProfileOut
from foodlink.services import profiles as svc

router = APIRouter(prefix="/api/profiles", tags=["profiles"])

def serialize_profile(doc: dict) -> dict:
    out = {k: v for k, v in doc.items() if k != "_id"}
    out["id"] = str(doc["_id"])
    return out

@router.get("/me", response_model=ProfileOut)
async def read_me(session: Session = Depends(get_session)):
    return serialize_profile(session.profile)

@router.patch("/me", response_model=ProfileOut)
async def update_me(
    fields: Dict[str, Any] = Body(...),
    session: Session = Depends(get_session),
    repo=Depends(get_repo),
):
    updated = await svc.update_profile(repo, session, fields)
    return serialize_profile(updated)
