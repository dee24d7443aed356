from datetime import datetime, timezone
from typing import Any, Mapping, Optional

from foodlink.core.errors import NotFound
from foodlink.core.policy import Role
from foodlink.core.session import Session
from foodlink.validation.profile import validate_profile_form

EDITABLE = ("full_name", "phone", "location")


async def profile_for_user(repo, user_id: str) -> dict:
    profile = await repo.get_profile_by_user(user_id)
    if not profile:
        raise NotFound("Profile not found")
    return profile


async def create_profile(repo, user_id: str, role: Role, fields: Mapping[str, Any],
                         now: Optional[datetime] = None) -> dict:
    form = validate_profile_form(fields)
    now = now or datetime.now(timezone.utc)
    return await repo.create_profile({
        "user_id": user_id,
        **form.model_dump(),
        "role": Role(role).value,
        "avatar_url": None,
        "created_at": now,
        "updated_at": now,
    })


async def update_profile(repo, session: Session, fields: Mapping[str, Any],
                         now: Optional[datetime] = None) -> dict:
    # fields left out of a partial edit keep their stored values
    merged = {k: session.profile.get(k) for k in EDITABLE}
    merged.update({k: v for k, v in fields.items() if k in EDITABLE})
    form = validate_profile_form(merged)
    changes = form.model_dump()
    changes["updated_at"] = now or datetime.now(timezone.utc)
    return await repo.update_profile(session.profile_id, changes)
