# foodlink/api/auth.py
from datetime import datetime, timezone

from fastapi import APIRouter, Depends, Form, status

from foodlink.core.errors import AuthenticationRequired, FoodLinkError
from foodlink.core.security import create_token, hash_password, verify_password
from foodlink.core.session import Session
from foodlink.deps import get_repo, get_session
from foodlink.schemas import SignupIn, TokenOut
from foodlink.services.profiles import create_profile, profile_for_user

router = APIRouter(prefix="/api/auth", tags=["auth"])

def _token_out(user_id: str, profile: dict) -> dict:
    return {
        "access_token": create_token(user_id),
        "token_type": "bearer",
        "role": profile["role"],
        "profile_id": profile["_id"],
    }

# ---------- Sign up: user + its one profile ----------
@router.post("/signup", response_model=TokenOut, status_code=status.HTTP_201_CREATED)
async def signup(body: SignupIn, repo=Depends(get_repo)):
    now = datetime.now(timezone.utc)
    user = await repo.create_user(body.email, hash_password(body.password), now)
    try:
        profile = await create_profile(
            repo, user["_id"], body.role,
            {"full_name": body.full_name, "phone": body.phone, "location": body.location},
            now=now,
        )
    except FoodLinkError:
        # no account without a profile
        await repo.delete_user(user["_id"])
        raise
    return _token_out(user["_id"], profile)

# ---------- Sign in (form, OAuth2 password style) ----------
@router.post("/login", response_model=TokenOut)
async def login(email: str = Form(...), password: str = Form(...), repo=Depends(get_repo)):
    user = await repo.find_user_by_email(email)
    if not user or not verify_password(password, user.get("password_hash", "")):
        raise AuthenticationRequired("Invalid credentials")
    profile = await profile_for_user(repo, user["_id"])
    return _token_out(user["_id"], profile)

# ---------- Sign out ----------
@router.post("/logout")
async def logout(session: Session = Depends(get_session), repo=Depends(get_repo)):
    await repo.revoke_token(session.token_id, session.token_expires)
    return {"ok": True}
