import asyncio

import pytest
from httpx import AsyncClient

pytestmark = pytest.mark.anyio

DONATION = {"foodType": "Chole bhature", "quantity": "40 plates", "servings": "40",
            "location": "Shivajinagar", "expiryHours": "3"}


async def _signup(ac: AsyncClient, email: str, role: str, name: str = "Someone"):
    r = await ac.post("/api/auth/signup", json={
        "email": email, "password": "secret123", "full_name": name, "role": role,
    })
    assert r.status_code == 201, r.text
    return {"Authorization": f"Bearer {r.json()['access_token']}"}

async def _donate(ac: AsyncClient, headers, **overrides):
    r = await ac.post("/api/donations", data=dict(DONATION, **overrides), headers=headers)
    assert r.status_code == 201, r.text
    return r.json()


# ---------- auth ----------

async def test_signup_creates_profile(test_client: AsyncClient):
    headers = await _signup(test_client, "cafe@example.com", "donor", "<b>Green</b> Cafe")
    r = await test_client.get("/api/profiles/me", headers=headers)
    assert r.status_code == 200, r.text
    me = r.json()
    assert me["full_name"] == "Green Cafe"
    assert me["role"] == "donor"

async def test_signup_duplicate_email(test_client: AsyncClient):
    await _signup(test_client, "dup@example.com", "donor")
    r = await test_client.post("/api/auth/signup", json={
        "email": "DUP@example.com", "password": "secret123", "full_name": "X", "role": "ngo",
    })
    assert r.status_code == 409
    assert r.json()["code"] == "EmailTaken"

async def test_signup_with_bad_phone_leaves_no_account(test_client: AsyncClient, repo):
    r = await test_client.post("/api/auth/signup", json={
        "email": "p@example.com", "password": "secret123", "full_name": "P", "phone": "abc123",
    })
    assert r.status_code == 422
    assert r.json()["errors"] == {"phone": "Phone can only contain digits, spaces, and +()-"}
    assert await repo.find_user_by_email("p@example.com") is None

async def test_login_and_logout(test_client: AsyncClient):
    await _signup(test_client, "ngo@example.com", "ngo")
    bad = await test_client.post("/api/auth/login", data={"email": "ngo@example.com", "password": "nope"})
    assert bad.status_code == 401

    r = await test_client.post("/api/auth/login", data={"email": "ngo@example.com", "password": "secret123"})
    assert r.status_code == 200, r.text
    assert r.json()["role"] == "ngo"
    headers = {"Authorization": f"Bearer {r.json()['access_token']}"}

    assert (await test_client.post("/api/auth/logout", headers=headers)).status_code == 200
    after = await test_client.get("/api/profiles/me", headers=headers)
    assert after.status_code == 401
    assert after.json()["code"] == "AuthenticationRequired"

async def test_identity_required(test_client: AsyncClient):
    r = await test_client.post("/api/donations/abc/accept")
    assert r.status_code == 401
    r = await test_client.get("/api/donations/mine", headers={"Authorization": "Bearer garbage"})
    assert r.status_code == 401


# ---------- profiles ----------

async def test_profile_partial_update(test_client: AsyncClient):
    headers = await _signup(test_client, "v@example.com", "volunteer", "Vik")
    r = await test_client.patch("/api/profiles/me", json={"phone": "+91 98765-43210"}, headers=headers)
    assert r.status_code == 200, r.text
    assert r.json()["phone"] == "+91 98765-43210"
    assert r.json()["full_name"] == "Vik"

    r = await test_client.patch("/api/profiles/me", json={"phone": "abc123"}, headers=headers)
    assert r.status_code == 422
    assert r.json()["errors"] == {"phone": "Phone can only contain digits, spaces, and +()-"}


# ---------- donations ----------

async def test_create_and_browse(test_client: AsyncClient):
    donor = await _signup(test_client, "d@example.com", "donor", "Hotel Sagar")
    created = await _donate(test_client, donor, foodType="<script>x</script>Rice")
    assert created["food_type"] == "Rice"
    assert created["urgent"] is True
    assert created["status"] == "available"
    assert created["servings"] == 40
    assert created["donor"]["full_name"] == "Hotel Sagar"

    await _donate(test_client, donor, foodType="Bread", location="Camp", expiryHours="12")

    r = await test_client.get("/api/donations")
    assert r.status_code == 200
    body = r.json()
    assert body["count"] == 2
    assert [d["food_type"] for d in body["donations"]] == ["Bread", "Rice"]
    assert body["donations"][0]["posted_ago"] == "Just now"

    urgent = (await test_client.get("/api/donations", params={"urgent_only": "true"})).json()
    assert [d["food_type"] for d in urgent["donations"]] == ["Rice"]
    search = (await test_client.get("/api/donations", params={"q": "camp"})).json()
    assert [d["food_type"] for d in search["donations"]] == ["Bread"]
    exact = (await test_client.get("/api/donations", params={"food_type": "Rice"})).json()
    assert exact["count"] == 1

async def test_create_rejects_bad_form(test_client: AsyncClient, repo):
    donor = await _signup(test_client, "d@example.com", "donor")
    r = await test_client.post("/api/donations", data=dict(DONATION, expiryHours="49", foodType=""), headers=donor)
    assert r.status_code == 422
    assert r.json()["errors"] == {
        "foodType": "Food type is required",
        "expiryHours": "Expiry hours must be between 1 and 48",
    }
    assert repo.donations == {}

async def test_photo_upload_and_fetch(test_client: AsyncClient):
    donor = await _signup(test_client, "d@example.com", "donor")
    r = await test_client.post(
        "/api/donations", data=DONATION, headers=donor,
        files={"photo": ("tray.webp", b"RIFF....WEBP", "image/webp")},
    )
    assert r.status_code == 201, r.text
    url = r.json()["photo_url"]
    assert url.startswith("/photos/") and url.endswith(".webp")

    photo = await test_client.get(url)
    assert photo.status_code == 200
    assert photo.content == b"RIFF....WEBP"
    assert photo.headers["content-type"] == "image/webp"
    assert (await test_client.get("/photos/nobody/1.jpg")).status_code == 404

async def test_photo_wrong_type(test_client: AsyncClient, photo_store):
    donor = await _signup(test_client, "d@example.com", "donor")
    r = await test_client.post(
        "/api/donations", data=DONATION, headers=donor,
        files={"photo": ("menu.pdf", b"%PDF", "application/pdf")},
    )
    assert r.status_code == 422
    assert r.json()["errors"] == {"photo": "Only JPEG, PNG, GIF, and WebP images are allowed"}
    assert photo_store.objects == {}

async def test_concurrent_accept_over_http(test_client: AsyncClient):
    donor = await _signup(test_client, "d@example.com", "donor")
    ngo = await _signup(test_client, "n@example.com", "ngo")
    vol = await _signup(test_client, "v@example.com", "volunteer")
    donation = await _donate(test_client, donor)
    path = f"/api/donations/{donation['id']}/accept"

    r1, r2 = await asyncio.gather(
        test_client.post(path, headers=ngo),
        test_client.post(path, headers=vol),
    )
    assert sorted([r1.status_code, r2.status_code]) == [200, 409]
    loser = r1 if r1.status_code == 409 else r2
    assert loser.json()["code"] == "AlreadyTaken"

    listed = (await test_client.get("/api/donations")).json()
    assert listed["count"] == 0

async def test_full_delivery_flow(test_client: AsyncClient):
    donor = await _signup(test_client, "d@example.com", "donor")
    ngo = await _signup(test_client, "n@example.com", "ngo")
    donation = await _donate(test_client, donor)
    did = donation["id"]

    early = await test_client.post(f"/api/donations/{did}/complete", headers=donor)
    assert early.status_code == 409
    assert early.json()["code"] == "InvalidTransition"

    forbidden = await test_client.post(f"/api/donations/{did}/accept", headers=donor)
    assert forbidden.status_code == 403

    accepted = await test_client.post(f"/api/donations/{did}/accept", headers=ngo)
    assert accepted.status_code == 200
    me = (await test_client.get("/api/profiles/me", headers=ngo)).json()
    assert accepted.json()["accepted_by"] == me["id"]

    tracked = (await test_client.get("/api/donations/deliveries", headers=donor)).json()
    assert [d["id"] for d in tracked["donations"]] == [did]

    done = await test_client.post(f"/api/donations/{did}/complete", headers=ngo)
    assert done.status_code == 200
    assert done.json()["status"] == "completed"

    one = (await test_client.get(f"/api/donations/{did}")).json()
    assert one["status"] == "completed"
    assert (await test_client.get("/api/donations/nope")).status_code == 404

async def test_cancel(test_client: AsyncClient):
    donor = await _signup(test_client, "d@example.com", "donor")
    did = (await _donate(test_client, donor))["id"]
    r = await test_client.post(f"/api/donations/{did}/cancel", headers=donor)
    assert r.status_code == 200
    assert r.json()["status"] == "cancelled"
    mine = (await test_client.get("/api/donations/mine", headers=donor)).json()
    assert [d["status"] for d in mine["donations"]] == ["cancelled"]

async def test_health(test_client: AsyncClient):
    assert (await test_client.get("/health")).json() == {"ok": True}

async def test_oversized_photo_rejected_by_api(test_client: AsyncClient, repo, photo_store):
    donor = await _signup(test_client, "d@example.com", "donor")
    r = await test_client.post(
        "/api/donations", data=DONATION, headers=donor,
        files={"photo": ("huge.jpg", b"\xff\xd8" + b"\0" * (6 * 1024 * 1024), "image/jpeg")},
    )
    assert r.status_code == 422
    assert r.json()["errors"] == {"photo": "Image must be less than 5MB"}
    assert repo.donations == {}
    assert photo_store.objects == {}
