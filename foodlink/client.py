from typing import Any, Dict, List, Mapping, Optional, Tuple

import httpx

from foodlink.core.errors import (
    BY_CODE,
    AuthenticationRequired,
    FoodLinkError,
    FormValidationError,
)
from foodlink.core.logging import log_diagnostic
from foodlink.validation.donation import validate_donation_form
from foodlink.validation.image import validate_image
from foodlink.validation.profile import validate_profile_form


class ApiClient:
    """HTTP client for the FoodLink API.

    Forms and photos are validated locally first, so an invalid submission
    never reaches the network. Error responses come back as the same
    exception types the server raised.
    """

    def __init__(self, base_url: str = "", token: str | None = None, http: httpx.Client | None = None):
        self.http = http or httpx.Client(base_url=base_url.rstrip("/"), timeout=12)
        self.token = token

    def set_token(self, token: str | None):
        self.token = token

    def clear_token(self):
        self.token = None

    def headers(self):
        h = {"Accept": "application/json"}
        if self.token:
            h["Authorization"] = f"Bearer {self.token}"
        return h

    def _require_token(self):
        if not self.token:
            raise AuthenticationRequired("Please log in to continue")

    def _call(self, method: str, path: str, **kwargs) -> Any:
        resp = self.http.request(method, path, headers=self.headers(), **kwargs)
        if resp.is_success:
            return resp.json()
        try:
            body = resp.json()
        except ValueError:
            body = {}
        if not isinstance(body, dict):
            body = {}
        detail = body.get("detail")
        detail = detail if isinstance(detail, str) else resp.reason_phrase
        if "errors" in body:
            raise FormValidationError(body["errors"])
        exc_type = BY_CODE.get(body.get("code"), FoodLinkError)
        if exc_type is FoodLinkError and resp.status_code == 401:
            exc_type = AuthenticationRequired
        raise exc_type(detail)

    # ---------- Auth ----------
    def signup(self, email: str, password: str, full_name: str, role: str = "donor", **extra) -> dict:
        validate_profile_form({"full_name": full_name, **extra})
        data = self._call("POST", "/api/auth/signup", json={
            "email": email, "password": password, "full_name": full_name, "role": role, **extra,
        })
        self.set_token(data["access_token"])
        return data

    def login(self, email: str, password: str) -> dict:
        data = self._call("POST", "/api/auth/login", data={"email": email, "password": password})
        self.set_token(data["access_token"])
        return data

    def logout(self):
        if self.token:
            self._call("POST", "/api/auth/logout")
        self.clear_token()

    # ---------- Profile ----------
    def me(self) -> dict:
        self._require_token()
        return self._call("GET", "/api/profiles/me")

    def update_profile(self, **fields) -> dict:
        self._require_token()
        current = self.me()
        merged = {k: current.get(k) for k in ("full_name", "phone", "location")}
        merged.update(fields)
        validate_profile_form(merged)
        return self._call("PATCH", "/api/profiles/me", json=fields)

    # ---------- Donations ----------
    def browse(self, search: str | None = None, food_type: str | None = None, urgent_only: bool = False) -> List[dict]:
        params: Dict[str, Any] = {"urgent_only": urgent_only}
        if search:
            params["q"] = search
        if food_type:
            params["food_type"] = food_type
        return self._call("GET", "/api/donations", params=params)["donations"]

    def get_donation(self, donation_id: str) -> dict:
        return self._call("GET", f"/api/donations/{donation_id}")

    def create_donation(
        self,
        fields: Mapping[str, Any],
        photo: Optional[Tuple[str, bytes, str]] = None,
    ) -> dict:
        """Post a donation; photo is (filename, bytes, content type)."""
        self._require_token()
        validate_donation_form(fields)
        files = None
        if photo is not None:
            filename, data, content_type = photo
            validate_image(content_type, len(data))
            files = {"photo": (filename, data, content_type)}
        form = {k: str(v) for k, v in fields.items() if v is not None}
        return self._call("POST", "/api/donations", data=form, files=files)

    def accept(self, donation_id: str) -> dict:
        self._require_token()
        return self._call("POST", f"/api/donations/{donation_id}/accept")

    def complete(self, donation_id: str) -> dict:
        self._require_token()
        return self._call("POST", f"/api/donations/{donation_id}/complete")

    def cancel(self, donation_id: str) -> dict:
        self._require_token()
        return self._call("POST", f"/api/donations/{donation_id}/cancel")

    def my_donations(self) -> List[dict]:
        self._require_token()
        return self._call("GET", "/api/donations/mine")["donations"]

    def deliveries(self) -> List[dict]:
        self._require_token()
        return self._call("GET", "/api/donations/deliveries")["donations"]


class DonationBrowser:
    """Browse list that survives failed refreshes.

    A failed load sets `error` and leaves `donations` as last rendered.
    """

    LOAD_FAILED = "Failed to load donations"

    def __init__(self, client: ApiClient):
        self.client = client
        self.donations: List[dict] = []
        self.error: Optional[str] = None

    def refresh(self, **filters) -> bool:
        try:
            fresh = self.client.browse(**filters)
        except (FoodLinkError, httpx.HTTPError) as exc:
            log_diagnostic("browse", exc)
            self.error = self.LOAD_FAILED
            return False
        self.donations = fresh
        self.error = None
        return True

    def accept(self, donation_id: str) -> dict:
        """Accept, then re-query so the taken donation drops out of the list."""
        accepted = self.client.accept(donation_id)
        self.refresh()
        return accepted
