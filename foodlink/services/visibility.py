# foodlink/services/visibility.py
from datetime import datetime, timedelta
from typing import Any, Dict, Iterable, List, Optional
import urllib.parse

from foodlink.core.states import DonationStatus

MAPS_SEARCH = "https://www.google.com/maps/search/?api=1&query="


def expires_at(donation: Dict[str, Any]) -> datetime:
    return donation["created_at"] + timedelta(hours=int(donation["expiry_hours"]))


def is_visible(donation: Dict[str, Any], now: datetime) -> bool:
    return donation["status"] == DonationStatus.AVAILABLE.value and now < expires_at(donation)


def matches(
    donation: Dict[str, Any],
    search: Optional[str] = None,
    food_type: Optional[str] = None,
    urgent_only: bool = False,
) -> bool:
    if search:
        needle = search.lower()
        hay = (donation.get("location") or "").lower(), (donation.get("food_type") or "").lower()
        if not any(needle in h for h in hay):
            return False
    if food_type and donation.get("food_type") != food_type:
        return False
    if urgent_only and not donation.get("urgent"):
        return False
    return True


def visible_donations(
    donations: Iterable[Dict[str, Any]],
    now: datetime,
    search: Optional[str] = None,
    food_type: Optional[str] = None,
    urgent_only: bool = False,
) -> List[Dict[str, Any]]:
    """Browse list: available, unexpired, matching the filters, newest first."""
    out = [
        d for d in donations
        if is_visible(d, now) and matches(d, search, food_type, urgent_only)
    ]
    out.sort(key=lambda d: d["created_at"], reverse=True)
    return out


def posted_ago(created_at: datetime, now: datetime) -> str:
    hours = int((now - created_at).total_seconds() // 3600)
    if hours < 1:
        return "Just now"
    if hours == 1:
        return "1 hour ago"
    return f"{hours} hours ago"


def map_search_url(donation: Dict[str, Any], region: str = "") -> str:
    lat, lng = donation.get("latitude"), donation.get("longitude")
    if lat is not None and lng is not None:
        return f"{MAPS_SEARCH}{lat},{lng}"
    query = donation.get("location") or ""
    if region:
        query = f"{query}, {region}"
    return MAPS_SEARCH + urllib.parse.quote(query)
