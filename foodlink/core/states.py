from enum import Enum


class DonationStatus(str, Enum):
    AVAILABLE = "available"
    ACCEPTED = "accepted"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class Party(str, Enum):
    """How the acting profile relates to a donation."""
    DONOR = "donor"
    ACCEPTER = "accepter"
    OTHER = "other"


# (src, dst) -> parties allowed to perform it. Recipients accept as OTHER:
# they have no relation to the donation until the transition lands.
TRANSITIONS = {
    (DonationStatus.AVAILABLE, DonationStatus.ACCEPTED):  {Party.OTHER},
    (DonationStatus.ACCEPTED,  DonationStatus.COMPLETED): {Party.DONOR, Party.ACCEPTER},
    (DonationStatus.AVAILABLE, DonationStatus.CANCELLED): {Party.DONOR},
}

# statuses that carry an accepted_by reference
HELD_STATUSES = {DonationStatus.ACCEPTED, DonationStatus.COMPLETED}
URGENT_MAX_HOURS = 4


def is_allowed(src: DonationStatus, dst: DonationStatus) -> bool:
    return (src, dst) in TRANSITIONS


def can_transition(src: DonationStatus, dst: DonationStatus, party: Party) -> bool:
    parties = TRANSITIONS.get((src, dst))
    if not parties:
        return False
    return party in parties


def party_of(donation: dict, profile_id: str) -> Party:
    if donation.get("donor_id") == profile_id:
        return Party.DONOR
    if donation.get("accepted_by") == profile_id:
        return Party.ACCEPTER
    return Party.OTHER


def is_urgent(expiry_hours: int) -> bool:
    return expiry_hours <= URGENT_MAX_HOURS
