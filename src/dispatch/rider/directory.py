"""Rider lookups shared by assignment, rider self-service and the API."""

from protean.exceptions import ObjectNotFoundError
from protean.utils.globals import current_domain

from dispatch.errors import NotFoundError
from dispatch.rider.rider import Rider
from dispatch.utils.clock import as_utc
from dispatch.utils.query import fetch_all


def load_rider(rider_id: str) -> Rider:
    try:
        return current_domain.repository_for(Rider).get(str(rider_id))
    except ObjectNotFoundError:
        raise NotFoundError("Rider", rider_id) from None


def list_riders(**filters) -> list[Rider]:
    """All riders matching ``filters``, oldest first."""
    query = current_domain.repository_for(Rider)._dao.query
    if filters:
        query = query.filter(**filters)
    return sorted(fetch_all(query), key=seniority)


def find_rider_by_code(rider_code: str) -> Rider:
    code = (rider_code or "").strip().upper()
    matches = list_riders(rider_code=code) if code else []
    if not matches:
        raise NotFoundError("Rider", rider_code)
    return matches[0]


def seniority(rider: Rider) -> tuple:
    """Sort key: earliest-created first, id as the final tie-break."""
    created = as_utc(rider.created_at)
    return (created is None, created.timestamp() if created else 0.0, str(rider.id))
