"""Property match service: loads profile + properties, scores, persists.

Scoring itself lives in ``match_scorer``; this module only moves rows
between the database and the scorer's plain dicts.
"""

import logging
import uuid
from datetime import datetime, timezone

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from realty_platform.domain.models import BuyerProfile, Property, PropertyMatch
from realty_platform.services.match_scorer import compute_matches, select_persistable

logger = logging.getLogger(__name__)


class BuyerProfileNotFoundError(Exception):
    """Raised when matches are requested for a user without a buyer profile."""

    def __init__(self, user_id: str):
        self.user_id = user_id
        super().__init__(f"Buyer profile not found for user {user_id}")


def profile_to_dict(profile: BuyerProfile) -> dict:
    """Project the scorer-relevant fields of a BuyerProfile."""
    return {
        "min_price": profile.min_price,
        "max_price": profile.max_price,
        "min_size": profile.min_size,
        "max_size": profile.max_size,
        "preferred_cities": list(profile.preferred_cities or []),
        "preferred_types": list(profile.preferred_types or []),
    }


def property_to_dict(prop: Property) -> dict:
    """Project the scorer-relevant fields of a Property."""
    return {
        "id": prop.id,
        "price": prop.price,
        "size": prop.size,
        "city": prop.city,
        "property_type": prop.property_type,
    }


async def generate_matches(db: AsyncSession, user_id: str) -> list[PropertyMatch]:
    """Score every property for ``user_id`` and persist the strong matches.

    Raises:
        BuyerProfileNotFoundError: the user has no buyer profile.

    Returns:
        The newly inserted PropertyMatch rows (score > 60), in property order.
    """
    result = await db.execute(select(BuyerProfile).where(BuyerProfile.user_id == user_id))
    profile = result.scalar_one_or_none()
    if not profile:
        raise BuyerProfileNotFoundError(user_id)

    result = await db.execute(select(Property).order_by(Property.created_at.desc()))
    properties = result.scalars().all()

    scored = compute_matches(profile_to_dict(profile), [property_to_dict(p) for p in properties])
    keep = select_persistable(scored)

    now = datetime.now(timezone.utc)
    rows = [
        PropertyMatch(
            id=str(uuid.uuid4()),
            user_id=user_id,
            property_id=match["property_id"],
            match_score=match["score"],
            match_reasons=match["reasons"],
            viewed=False,
            interested=False,
            created_at=now,
        )
        for match in keep
    ]
    db.add_all(rows)
    await db.commit()

    logger.info(
        "Scored %d properties for user %s, persisted %d matches",
        len(scored), user_id, len(rows),
    )
    return rows


async def list_matches(db: AsyncSession, user_id: str) -> list[PropertyMatch]:
    """Return persisted matches for ``user_id``, best score first."""
    result = await db.execute(
        select(PropertyMatch)
        .where(PropertyMatch.user_id == user_id)
        .order_by(PropertyMatch.match_score.desc())
    )
    return list(result.scalars().all())
