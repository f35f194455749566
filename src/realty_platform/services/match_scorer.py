"""Deterministic buyer/property match scorer.

Pure-function module: NO LLM, NO database access.

Every property starts at a base score and earns fixed, independent bonuses:
    - Price   +20 inside [min_price, max_price], +10 below min_price
    - Size    +15 inside [min_size, max_size]
    - City    +15 when listed in preferred_cities
    - Type    +10 when listed in preferred_types

Each bonus fires only when the profile carries the fields it needs and
contributes one human-readable reason. All inputs are plain dicts so the
scorer can be called from the match service, from tests, or from offline
batch jobs without touching ORM objects.
"""

from __future__ import annotations

from typing import Optional

# ── Weights ──────────────────────────────────────────────────────────────────

BASE_SCORE = 50
W_PRICE_IN_RANGE = 20
W_PRICE_BELOW_RANGE = 10
W_SIZE = 15
W_LOCATION = 15
W_PROPERTY_TYPE = 10

MIN_SCORE = 0
MAX_SCORE = 100

# Only matches strictly above this are persisted
PERSIST_THRESHOLD = 60

# ── Reasons ──────────────────────────────────────────────────────────────────

REASON_PRICE_IN_RANGE = "price within budget"
REASON_PRICE_BELOW_RANGE = "below budget"
REASON_SIZE = "size matches preferences"
REASON_LOCATION = "preferred location"
REASON_PROPERTY_TYPE = "preferred property type"


# ── Helpers ──────────────────────────────────────────────────────────────────

def _clamp(score: float) -> float:
    return max(MIN_SCORE, min(MAX_SCORE, score))


def _price_adjustment(
    price: Optional[float],
    min_price: Optional[float],
    max_price: Optional[float],
) -> tuple[int, Optional[str]]:
    """Price bonus. Both bounds are required; a missing bound skips it."""
    if price is None or min_price is None or max_price is None:
        return 0, None
    if min_price <= price <= max_price:
        return W_PRICE_IN_RANGE, REASON_PRICE_IN_RANGE
    if price < min_price:
        return W_PRICE_BELOW_RANGE, REASON_PRICE_BELOW_RANGE
    return 0, None


def _size_adjustment(
    size: Optional[float],
    min_size: Optional[float],
    max_size: Optional[float],
) -> tuple[int, Optional[str]]:
    """Size bonus. Both bounds are required; a missing bound skips it."""
    if size is None or min_size is None or max_size is None:
        return 0, None
    if min_size <= size <= max_size:
        return W_SIZE, REASON_SIZE
    return 0, None


# ── Main scorer ──────────────────────────────────────────────────────────────

def compute_match_score(profile: dict, prop: dict) -> dict:
    """Score a single property against a buyer profile.

    Parameters
    ----------
    profile
        Keys: min_price, max_price, min_size, max_size,
        preferred_cities, preferred_types. Any may be missing or None.
    prop
        Keys: id, price, size, city, property_type.

    Returns
    -------
    dict
        ``{"property_id", "score", "reasons"}`` with score in [0, 100].
    """
    score = BASE_SCORE
    reasons: list[str] = []

    adjustments = (
        _price_adjustment(prop.get("price"), profile.get("min_price"), profile.get("max_price")),
        _size_adjustment(prop.get("size"), profile.get("min_size"), profile.get("max_size")),
    )
    for bonus, reason in adjustments:
        if reason:
            score += bonus
            reasons.append(reason)

    preferred_cities = profile.get("preferred_cities") or []
    if preferred_cities and prop.get("city") in preferred_cities:
        score += W_LOCATION
        reasons.append(REASON_LOCATION)

    preferred_types = profile.get("preferred_types") or []
    if preferred_types and prop.get("property_type") in preferred_types:
        score += W_PROPERTY_TYPE
        reasons.append(REASON_PROPERTY_TYPE)

    return {
        "property_id": prop.get("id"),
        "score": _clamp(score),
        "reasons": reasons,
    }


def compute_matches(profile: dict, properties: list[dict]) -> list[dict]:
    """Score every property, preserving input order."""
    return [compute_match_score(profile, prop) for prop in properties]


def select_persistable(matches: list[dict]) -> list[dict]:
    """Keep only matches whose score is strictly above PERSIST_THRESHOLD."""
    return [m for m in matches if m["score"] > PERSIST_THRESHOLD]
