"""Buyer profile API routes. One profile per user, upserted on submit."""

import logging
import uuid
from datetime import datetime, timezone
from typing import Optional

from fastapi import APIRouter, Depends
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from realty_platform.domain.models import BuyerProfile
from realty_platform.domain.schemas import BuyerProfileResponse, BuyerProfileUpsert
from realty_platform.infra.database import get_db

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/buyer-profile", tags=["buyer-profile"])


async def _get_profile(db: AsyncSession, user_id: str) -> Optional[BuyerProfile]:
    result = await db.execute(select(BuyerProfile).where(BuyerProfile.user_id == user_id))
    return result.scalar_one_or_none()


@router.get("/{user_id}", response_model=Optional[BuyerProfileResponse])
async def get_buyer_profile(user_id: str, db: AsyncSession = Depends(get_db)):
    """Return the user's profile, or null when none was submitted yet."""
    return await _get_profile(db, user_id)


@router.post("", response_model=BuyerProfileResponse)
async def upsert_buyer_profile(body: BuyerProfileUpsert, db: AsyncSession = Depends(get_db)):
    """Create the profile on first submission, update it afterwards."""
    fields = body.model_dump(mode="json")
    profile = await _get_profile(db, body.user_id)

    if profile:
        for key, value in fields.items():
            setattr(profile, key, value)
        profile.updated_at = datetime.now(timezone.utc)
        logger.info("Updated buyer profile for user %s", body.user_id)
    else:
        profile = BuyerProfile(id=str(uuid.uuid4()), **fields)
        db.add(profile)
        logger.info("Created buyer profile for user %s", body.user_id)

    await db.commit()
    return profile
