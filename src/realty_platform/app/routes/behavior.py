"""Behaviour tracking API routes (page engagement analytics)."""

import uuid

from fastapi import APIRouter, Depends
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from realty_platform.domain.models import BehaviorTracking
from realty_platform.domain.schemas import BehaviorCreate, BehaviorResponse
from realty_platform.infra.database import get_db

router = APIRouter(prefix="/api/behavior", tags=["behavior"])


@router.post("", response_model=BehaviorResponse)
async def record_behavior(body: BehaviorCreate, db: AsyncSession = Depends(get_db)):
    """Store one page-visit record. The client only posts visits longer than 2s."""
    tracking = BehaviorTracking(id=str(uuid.uuid4()), **body.model_dump(mode="json"))
    db.add(tracking)
    await db.commit()
    return tracking


@router.get("/{user_id}", response_model=list[BehaviorResponse])
async def get_user_behavior(user_id: str, db: AsyncSession = Depends(get_db)):
    """Return a user's tracked visits, newest first."""
    result = await db.execute(
        select(BehaviorTracking)
        .where(BehaviorTracking.user_id == user_id)
        .order_by(BehaviorTracking.created_at.desc())
    )
    return result.scalars().all()
