"""Property match API routes."""

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession

from realty_platform.domain.schemas import PropertyMatchRequest, PropertyMatchResponse
from realty_platform.infra.database import get_db
from realty_platform.services.property_match_service import (
    BuyerProfileNotFoundError,
    generate_matches,
    list_matches,
)

router = APIRouter(prefix="/api/property-matches", tags=["property-matches"])


@router.post("", response_model=list[PropertyMatchResponse])
async def create_property_matches(body: PropertyMatchRequest, db: AsyncSession = Depends(get_db)):
    """Score all properties for the user and return the persisted matches."""
    try:
        return await generate_matches(db, body.user_id)
    except BuyerProfileNotFoundError:
        raise HTTPException(status_code=404, detail="Buyer profile not found")


@router.get("/{user_id}", response_model=list[PropertyMatchResponse])
async def get_property_matches(user_id: str, db: AsyncSession = Depends(get_db)):
    """Return previously persisted matches, best score first."""
    return await list_matches(db, user_id)
