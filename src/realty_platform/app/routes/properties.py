"""Property listing API routes."""

import uuid
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy import and_, select
from sqlalchemy.ext.asyncio import AsyncSession

from realty_platform.domain.models import Developer, Property
from realty_platform.domain.schemas import PropertyCreate, PropertyResponse
from realty_platform.infra.database import get_db

router = APIRouter(prefix="/api/properties", tags=["properties"])


@router.get("", response_model=list[PropertyResponse])
async def list_properties(
    db: AsyncSession = Depends(get_db),
    city: Optional[str] = Query(None, description="Exact city name"),
    property_type: Optional[str] = Query(None, alias="propertyType"),
    min_price: Optional[float] = Query(None, alias="minPrice", ge=0),
    max_price: Optional[float] = Query(None, alias="maxPrice", ge=0),
):
    """Return properties, newest first, optionally filtered."""
    conditions = []
    if city:
        conditions.append(Property.city == city)
    if property_type:
        conditions.append(Property.property_type == property_type)
    if min_price is not None:
        conditions.append(Property.price >= min_price)
    if max_price is not None:
        conditions.append(Property.price <= max_price)

    query = select(Property)
    if conditions:
        query = query.where(and_(*conditions))

    result = await db.execute(query.order_by(Property.created_at.desc()))
    return result.scalars().all()


@router.get("/{property_id}", response_model=PropertyResponse)
async def get_property(property_id: str, db: AsyncSession = Depends(get_db)):
    """Return a single property."""
    prop = await db.get(Property, property_id)
    if not prop:
        raise HTTPException(status_code=404, detail="Property not found")
    return prop


@router.post("", response_model=PropertyResponse)
async def create_property(body: PropertyCreate, db: AsyncSession = Depends(get_db)):
    """List a new property under an existing developer."""
    if not await db.get(Developer, body.developer_id):
        raise HTTPException(status_code=404, detail="Developer not found")

    prop = Property(id=str(uuid.uuid4()), **body.model_dump(mode="json"))
    db.add(prop)
    await db.commit()
    return prop
