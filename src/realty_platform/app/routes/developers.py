"""Developer API routes. Developers are listed by stored trust score."""

import uuid

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from realty_platform.domain.models import Developer
from realty_platform.domain.schemas import DeveloperCreate, DeveloperResponse
from realty_platform.infra.database import get_db

router = APIRouter(prefix="/api/developers", tags=["developers"])


@router.get("", response_model=list[DeveloperResponse])
async def list_developers(db: AsyncSession = Depends(get_db)):
    """Return all developers, most trusted first."""
    result = await db.execute(select(Developer).order_by(Developer.trust_score.desc()))
    return result.scalars().all()


@router.get("/{developer_id}", response_model=DeveloperResponse)
async def get_developer(developer_id: str, db: AsyncSession = Depends(get_db)):
    """Return a single developer."""
    developer = await db.get(Developer, developer_id)
    if not developer:
        raise HTTPException(status_code=404, detail="Developer not found")
    return developer


@router.post("", response_model=DeveloperResponse)
async def create_developer(body: DeveloperCreate, db: AsyncSession = Depends(get_db)):
    """Register a developer."""
    developer = Developer(id=str(uuid.uuid4()), **body.model_dump(mode="json"))
    db.add(developer)
    try:
        await db.commit()
    except IntegrityError:
        await db.rollback()
        raise HTTPException(status_code=400, detail="Invalid developer data")
    return developer
