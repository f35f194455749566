"""Demo data seeding for local development.

Run with ``realty-seed`` (console script) after configuring DATABASE_URL.
Seeding is skipped when any property already exists.
"""

import asyncio
import logging
import uuid

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from realty_platform.domain.models import Developer, Property, User

logger = logging.getLogger(__name__)

DEMO_USERS = [
    {"name": "Ahmed Hassan", "email": "ahmed@example.com", "phone": "+966501234567", "role": "client"},
    {"name": "Sarah Al-Mansoori", "email": "sarah@example.com", "phone": "+971501234567", "role": "client"},
]

DEMO_DEVELOPERS = [
    {
        "name": "Mohammed Al-Otaibi",
        "company_name": "Elite Properties Development",
        "email": "info@eliteproperties.sa",
        "phone": "+966112345678",
        "trust_score": 92.5,
        "years_active": 15,
        "projects_completed": 45,
        "average_rating": 4.7,
        "description": "Riyadh developer of residential and commercial projects delivered on schedule.",
        "delivery_history": [
            {"project": "Al-Nakheel Residences", "date": "2023-12", "status": "completed"},
            {"project": "Business Tower", "date": "2023-06", "status": "completed"},
        ],
        "reviews": [
            {"user": "Client A", "rating": 5, "comment": "Excellent quality and timely delivery", "date": "2024-01-15"},
        ],
        "legal_cases": [],
    },
    {
        "name": "Fatima Al-Zahrani",
        "company_name": "Modern Living Developments",
        "email": "contact@modernliving.ae",
        "phone": "+971501234568",
        "trust_score": 85.0,
        "years_active": 8,
        "projects_completed": 28,
        "average_rating": 4.3,
        "description": "Modern, sustainable residential projects across the UAE.",
        "delivery_history": [
            {"project": "Marina Heights", "date": "2024-03", "status": "delayed"},
        ],
        "reviews": [],
        "legal_cases": [],
    },
]

# (developer index, fields)
DEMO_PROPERTIES = [
    (0, {
        "title": "Luxury Villa in Al-Malqa",
        "title_ar": "فيلا فاخرة في الملقا",
        "city": "Riyadh",
        "city_ar": "الرياض",
        "property_type": "villa",
        "price": 3500000,
        "size": 450,
        "bedrooms": 5,
        "bathrooms": 6,
        "features": ["pool", "garden", "maid room"],
        "risk_flags": [],
    }),
    (0, {
        "title": "Office Floor on King Fahd Road",
        "city": "Riyadh",
        "city_ar": "الرياض",
        "property_type": "office",
        "price": 2000000,
        "size": 300,
        "features": ["parking", "24/7 security"],
        "risk_flags": [],
    }),
    (1, {
        "title": "Marina View Apartment",
        "city": "Dubai",
        "city_ar": "دبي",
        "property_type": "apartment",
        "price": 1800000,
        "size": 120,
        "bedrooms": 2,
        "bathrooms": 2,
        "features": ["sea view", "gym"],
        "risk_flags": [
            {"type": "delivery_delay", "severity": "medium", "description": "Developer delayed a previous project by 6 months"},
        ],
    }),
    (1, {
        "title": "Corniche Apartment",
        "city": "Jeddah",
        "city_ar": "جدة",
        "property_type": "apartment",
        "price": 950000,
        "size": 140,
        "bedrooms": 3,
        "bathrooms": 2,
        "features": ["balcony"],
        "risk_flags": [],
    }),
]


async def seed_demo_data(db: AsyncSession) -> dict:
    """Insert demo users, developers and properties into an empty database.

    Returns:
        Counts of inserted rows per table (all zero when skipped).
    """
    stats = {"users": 0, "developers": 0, "properties": 0}

    existing = await db.scalar(select(func.count()).select_from(Property))
    if existing:
        logger.info("Seed skipped: %d properties already present", existing)
        return stats

    for fields in DEMO_USERS:
        db.add(User(id=str(uuid.uuid4()), **fields))
        stats["users"] += 1

    developers = []
    for fields in DEMO_DEVELOPERS:
        developer = Developer(id=str(uuid.uuid4()), **fields)
        db.add(developer)
        developers.append(developer)
        stats["developers"] += 1

    for dev_index, fields in DEMO_PROPERTIES:
        db.add(Property(id=str(uuid.uuid4()), developer_id=developers[dev_index].id, **fields))
        stats["properties"] += 1

    await db.commit()
    logger.info("Seeded demo data: %s", stats)
    return stats


async def _run() -> None:
    from realty_platform.infra.database import async_session, init_db

    await init_db()
    async with async_session() as db:
        stats = await seed_demo_data(db)
    print(f"[seed] {stats}")


def main() -> None:
    """Console-script entry point."""
    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
    asyncio.run(_run())


if __name__ == "__main__":
    main()
