import asyncio

from questionnaire_api.core.config import settings
from questionnaire_api.db.session import Database


async def create_tables():
    """Create database tables."""
    print("Creating database tables...")

    database = Database(settings.DATABASE_URL, echo=True)
    try:
        await database.create_all()
    finally:
        await database.dispose()

    print("Database tables created successfully!")


if __name__ == "__main__":
    asyncio.run(create_tables())
