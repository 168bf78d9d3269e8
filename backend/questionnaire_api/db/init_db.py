from loguru import logger

from questionnaire_api.core.config import Settings
from questionnaire_api.db.session import Database


async def init_db(database: Database, settings: Settings) -> None:
    """
    Initialize the store schema.
    """
    if not settings.DATABASE_AUTO_CREATE:
        logger.info("Skipping table creation, DATABASE_AUTO_CREATE is disabled")
        return

    try:
        await database.create_all()
        logger.info("Database tables ready")
    except Exception as e:
        logger.error(f"Error initializing database: {e}")
        raise
