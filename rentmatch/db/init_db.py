import logging

from pymongo import ASCENDING, DESCENDING

from rentmatch.db.mongodb import mongodb
from rentmatch.models.status_enums import LeaseStatus

logger = logging.getLogger(__name__)


async def init_database():
    """Initialize database with collections and indexes"""
    try:
        db = mongodb.get_database()

        # One match per (tenant, property)
        await db.matches.create_index([("tenant_id", ASCENDING), ("property_id", ASCENDING)], unique=True)
        await db.matches.create_index([("landlord_id", ASCENDING), ("status", ASCENDING), ("updated_at", DESCENDING)])
        await db.matches.create_index([("tenant_id", ASCENDING), ("status", ASCENDING), ("updated_at", DESCENDING)])
        await db.matches.create_index("property_id")

        # At most one pending lease per match
        await db.lease_agreements.create_index(
            "match_id",
            unique=True,
            partialFilterExpression={"status": LeaseStatus.PENDING.value},
            name="one_pending_lease_per_match",
        )
        await db.lease_agreements.create_index([("status", ASCENDING), ("property_id", ASCENDING)])

        # Workflow events persisted as conversation entries
        await db.chat_messages.create_index([("match_id", ASCENDING), ("created_at", ASCENDING)])

        # Directory lookups
        await db.properties.create_index("owner_id")
        await db.preferences.create_index("user_id", unique=True)

        logger.info("Database indexes created successfully")

    except Exception as e:
        logger.error("Error initializing database: %s", e)
        raise
