import logging
from contextlib import asynccontextmanager

from motor.motor_asyncio import AsyncIOMotorClient
from pymongo.errors import PyMongoError

from rentmatch.core.config import settings
from rentmatch.exceptions import ConcurrentModificationError

logger = logging.getLogger(__name__)

# Labels the server puts on transactions that lost a write race
RETRYABLE_TRANSACTION_LABELS = ("TransientTransactionError", "UnknownTransactionCommitResult")


class MongoDB:
    client: AsyncIOMotorClient = None

    async def connect_to_mongo(self):
        """Create database connection"""
        self.client = AsyncIOMotorClient(settings.MONGODB_URL, tz_aware=True)
        logger.info("Connected to MongoDB")

    async def close_mongo_connection(self):
        """Close database connection"""
        if self.client:
            self.client.close()
        logger.info("Disconnected from MongoDB")

    def get_database(self):
        """Get database instance"""
        return self.client.get_database()

    @asynccontextmanager
    async def transaction(self):
        """
        Yield a session bound to a multi-document transaction.

        Yields None when transactions are disabled (standalone servers), in
        which case writes fall back to per-document atomicity plus the
        version guard on matches. A write conflict or an unknown commit
        result is raised as ConcurrentModificationError.
        """
        if not settings.USE_TRANSACTIONS:
            yield None
            return

        async with await self.client.start_session() as session:
            try:
                async with session.start_transaction():
                    yield session
            except PyMongoError as e:
                if not any(e.has_error_label(label) for label in RETRYABLE_TRANSACTION_LABELS):
                    raise
                logger.warning("Transaction aborted by a concurrent write: %s", e)
                raise ConcurrentModificationError("Data was modified concurrently, retry the request") from e


mongodb = MongoDB()
