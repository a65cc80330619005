from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    # === PUBLIC DATA (not secrets) ===
    API_V1_STR: str = "/api/v1"
    PROJECT_NAME: str = "Rental Match Engine"

    # === DATABASE SETTINGS (from .env) ===
    MONGODB_URL: str = Field(
        default="mongodb://localhost:27017/rentmatch", description="MongoDB connection string"
    )
    USE_TRANSACTIONS: bool = Field(
        default=True, description="Wrap multi-document writes in a MongoDB transaction (needs a replica set)"
    )

    # === APPLICATION SETTINGS ===
    DEBUG: bool = Field(default=False)
    LOG_LEVEL: str = Field(default="INFO")
    ACCESS_TOKEN_EXPIRE_MINUTES: int = Field(default=30)

    # === SECRETS (from .env) ===
    SECRET_KEY: str = Field(default="dev-secret-key", description="Secret key for JWT tokens")
    PAYMENT_WEBHOOK_SECRET: str = Field(
        default="dev-payment-secret", description="Shared secret sent by the payment collaborator"
    )

    # === INTERACTION SCORING ===
    # A single pass sinks a well-scored candidate in the feed, it does not hide it
    LIKE_SCORE: float = Field(default=10.0, description="Score delta applied on a like")
    PASS_SCORE: float = Field(default=-20.0, description="Score delta applied on a pass")
    MATCH_WRITE_MAX_RETRIES: int = Field(
        default=3, ge=1, description="Attempts for a swipe that loses an optimistic concurrency race"
    )

    # === FEED RANKING ===
    FEED_VISIBILITY_THRESHOLD: float = Field(default=0.0, description="Minimum total score to appear in a feed")
    FEED_SHUFFLE_MIN_SIZE: int = Field(default=10, description="Feeds longer than this get perturbed")
    FEED_SHUFFLE_START: int = Field(default=4)
    FEED_SHUFFLE_STEP: int = Field(default=5, ge=1)
    FEED_SHUFFLE_SEED: Optional[int] = Field(default=None, description="Seed for reproducible feed shuffles")

    class Config:
        env_file = ".env"
        case_sensitive = True


settings = Settings()
