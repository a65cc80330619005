import hmac
import logging
from datetime import datetime, timedelta, timezone

from jose import JWTError, jwt

from rentmatch.core.config import settings

logger = logging.getLogger(__name__)

ALGORITHM = "HS256"


def create_access_token(data: dict) -> str:
    to_encode = data.copy()
    expire = datetime.now(timezone.utc) + timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)
    to_encode.update({"exp": expire})
    return jwt.encode(to_encode, settings.SECRET_KEY, algorithm=ALGORITHM)


def verify_access_token(token: str) -> dict | None:
    try:
        payload = jwt.decode(token, settings.SECRET_KEY, algorithms=[ALGORITHM])
        user_id: str | None = payload.get("user_id")
        if user_id is None:
            return None
        return payload
    except JWTError:
        return None


def verify_payment_webhook_secret(provided: str | None) -> bool:
    """Constant-time comparison of the payment collaborator's shared secret"""
    if not provided:
        logger.warning("Payment callback without webhook secret")
        return False
    return hmac.compare_digest(provided.encode(), settings.PAYMENT_WEBHOOK_SECRET.encode())
