from fastapi import Depends, Header, HTTPException, status
from fastapi.security import OAuth2PasswordBearer

from rentmatch.core.security import verify_access_token, verify_payment_webhook_secret
from rentmatch.models.token import TokenData

oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/v1/auth/token", auto_error=False)


async def get_current_user(token: str | None = Depends(oauth2_scheme)) -> TokenData:
    if token is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
            headers={"WWW-Authenticate": "Bearer"},
        )

    payload = verify_access_token(token)
    if payload is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or expired token",
            headers={"WWW-Authenticate": "Bearer"},
        )

    return TokenData(user_id=str(payload["user_id"]))


async def verify_payment_callback(
    x_payment_webhook_secret: str | None = Header(default=None),
) -> None:
    if not verify_payment_webhook_secret(x_payment_webhook_secret):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid payment webhook secret",
        )
