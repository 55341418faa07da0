from typing import Optional

from fastapi import Header, HTTPException, status

from farmhelper.config import settings
from farmhelper.services.tokens import TokenClaims, TokenError, decode_access_token


def get_current_claims(authorization: str | None = Header(default=None)) -> TokenClaims:
    if not authorization:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="No token provided",
        )
    scheme, _, token = authorization.partition(" ")
    token = token.strip()
    if scheme.lower() != "bearer" or not token:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid Token!",
        )
    try:
        return decode_access_token(token)
    except TokenError as exc:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid Token!",
        ) from exc


def get_advisory_claims(
    authorization: str | None = Header(default=None),
) -> Optional[TokenClaims]:
    if not settings.advisory_requires_auth:
        return None
    return get_current_claims(authorization)
