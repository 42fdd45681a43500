import logging
from fastapi import Depends, Request
from jose import JWTError, jwt
from sellerhub.config import Settings, get_settings
from sellerhub.errors import ErrorKind, MeliOAuthError

logger = logging.getLogger(__name__)

ALGORITHM = "HS256"

def _require_secret(settings: Settings) -> str:
    if not settings.session_jwt_secret:
        logger.error("SESSION_JWT_SECRET is not configured")
        raise MeliOAuthError(ErrorKind.CONFIGURATION, "Session verification is not configured")
    return settings.session_jwt_secret

def decode_token(token: str, settings: Settings) -> dict:
    options = {"verify_aud": bool(settings.session_jwt_audience)}
    return jwt.decode(
        token,
        _require_secret(settings),
        algorithms=[ALGORITHM],
        audience=settings.session_jwt_audience,
        options=options,
    )

def get_current_user(request: Request, settings: Settings = Depends(get_settings)) -> str:
    """
    Resolve the dashboard session token in the Authorization header to the
    local user id (`sub` claim).
    """
    scheme, _, token = request.headers.get("Authorization", "").partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        raise MeliOAuthError(ErrorKind.UNAUTHENTICATED, "Authorization header required")
    try:
        payload = decode_token(token.strip(), settings)
    except JWTError as e:
        logger.warning("Rejected session token: %s", e)
        raise MeliOAuthError(ErrorKind.UNAUTHENTICATED, "Invalid authentication token")
    user_id = payload.get("sub")
    if not user_id:
        raise MeliOAuthError(ErrorKind.UNAUTHENTICATED, "Invalid authentication token")
    return str(user_id)
