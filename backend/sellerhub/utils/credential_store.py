"""
Durable marketplace credentials, one row per (user, provider).

Writes go through single-statement upserts/updates so a refresh racing a
callback for the same user cannot lose an update.
"""
import logging
import uuid
from datetime import datetime, timedelta
from typing import Optional
from sqlalchemy import update
from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session, select
from sellerhub.config import DEFAULT_EXPIRY_WARNING_DAYS
from sellerhub.db import dialect_insert
from sellerhub.errors import ErrorKind, MeliOAuthError
from sellerhub.models.meli_oauth import TokenResponse
from sellerhub.models.meli_oauth_db import MERCADO_LIVRE, MarketplaceCredential, as_utc, utc_now

logger = logging.getLogger(__name__)


def get_credential(session: Session, user_id: str, provider: str = MERCADO_LIVRE) -> Optional[MarketplaceCredential]:
    try:
        return session.exec(
            select(MarketplaceCredential).where(
                MarketplaceCredential.user_id == user_id,
                MarketplaceCredential.provider == provider,
            )
        ).first()
    except SQLAlchemyError as e:
        session.rollback()
        logger.error("Failed to load %s credential for user %s: %s", provider, user_id, e)
        raise MeliOAuthError(
            ErrorKind.STORAGE_UNAVAILABLE,
            "Failed to load marketplace credential",
            details=e.__class__.__name__,
        )


def save_credential(
    session: Session,
    user_id: str,
    token: TokenResponse,
    provider: str = MERCADO_LIVRE,
) -> datetime:
    """
    Insert or overwrite the credential for `user_id` after a code exchange.
    Returns the computed expiry.
    """
    now = utc_now()
    expires_at = now + timedelta(seconds=token.expires_in)
    values = {
        "access_token": token.access_token,
        "refresh_token": token.refresh_token,
        "external_account_id": str(token.user_id) if token.user_id is not None else None,
        "expires_at": expires_at,
        "updated_at": now,
    }
    insert = dialect_insert(session)
    stmt = insert(MarketplaceCredential.__table__).values(
        id=str(uuid.uuid4()),
        user_id=user_id,
        provider=provider,
        created_at=now,
        **values,
    )
    stmt = stmt.on_conflict_do_update(
        index_elements=["user_id", "provider"],
        set_={key: stmt.excluded[key] for key in values},
    )
    try:
        session.exec(stmt)
        session.commit()
    except SQLAlchemyError as e:
        session.rollback()
        logger.error("Failed to save %s tokens for user %s: %s", provider, user_id, e)
        raise MeliOAuthError(
            ErrorKind.PERSISTENCE_FAILURE,
            "Tokens were issued but could not be saved",
            details=e.__class__.__name__,
        )
    logger.info("Saved %s tokens for user %s (expires %s)", provider, user_id, expires_at.isoformat())
    return expires_at


def update_tokens(
    session: Session,
    user_id: str,
    token: TokenResponse,
    provider: str = MERCADO_LIVRE,
) -> datetime:
    """Overwrite tokens and expiry of an existing credential in place."""
    now = utc_now()
    expires_at = now + timedelta(seconds=token.expires_in)
    credentials = MarketplaceCredential.__table__
    stmt = (
        update(credentials)
        .where(
            credentials.c.user_id == user_id,
            credentials.c.provider == provider,
        )
        .values(
            access_token=token.access_token,
            refresh_token=token.refresh_token,
            expires_at=expires_at,
            updated_at=now,
        )
    )
    try:
        result = session.exec(stmt)
        session.commit()
    except SQLAlchemyError as e:
        session.rollback()
        logger.error("Failed to update %s tokens for user %s: %s", provider, user_id, e)
        raise MeliOAuthError(
            ErrorKind.PERSISTENCE_FAILURE,
            "Failed to update tokens in database",
            details=e.__class__.__name__,
        )
    if result.rowcount == 0:
        raise MeliOAuthError(ErrorKind.NOT_CONNECTED, "Mercado Livre not connected or refresh token missing")
    return expires_at


def is_expiring_soon(
    expires_at: Optional[datetime],
    now: Optional[datetime] = None,
    warning_days: int = DEFAULT_EXPIRY_WARNING_DAYS,
) -> bool:
    """True when less than `warning_days` remain (expired tokens included)."""
    if expires_at is None:
        return False
    now = now or utc_now()
    return as_utc(expires_at) - now < timedelta(days=warning_days)
