"""
Transient PKCE state for in-flight Mercado Livre authorizations.

`user_id` is unique, so at most one pending attempt exists per user: `put`
upserts over any earlier row, and `get_and_consume` deletes the row it
returns in the same statement, so a given `state` resolves at most once.
"""
import logging
from typing import Optional
from sqlalchemy import delete
from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session
from sellerhub.db import dialect_insert
from sellerhub.errors import ErrorKind, MeliOAuthError
from sellerhub.models.meli_oauth_db import AuthorizationState

logger = logging.getLogger(__name__)


def put(session: Session, user_id: str, code_verifier: str, state: str) -> AuthorizationState:
    """Store a new attempt, replacing the user's pending one in a single upsert."""
    auth_state = AuthorizationState(user_id=user_id, code_verifier=code_verifier, state=state)
    replaced = {
        "code_verifier": auth_state.code_verifier,
        "state": auth_state.state,
        "created_at": auth_state.created_at,
    }
    insert = dialect_insert(session)
    stmt = insert(AuthorizationState.__table__).values(id=auth_state.id, user_id=user_id, **replaced)
    stmt = stmt.on_conflict_do_update(
        index_elements=["user_id"],
        set_={key: stmt.excluded[key] for key in replaced},
    )
    try:
        session.exec(stmt)
        session.commit()
    except SQLAlchemyError as e:
        session.rollback()
        logger.error("Failed to save auth state for user %s: %s", user_id, e)
        raise MeliOAuthError(
            ErrorKind.STORAGE_UNAVAILABLE,
            "Failed to save auth state",
            details=e.__class__.__name__,
        )
    logger.info("Stored auth state %s for user %s", state, user_id)
    return auth_state


def get_and_consume(session: Session, state: str) -> Optional[AuthorizationState]:
    """Return the pending attempt for `state` and delete it, or None if there is none."""
    states = AuthorizationState.__table__
    stmt = (
        delete(states)
        .where(states.c.state == state)
        .returning(states.c.user_id, states.c.code_verifier)
    )
    try:
        row = session.exec(stmt).first()
        session.commit()
    except SQLAlchemyError as e:
        session.rollback()
        logger.error("Failed to consume auth state %s: %s", state, e)
        raise MeliOAuthError(
            ErrorKind.STORAGE_UNAVAILABLE,
            "Failed to read auth state",
            details=e.__class__.__name__,
        )
    if row is None:
        return None
    return AuthorizationState(user_id=row.user_id, code_verifier=row.code_verifier, state=state)
