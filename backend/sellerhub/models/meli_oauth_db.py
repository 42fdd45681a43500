from sqlmodel import SQLModel, Field
from sqlalchemy import Column, DateTime, UniqueConstraint
from datetime import datetime, timezone
from typing import Optional
import uuid

MERCADO_LIVRE = "mercado_livre"

def utc_now() -> datetime:
    return datetime.now(timezone.utc)

def as_utc(value: datetime) -> datetime:
    """SQLite hands timestamps back naive; they were written as UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)

def _timestamp_column() -> Column:
    return Column(DateTime(timezone=True), nullable=False)

class AuthorizationState(SQLModel, table=True):
    __tablename__ = "meli_auth_states"

    id: str = Field(default_factory=lambda: str(uuid.uuid4()), primary_key=True)
    user_id: str = Field(index=True, unique=True)
    code_verifier: str
    state: str = Field(index=True, unique=True)
    created_at: datetime = Field(default_factory=utc_now, sa_column=_timestamp_column())

class MarketplaceCredential(SQLModel, table=True):
    __tablename__ = "marketplace_credentials"
    __table_args__ = (UniqueConstraint("user_id", "provider", name="uq_credential_user_provider"),)

    id: str = Field(default_factory=lambda: str(uuid.uuid4()), primary_key=True)
    user_id: str = Field(index=True)
    provider: str = Field(default=MERCADO_LIVRE)
    access_token: Optional[str] = None
    refresh_token: Optional[str] = None
    external_account_id: Optional[str] = None
    expires_at: datetime = Field(sa_column=_timestamp_column())
    created_at: datetime = Field(default_factory=utc_now, sa_column=_timestamp_column())
    updated_at: datetime = Field(default_factory=utc_now, sa_column=_timestamp_column())
