from pydantic import BaseModel
from datetime import datetime
from typing import Optional, Union

class TokenResponse(BaseModel):
    access_token: str
    # Omitted when the seller did not grant offline_access
    refresh_token: Optional[str] = None
    expires_in: int
    user_id: Optional[Union[int, str]] = None
    token_type: Optional[str] = None
    scope: Optional[str] = None

class AuthStartResponse(BaseModel):
    authUrl: str
    state: str

class RefreshResponse(BaseModel):
    success: bool = True
    expires_at: datetime
    user_id: Optional[str] = None

class ConnectionStatus(BaseModel):
    connected: bool
    external_account_id: Optional[str] = None
    expires_at: Optional[datetime] = None
    expiring_soon: bool = False
