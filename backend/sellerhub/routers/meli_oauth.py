from fastapi import APIRouter, Depends
from fastapi.responses import HTMLResponse
from sqlmodel import Session
from typing import Optional
import logging
from sellerhub.auth.auth_handler import get_current_user
from sellerhub.auth.pkce import derive_challenge, generate_state, generate_verifier
from sellerhub.config import Settings, get_settings
from sellerhub.db import get_session
from sellerhub.errors import ErrorKind, MeliOAuthError
from sellerhub.models.meli_oauth_db import as_utc
from sellerhub.models.meli_oauth import AuthStartResponse, ConnectionStatus, RefreshResponse, TokenResponse
from sellerhub.utils import auth_state_store, credential_store, meli_client
from sellerhub.utils.html_pages import error_page, success_page
from sellerhub.utils.meli_client import TokenEndpointError

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/meli/oauth", tags=["Mercado Livre OAuth"])

CALLBACK_ERROR_TITLES = {
    ErrorKind.INVALID_CALLBACK: "Authorization failed",
    ErrorKind.EXPIRED_OR_UNKNOWN_STATE: "Security error",
    ErrorKind.CONFIGURATION: "Configuration error",
    ErrorKind.STORAGE_UNAVAILABLE: "Service unavailable",
    ErrorKind.UPSTREAM_EXCHANGE_FAILURE: "Connection error",
    ErrorKind.PERSISTENCE_FAILURE: "Error saving connection",
}

def _require_config(settings: Settings, *names: str):
    missing = [name for name in names if not getattr(settings, name)]
    if missing:
        logger.error("Mercado Livre configuration missing: %s", ", ".join(missing))
        raise MeliOAuthError(ErrorKind.CONFIGURATION, "Mercado Livre configuration missing")

@router.post("/start", response_model=AuthStartResponse)
def start_oauth(
    user: str = Depends(get_current_user),
    settings: Settings = Depends(get_settings),
    session: Session = Depends(get_session),
):
    """
    Begin connecting the caller's Mercado Livre account. Returns the provider
    authorization URL for the dashboard to open in a popup.
    """
    _require_config(settings, "meli_client_id", "meli_redirect_uri")

    code_verifier = generate_verifier()
    code_challenge = derive_challenge(code_verifier)
    state = generate_state()
    logger.info(
        "Starting Mercado Livre authorization for user %s (verifier %s..., challenge %s..., state %s)",
        user, code_verifier[:10], code_challenge[:10], state,
    )

    auth_state_store.put(session, user, code_verifier, state)
    auth_url = meli_client.build_authorization_url(settings, code_challenge, state)
    return AuthStartResponse(authUrl=auth_url, state=state)

def _complete_authorization(
    session: Session,
    settings: Settings,
    code: Optional[str],
    state: Optional[str],
    error: Optional[str],
    error_description: Optional[str],
) -> TokenResponse:
    if error:
        logger.error("Mercado Livre authorization error: %s (%s)", error, error_description)
        raise MeliOAuthError(
            ErrorKind.INVALID_CALLBACK,
            "Mercado Livre did not authorize the connection. Please try again.",
            details=f"{error}: {error_description or 'unknown error'}",
        )
    if not code or not state:
        logger.error("Callback without code or state")
        raise MeliOAuthError(ErrorKind.INVALID_CALLBACK, "Invalid authorization parameters. Please try again.")

    _require_config(settings, "meli_client_id", "meli_client_secret", "meli_redirect_uri")

    auth_state = auth_state_store.get_and_consume(session, state)
    if auth_state is None:
        logger.warning("Unknown or already used auth state %s", state)
        raise MeliOAuthError(
            ErrorKind.EXPIRED_OR_UNKNOWN_STATE,
            "Invalid or expired authorization state. Please try again.",
        )

    try:
        token = meli_client.exchange_code(settings, code, auth_state.code_verifier)
    except TokenEndpointError as e:
        raise MeliOAuthError(
            ErrorKind.UPSTREAM_EXCHANGE_FAILURE,
            "Failed to obtain tokens from Mercado Livre.",
            details=f"Status: {e.status_code or 'no response'}. {e.body}",
        )
    logger.info("Tokens obtained for Mercado Livre user %s", token.user_id)

    credential_store.save_credential(session, auth_state.user_id, token)
    logger.info("Mercado Livre connected for user %s", auth_state.user_id)
    return token

@router.get("/callback", response_class=HTMLResponse)
def oauth_callback(
    code: Optional[str] = None,
    state: Optional[str] = None,
    error: Optional[str] = None,
    error_description: Optional[str] = None,
    settings: Settings = Depends(get_settings),
    session: Session = Depends(get_session),
):
    """
    Redirect target of the Mercado Livre authorization page. Always answers
    with a small HTML page meant to be shown inside the popup.
    """
    logger.info("Mercado Livre callback received (code=%s, state=%s, error=%s)", bool(code), state, error)
    try:
        token = _complete_authorization(session, settings, code, state, error, error_description)
    except MeliOAuthError as e:
        title = CALLBACK_ERROR_TITLES.get(e.kind, "Connection error")
        details = str(e.details) if e.details is not None else None
        return HTMLResponse(error_page(title, e.message, details), status_code=e.status_code)
    except Exception:
        logger.exception("Unexpected error in Mercado Livre callback")
        return HTMLResponse(
            error_page("Unexpected error", "An unexpected error occurred. Please try again or contact support."),
            status_code=500,
        )

    external_id = str(token.user_id) if token.user_id is not None else None
    return HTMLResponse(success_page(external_id), status_code=200)

@router.post("/refresh", response_model=RefreshResponse)
def refresh_oauth(
    user: str = Depends(get_current_user),
    settings: Settings = Depends(get_settings),
    session: Session = Depends(get_session),
):
    """
    Exchange the stored refresh token for a new access/refresh pair.
    """
    credential = credential_store.get_credential(session, user)
    if not credential or not credential.refresh_token:
        logger.warning("Refresh requested without stored refresh token for user %s", user)
        raise MeliOAuthError(ErrorKind.NOT_CONNECTED, "Mercado Livre not connected or refresh token missing")
    stored_refresh_token = credential.refresh_token
    external_account_id = credential.external_account_id

    _require_config(settings, "meli_client_id", "meli_client_secret")

    logger.info("Refreshing Mercado Livre tokens for user %s", user)
    try:
        token = meli_client.refresh_token(settings, stored_refresh_token)
    except TokenEndpointError as e:
        if e.timed_out:
            status_code = 504
        elif e.status_code and e.status_code >= 400:
            status_code = e.status_code
        else:
            status_code = ErrorKind.REFRESH_FAILED.status_code
        raise MeliOAuthError(
            ErrorKind.REFRESH_FAILED,
            "Failed to refresh tokens",
            details=e.body,
            status_code=status_code,
        )

    expires_at = credential_store.update_tokens(session, user, token)
    logger.info("Mercado Livre tokens refreshed for user %s", user)
    provider_user_id = str(token.user_id) if token.user_id is not None else external_account_id
    return RefreshResponse(expires_at=expires_at, user_id=provider_user_id)

@router.get("/status", response_model=ConnectionStatus)
def connection_status(
    user: str = Depends(get_current_user),
    settings: Settings = Depends(get_settings),
    session: Session = Depends(get_session),
):
    """
    Report whether the caller has a stored Mercado Livre connection and
    whether its token expires within the warning window.
    """
    credential = credential_store.get_credential(session, user)
    if not credential or not credential.access_token:
        return ConnectionStatus(connected=False)
    expires_at = as_utc(credential.expires_at)
    return ConnectionStatus(
        connected=True,
        external_account_id=credential.external_account_id,
        expires_at=expires_at,
        expiring_soon=credential_store.is_expiring_soon(expires_at, warning_days=settings.expiry_warning_days),
    )
