"""
Mercado Livre OAuth endpoints: authorization URL and token grants.
"""
import logging
from typing import Optional
from urllib.parse import urlencode
import requests
from pydantic import ValidationError
from sellerhub.config import Settings
from sellerhub.models.meli_oauth import TokenResponse

logger = logging.getLogger(__name__)


class TokenEndpointError(Exception):
    """The token endpoint answered non-2xx, an unusable body, or not at all."""

    def __init__(self, status_code: Optional[int], body: str, timed_out: bool = False):
        super().__init__(f"Token endpoint error ({status_code}): {body}")
        self.status_code = status_code
        self.body = body
        self.timed_out = timed_out


def build_authorization_url(settings: Settings, code_challenge: str, state: str) -> str:
    params = {
        "response_type": "code",
        "client_id": settings.meli_client_id,
        "redirect_uri": settings.meli_redirect_uri,
        "code_challenge": code_challenge,
        "code_challenge_method": "S256",
        "state": state,
        "site_id": settings.meli_site_id,
    }
    return f"{settings.meli_auth_url}?{urlencode(params)}"


def _post_token(settings: Settings, data: dict) -> TokenResponse:
    try:
        response = requests.post(
            settings.meli_token_url,
            data=data,
            headers={
                "Content-Type": "application/x-www-form-urlencoded",
                "Accept": "application/json",
            },
            timeout=settings.meli_http_timeout,
        )
    except requests.Timeout:
        logger.error("Token endpoint timed out after %ss", settings.meli_http_timeout)
        raise TokenEndpointError(None, "Token endpoint timed out", timed_out=True)
    except requests.RequestException as e:
        logger.error("Token endpoint unreachable: %s", e)
        raise TokenEndpointError(None, f"Token endpoint unreachable: {e.__class__.__name__}")

    if not response.ok:
        logger.error(
            "Token endpoint returned %s (%s): %s",
            response.status_code,
            data.get("grant_type"),
            response.text,
        )
        raise TokenEndpointError(response.status_code, response.text)

    try:
        return TokenResponse.model_validate(response.json())
    except (ValueError, ValidationError) as e:
        logger.error("Unusable token endpoint response: %s", e)
        raise TokenEndpointError(response.status_code, "Malformed token response")


def exchange_code(settings: Settings, code: str, code_verifier: str) -> TokenResponse:
    logger.info("Exchanging authorization code with PKCE verifier %s...", code_verifier[:10])
    return _post_token(settings, {
        "grant_type": "authorization_code",
        "client_id": settings.meli_client_id,
        "client_secret": settings.meli_client_secret,
        "code": code,
        "redirect_uri": settings.meli_redirect_uri,
        "code_verifier": code_verifier,
    })


def refresh_token(settings: Settings, refresh_token: str) -> TokenResponse:
    token = _post_token(settings, {
        "grant_type": "refresh_token",
        "client_id": settings.meli_client_id,
        "client_secret": settings.meli_client_secret,
        "refresh_token": refresh_token,
    })
    # Refresh tokens are single use; without a new one the stored one is dead
    if not token.refresh_token:
        logger.error("Refresh response without a new refresh_token")
        raise TokenEndpointError(200, "Malformed token response: refresh_token missing")
    return token
