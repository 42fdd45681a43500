import os
from typing import List, Optional
from dotenv import load_dotenv

load_dotenv()

MERCADO_LIVRE_AUTH_URL = "https://auth.mercadolibre.com/authorization"
MERCADO_LIVRE_TOKEN_URL = "https://api.mercadolibre.com/oauth/token"
DEFAULT_EXPIRY_WARNING_DAYS = 7


class Settings:
    """
    Server-side configuration, read from the environment (and .env) each
    time a Settings object is built so tests can swap values freely.
    """

    def __init__(self):
        self.database_url: str = os.getenv("DATABASE_URL", "sqlite:///sellerhub.db")

        # Identity provider that signs dashboard session tokens
        self.session_jwt_secret: Optional[str] = os.getenv("SESSION_JWT_SECRET")
        self.session_jwt_audience: Optional[str] = os.getenv("SESSION_JWT_AUDIENCE") or None

        # Mercado Livre OAuth application
        self.meli_client_id: Optional[str] = os.getenv("MERCADO_LIVRE_CLIENT_ID")
        self.meli_client_secret: Optional[str] = os.getenv("MERCADO_LIVRE_CLIENT_SECRET")
        self.meli_redirect_uri: Optional[str] = os.getenv("MERCADO_LIVRE_REDIRECT_URI")
        self.meli_site_id: str = os.getenv("MERCADO_LIVRE_SITE_ID", "MLB")
        self.meli_auth_url: str = os.getenv("MERCADO_LIVRE_AUTH_URL", MERCADO_LIVRE_AUTH_URL)
        self.meli_token_url: str = os.getenv("MERCADO_LIVRE_TOKEN_URL", MERCADO_LIVRE_TOKEN_URL)
        self.meli_http_timeout: float = float(os.getenv("MERCADO_LIVRE_HTTP_TIMEOUT", "10"))

        self.expiry_warning_days: int = int(os.getenv("EXPIRY_WARNING_DAYS", DEFAULT_EXPIRY_WARNING_DAYS))

        self.cors_origins: List[str] = [
            origin.strip()
            for origin in os.getenv("CORS_ORIGINS", "*").split(",")
            if origin.strip()
        ]
        self.log_level: str = os.getenv("LOG_LEVEL", "INFO").upper()


def get_settings() -> Settings:
    return Settings()
