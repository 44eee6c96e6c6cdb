"""
JWT token service

Three token kinds, each signed with its own secret:
- access:  SECRET_KEY,     ACCESS_TOKEN_EXPIRE_MINUTES  (cookie / Bearer)
- refresh: REFRESH_SECRET, REFRESH_TOKEN_EXPIRE_MINUTES
- email:   EMAIL_SECRET,   EMAIL_TOKEN_EXPIRE_MINUTES   (verification links)

Token data returned to clients:
    {"token": "...", "expiresIn": <seconds>, "maxAgeSeconds": <seconds>}
"""
from datetime import datetime, timedelta, timezone
from typing import Dict

from jose import JWTError, jwt

from config.settings import Settings

ACCESS = "access"
REFRESH = "refresh"
EMAIL = "email"

COOKIE_NAME = "Authorization"


class TokenService:
    """Signs and verifies JWTs (python-jose)"""

    def __init__(self, settings: Settings):
        self.settings = settings
        self._secrets = {
            ACCESS: settings.secret_key,
            REFRESH: settings.refresh_secret,
            EMAIL: settings.email_secret,
        }
        self._lifetimes = {
            ACCESS: settings.access_token_expire_minutes,
            REFRESH: settings.refresh_token_expire_minutes,
            EMAIL: settings.email_token_expire_minutes,
        }

    def _create(self, kind: str, subject: str, extra: Dict = None) -> Dict:
        minutes = self._lifetimes[kind]
        now = datetime.now(timezone.utc)
        payload = {
            "id": subject,
            "type": kind,
            "iat": now,
            "exp": now + timedelta(minutes=minutes),
        }
        if extra:
            payload.update(extra)

        token = jwt.encode(payload, self._secrets[kind], algorithm=self.settings.jwt_algorithm)
        return {
            "token": token,
            "expiresIn": minutes * 60,
            "maxAgeSeconds": minutes * 60,
        }

    def create_access_token(self, user_id: str) -> Dict:
        return self._create(ACCESS, user_id)

    def create_refresh_token(self, user_id: str) -> Dict:
        return self._create(REFRESH, user_id)

    def create_email_token(self, email: str) -> Dict:
        """Email tokens carry the address instead of a user id"""
        return self._create(EMAIL, email, {"email": email})

    def verify(self, token: str, kind: str = ACCESS) -> Dict:
        """
        Decode and validate a token of the given kind.

        Returns:
            Decoded payload

        Raises:
            jose.JWTError if invalid, expired or of another kind
        """
        payload = jwt.decode(
            token,
            self._secrets[kind],
            algorithms=[self.settings.jwt_algorithm],
        )
        if payload.get("type", kind) != kind:
            raise JWTError(f"Expected {kind} token")
        return payload

    def cookie_params(self, token_data: Dict) -> Dict:
        """Keyword arguments for Response.set_cookie()"""
        return {
            "key": COOKIE_NAME,
            "value": token_data["token"],
            "httponly": True,
            "max_age": token_data["maxAgeSeconds"],
            "samesite": "lax",
            "secure": self.settings.is_production,
        }
