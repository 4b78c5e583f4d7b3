"""
    Bearer token verification.

    Tokens are HMAC-signed JWTs issued by an external identity provider; the
    gateway only checks them against the shared secret and extracts the user id.
"""
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional
import logging
from jose import jwt
from jose.exceptions import ExpiredSignatureError, JWTClaimsError, JWTError
from pydantic import BaseModel

from image_gateway.exceptions import AuthError
from image_gateway.settings import Settings

log = logging.getLogger(__name__)

BEARER_PREFIX = "Bearer "

class Claim(BaseModel):
    user_id: str
    expires_at: Optional[datetime] = None
    payload: Dict[str, Any]

def bearer_token(authorization: Optional[str]) -> str:
    """Extracts the token from an ``Authorization: Bearer <token>`` header."""
    if not authorization or not authorization.startswith(BEARER_PREFIX):
        raise AuthError("Unauthorized: Missing or invalid token")
    parts = authorization.split(" ")
    if len(parts) < 2 or not parts[1]:
        raise AuthError("Unauthorized: Missing or invalid token")
    return parts[1]

class TokenVerifier:
    def __init__(
        self,
        secret: Optional[str],
        algorithms: Optional[List[str]] = None,
        identity_claim: str = "user_id",
        audience: Optional[str] = None,
    ):
        self.secret = secret
        self.algorithms = algorithms or ["HS256"]
        self.identity_claim = identity_claim
        self.audience = audience

    @classmethod
    def from_settings(cls, settings: Settings) -> "TokenVerifier":
        if not settings.jwt_secret:
            log.error("JWT_SECRET is not set, every token will be rejected")
        return cls(
            secret=settings.jwt_secret,
            algorithms=settings.jwt_algorithms,
            identity_claim=settings.jwt_identity_claim,
            audience=settings.jwt_audience,
        )

    def decode(self, token: str) -> Dict[str, Any]:
        """Validates signature and registered claims, returning the payload."""
        if not self.secret:
            raise AuthError(self._message("Server configuration error"))

        options = {"verify_aud": self.audience is not None}
        try:
            return jwt.decode(
                token,
                self.secret,
                algorithms=self.algorithms,
                audience=self.audience,
                options=options,
            )
        except ExpiredSignatureError:
            log.info("Token verification failed: expired")
            raise AuthError(self._message("Token expired"))
        except JWTClaimsError as e:
            log.warning("Token verification failed: claim validation issue (%s)", e)
            raise AuthError(self._message(f"Claim validation failed: {e}"))
        except JWTError as e:
            if "Signature verification failed" in str(e):
                log.warning("Token verification failed: invalid signature")
                raise AuthError(self._message("Invalid signature"))
            log.warning("Token verification failed: %s", e.__class__.__name__)
            raise AuthError(self._message("Token verification failed"))

    def verify(self, token: str) -> Claim:
        """Verifies the token and returns its identity claim."""
        payload = self.decode(token)

        user_id = payload.get(self.identity_claim)
        if user_id is None or str(user_id) == "":
            log.warning("Token verification failed: missing %s claim", self.identity_claim)
            raise AuthError("Unauthorized: Token missing user ID")

        expires_at = None
        if payload.get("exp") is not None:
            expires_at = datetime.fromtimestamp(int(payload["exp"]), tz=timezone.utc)

        return Claim(user_id=str(user_id), expires_at=expires_at, payload=payload)

    @staticmethod
    def _message(reason: str) -> str:
        return f"Unauthorized: Token invalid or expired. Reason: {reason}"
