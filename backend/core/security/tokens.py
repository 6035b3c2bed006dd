"""
JWT access tokens for the bearer-token identity boundary.

Tokens only carry the user id. The caller's role is always re-read from
the user table, so a demoted or suspended account loses access as soon
as the row changes.
"""

from dataclasses import dataclass
from datetime import UTC, datetime, timedelta

from jose import JWTError, jwt

ACCESS_TOKEN_TYPE = "access"


@dataclass
class TokenPayload:
    sub: str  # user id
    exp: datetime
    iat: datetime
    type: str
    role: str | None = None


class TokenService:
    """Issues and verifies signed access tokens."""

    def __init__(
        self,
        secret_key: str,
        algorithm: str = "HS256",
        access_token_expire_minutes: int = 30,
        issuer: str | None = None,
    ):
        self._secret_key = secret_key
        self._algorithm = algorithm
        self._ttl = timedelta(minutes=access_token_expire_minutes)
        self._issuer = issuer

    @property
    def access_token_ttl_seconds(self) -> int:
        return int(self._ttl.total_seconds())

    def create_access_token(self, user_id: str, role: str | None = None) -> str:
        """Sign a token for ``user_id``. ``role`` is informational only."""
        issued_at = datetime.now(UTC)
        claims = {
            "sub": user_id,
            "iat": issued_at,
            "exp": issued_at + self._ttl,
            "type": ACCESS_TOKEN_TYPE,
        }
        if role:
            claims["role"] = role
        if self._issuer:
            claims["iss"] = self._issuer
        return jwt.encode(claims, self._secret_key, algorithm=self._algorithm)

    def decode_token(self, token: str) -> TokenPayload | None:
        """
        Decode and validate a JWT.

        Returns None when the signature, expiry, issuer or claim set is
        invalid.
        """
        try:
            claims = jwt.decode(
                token,
                self._secret_key,
                algorithms=[self._algorithm],
                issuer=self._issuer,
            )
        except JWTError:
            return None

        if not all(claims.get(name) for name in ("sub", "exp", "type")):
            return None

        return TokenPayload(
            sub=claims["sub"],
            exp=datetime.fromtimestamp(claims["exp"], tz=UTC),
            iat=datetime.fromtimestamp(claims.get("iat", 0), tz=UTC),
            type=claims["type"],
            role=claims.get("role"),
        )

    def verify_access_token(self, token: str) -> TokenPayload | None:
        """Return the payload if ``token`` is a valid access token."""
        payload = self.decode_token(token)
        if payload and payload.type == ACCESS_TOKEN_TYPE:
            return payload
        return None
