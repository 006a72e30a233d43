"""Password hashing and signed bearer tokens (issue and verify)."""

from dataclasses import dataclass, field
from datetime import UTC, datetime, timedelta
from enum import Enum
from functools import lru_cache
from typing import Any, Protocol

import bcrypt
import jwt

from designfolio.core.config import Settings
from designfolio.schemas.auth import Identity

# Bcrypt cost (rounds); 12 is a good default for security vs speed.
DEFAULT_BCRYPT_ROUNDS = 12

ACCESS_TOKEN_TYPE = "access"
RESET_TOKEN_TYPE = "password_reset"
RESET_TOKEN_TTL = timedelta(hours=1)

REQUIRED_CLAIMS = ["exp", "iat", "sub"]


def hash_password(plain_password: str, rounds: int = DEFAULT_BCRYPT_ROUNDS) -> str:
    """Hash a plain-text password for storage. Each call uses a fresh salt."""
    # bcrypt has a 72-byte limit; truncate to avoid errors (validation already limits length).
    pw_bytes = plain_password.encode("utf-8")[:72]
    return bcrypt.hashpw(pw_bytes, bcrypt.gensalt(rounds=rounds)).decode("utf-8")


def verify_password(plain_password: str, hashed: str) -> bool:
    """Verify a plain password against a stored hash; cost is read from the hash."""
    pw_bytes = plain_password.encode("utf-8")[:72]
    try:
        return bcrypt.checkpw(pw_bytes, hashed.encode("utf-8"))
    except (ValueError, TypeError):
        return False


@lru_cache
def dummy_password_hash(rounds: int = DEFAULT_BCRYPT_ROUNDS) -> str:
    """Digest checked when no account matches, so an unknown email still costs one bcrypt verify."""
    return hash_password("no-such-account", rounds)


class TokenOutcome(str, Enum):
    VALID = "valid"
    EXPIRED = "expired"
    INVALID = "invalid"
    NOT_YET_VALID = "not_yet_valid"
    ERROR = "error"


@dataclass(frozen=True)
class TokenVerification:
    """Outcome of verifying a token; ``claims`` is set only when VALID, ``identity`` only for access tokens."""

    outcome: TokenOutcome
    claims: dict[str, Any] = field(default_factory=dict)
    identity: Identity | None = None
    reason: str = ""

    @property
    def ok(self) -> bool:
        return self.outcome is TokenOutcome.VALID


class TokenSubject(Protocol):
    id: int
    username: str
    email: str
    role: Any


def _role_value(role: Any) -> str:
    return getattr(role, "value", role)


def _identity_from_payload(payload: dict[str, Any]) -> Identity:
    return Identity(
        id=int(payload["sub"]),
        username=payload["username"],
        email=payload["email"],
        role=payload["role"],
        issued_at=datetime.fromtimestamp(payload["iat"], UTC),
        expires_at=datetime.fromtimestamp(payload["exp"], UTC),
    )


class TokenService:
    """
    Issues and verifies HMAC-signed JWTs.

    Secret, algorithm and access TTL are fixed at construction; rotating the
    secret invalidates every token issued before.
    """

    def __init__(self, secret: str, algorithm: str = "HS256", access_ttl: timedelta = timedelta(hours=24)) -> None:
        if not secret:
            raise ValueError("Token signing secret must be non-empty")
        self._secret = secret
        self._algorithm = algorithm
        self.access_ttl = access_ttl

    @classmethod
    def from_settings(cls, settings: Settings) -> "TokenService":
        return cls(
            secret=settings.JWT_SECRET.get_secret_value(),
            algorithm=settings.JWT_ALGORITHM,
            access_ttl=timedelta(minutes=settings.JWT_EXPIRE_MINUTES),
        )

    def issue(
        self,
        claims: dict[str, Any],
        ttl: timedelta,
        now: datetime | None = None,
    ) -> str:
        """Sign ``claims`` with iat/nbf set to ``now`` and exp set to ``now + ttl``."""
        if ttl <= timedelta(0):
            raise ValueError("Token TTL must be positive")
        issued = now or datetime.now(UTC)
        payload = dict(claims)
        payload.update({"iat": issued, "nbf": issued, "exp": issued + ttl})
        return jwt.encode(payload, self._secret, algorithm=self._algorithm)

    def issue_access_token(self, subject: TokenSubject, now: datetime | None = None) -> str:
        claims = {
            "sub": str(subject.id),
            "username": subject.username,
            "email": subject.email,
            "role": _role_value(subject.role),
            "type": ACCESS_TOKEN_TYPE,
        }
        return self.issue(claims, self.access_ttl, now=now)

    def issue_reset_token(self, subject: TokenSubject, now: datetime | None = None) -> str:
        claims = {
            "sub": str(subject.id),
            "email": subject.email,
            "type": RESET_TOKEN_TYPE,
        }
        return self.issue(claims, RESET_TOKEN_TTL, now=now)

    def verify(self, token: str, expected_type: str = ACCESS_TOKEN_TYPE) -> TokenVerification:
        """
        Check signature, time claims and the ``type`` discriminator.

        Access tokens additionally yield an ``Identity``; a payload that cannot
        be turned into one is INVALID.
        """
        try:
            payload = jwt.decode(
                token,
                self._secret,
                algorithms=[self._algorithm],
                options={"require": REQUIRED_CLAIMS},
            )
        except jwt.ExpiredSignatureError as e:
            return TokenVerification(TokenOutcome.EXPIRED, reason=str(e))
        except jwt.ImmatureSignatureError as e:
            return TokenVerification(TokenOutcome.NOT_YET_VALID, reason=str(e))
        except jwt.InvalidTokenError as e:
            return TokenVerification(TokenOutcome.INVALID, reason=str(e))
        except jwt.PyJWTError as e:
            return TokenVerification(TokenOutcome.ERROR, reason=str(e))

        if payload.get("type") != expected_type:
            return TokenVerification(TokenOutcome.INVALID, reason="Invalid token type")

        identity = None
        if expected_type == ACCESS_TOKEN_TYPE:
            try:
                identity = _identity_from_payload(payload)
            except (KeyError, TypeError, ValueError) as e:
                return TokenVerification(TokenOutcome.INVALID, reason=f"Invalid token payload: {e}")
        else:
            try:
                int(payload["sub"])
            except (TypeError, ValueError):
                return TokenVerification(TokenOutcome.INVALID, reason="Invalid token payload")
        return TokenVerification(TokenOutcome.VALID, claims=payload, identity=identity)
