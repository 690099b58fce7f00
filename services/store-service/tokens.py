"""Bearer token issuing and verification (HS256 JWT)."""
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Optional

import jwt

from exceptions import (
    MalformedTokenError,
    SignatureInvalidError,
    TokenError,
    TokenExpiredError,
)

TOKEN_ALGORITHM = "HS256"
DEFAULT_TOKEN_TTL = timedelta(hours=24)


@dataclass(frozen=True)
class TokenClaims:
    """Identity claims carried by a verified token."""

    subject_id: int
    username: str
    expires_at: datetime


def issue_token(
    subject_id: int,
    username: str,
    secret: str,
    ttl: timedelta = DEFAULT_TOKEN_TTL,
    now: Optional[datetime] = None,
    audience: Optional[str] = None,
) -> str:
    """
    Issue a signed token for an account.

    Args:
        subject_id: Account id the token is scoped to
        username: Account username at issuance
        secret: HS256 signing secret
        ttl: Token lifetime
        now: Issuance time, defaults to the current UTC time
        audience: Account kind the token is valid for, set as the "aud" claim

    Returns:
        Encoded JWT
    """
    if not secret:
        raise TokenError("Signing secret is not configured")

    issued_at = now or datetime.now(timezone.utc)
    payload = {
        "sub": str(subject_id),
        "username": username,
        "iat": issued_at,
        "exp": issued_at + ttl,
    }
    if audience:
        payload["aud"] = audience
    return jwt.encode(payload, secret, algorithm=TOKEN_ALGORITHM)


def verify_token(token: str, secret: str, audience: Optional[str] = None) -> TokenClaims:
    """
    Verify a token and decode its claims.

    Only HS256 is accepted, so tokens re-labelled with another algorithm
    (including "none") fail signature verification.

    Raises:
        SignatureInvalidError: Empty secret, wrong algorithm or bad signature
        TokenExpiredError: Token is past its expiry
        MalformedTokenError: Token cannot be decoded or lacks required claims
        TokenError: Token was issued for a different audience
    """
    if not secret:
        raise SignatureInvalidError("Signing secret is not configured")

    try:
        payload = jwt.decode(
            token,
            secret,
            algorithms=[TOKEN_ALGORITHM],
            audience=audience,
            options={"require": ["sub", "username", "exp"]},
        )
    except jwt.ExpiredSignatureError as e:
        raise TokenExpiredError("Token has expired") from e
    except (jwt.InvalidSignatureError, jwt.InvalidAlgorithmError) as e:
        raise SignatureInvalidError(str(e)) from e
    except jwt.InvalidAudienceError as e:
        raise TokenError("Token was not issued for this account kind") from e
    except jwt.InvalidTokenError as e:
        raise MalformedTokenError(str(e)) from e

    try:
        subject_id = int(payload["sub"])
    except (TypeError, ValueError) as e:
        raise MalformedTokenError("Token subject is not an account id") from e

    username = payload["username"]
    if not isinstance(username, str):
        raise MalformedTokenError("Token username claim is not a string")

    return TokenClaims(
        subject_id=subject_id,
        username=username,
        expires_at=datetime.fromtimestamp(payload["exp"], tz=timezone.utc),
    )
