"""Authentication utilities."""
import logging
from typing import Optional

from fastapi import Depends, Header, Request
from sqlalchemy.orm import Session

from database import get_db
from exceptions import AuthError, TokenError, ValidationError
from models import AccountKind
from monitoring import auth_attempts_counter, auth_failures_counter
from schemas import MAX_ID
from services.account_service import Account, AccountService
from tokens import verify_token

logger = logging.getLogger(__name__)

SUBJECT_PATH_PARAM = "account_id"


def extract_bearer_token(authorization: Optional[str]) -> Optional[str]:
    """Return the token from a ``Bearer <token>`` header value, or None."""
    if not authorization:
        return None

    parts = authorization.split()
    if len(parts) != 2 or parts[0].lower() != "bearer":
        return None
    return parts[1]


def parse_subject_id(raw: Optional[str]) -> int:
    """Parse the account id path parameter."""
    try:
        subject_id = int(raw)
    except (TypeError, ValueError):
        raise ValidationError(f'Invalid id: "{raw}"')
    if not 1 <= subject_id <= MAX_ID:
        raise ValidationError(f'Invalid id: "{raw}"')
    return subject_id


class AccountAuth:
    """
    Dependency guarding account-scoped routes.

    Runs, in order: bearer extraction, token verification, path subject
    match, account lookup and username corroboration. Any failure is a 401
    with a generic message, except a non-numeric path id which is a 400.
    The authorized account is returned to the handler.
    """

    def __init__(self, kind: AccountKind):
        self.kind = kind
        self.account_service = AccountService()

    def __call__(
        self,
        request: Request,
        authorization: Optional[str] = Header(None),
        db: Session = Depends(get_db)
    ) -> Account:
        auth_attempts_counter.add(1, {"type": "bearer_token", "account_kind": self.kind.value})

        token = extract_bearer_token(authorization)
        if token is None:
            self._reject("missing_or_malformed_header")

        try:
            claims = verify_token(
                token,
                request.app.state.settings.jwt_secret,
                audience=self.kind.value
            )
        except TokenError as e:
            self._reject(type(e).__name__, error=str(e))

        subject_id = parse_subject_id(request.path_params.get(SUBJECT_PATH_PARAM))
        if claims.subject_id != subject_id:
            self._reject("subject_mismatch", subject_id=subject_id, claim_subject_id=claims.subject_id)

        account = self.account_service.find_account(db, self.kind, subject_id)
        if account is None:
            self._reject("account_not_found", subject_id=subject_id)

        if account.username != claims.username:
            self._reject("username_mismatch", subject_id=subject_id)

        logger.debug("Authentication successful", extra={
            "account_kind": self.kind.value,
            "account_id": account.id
        })
        return account

    def _reject(self, reason: str, **context) -> None:
        auth_failures_counter.add(1, {"reason": reason, "account_kind": self.kind.value})
        logger.warning("Authentication failed", extra={
            "reason": reason,
            "account_kind": self.kind.value,
            **context
        })
        raise AuthError()


require_admin = AccountAuth(AccountKind.ADMIN)
require_user = AccountAuth(AccountKind.USER)
