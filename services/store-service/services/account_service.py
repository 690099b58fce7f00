"""Account management service."""
import logging
from datetime import timedelta
from typing import List, Optional, Union

from opentelemetry import trace
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from exceptions import (
    AccountNotFoundError,
    ConfigurationError,
    DuplicateUsernameError,
    InvalidCredentialsError,
    TokenError,
    ValidationError,
)
from models import ACCOUNT_MODELS, AccountKind, AdminAccount, UserAccount
from monitoring import auth_attempts_counter, auth_failures_counter
from security import hash_password, verify_password
from tokens import DEFAULT_TOKEN_TTL, issue_token

logger = logging.getLogger(__name__)

Account = Union[AdminAccount, UserAccount]


class AccountService:
    """Service for admin and user accounts."""

    def __init__(self):
        self.tracer = trace.get_tracer(__name__)

    def find_account(self, db: Session, kind: AccountKind, account_id: int) -> Optional[Account]:
        model = ACCOUNT_MODELS[kind]
        with self.tracer.start_as_current_span("db.query.get_account") as db_span:
            db_span.set_attribute("db.operation", "SELECT")
            db_span.set_attribute("db.table", model.__tablename__)
            db_span.set_attribute("account.id", account_id)

            account = db.get(model, account_id)

            db_span.set_attribute("db.rows_returned", 0 if account is None else 1)
            return account

    def get_account(self, db: Session, kind: AccountKind, account_id: int) -> Account:
        account = self.find_account(db, kind, account_id)
        if account is None:
            raise AccountNotFoundError(account_id)
        return account

    def list_accounts(self, db: Session, kind: AccountKind) -> List[Account]:
        model = ACCOUNT_MODELS[kind]
        return db.query(model).order_by(model.id).all()

    def create_account(
        self,
        db: Session,
        kind: AccountKind,
        username: str,
        password: str
    ) -> Account:
        """
        Create an account with a hashed password.

        Args:
            db: Database session
            kind: Admin or user
            username: Unique username
            password: Plaintext password, hashed before storage

        Returns:
            The persisted account

        Raises:
            ValidationError: If username or password is empty
            DuplicateUsernameError: If the username is taken
            HashingError: If password hashing fails
        """
        username = self._clean_username(username)
        self._ensure_username_free(db, kind, username)

        model = ACCOUNT_MODELS[kind]
        account = model(username=username, hashed_password=hash_password(password))

        with self.tracer.start_as_current_span("db.query.insert_account") as db_span:
            db_span.set_attribute("db.operation", "INSERT")
            db_span.set_attribute("db.table", model.__tablename__)

            db.add(account)
            self._commit_username_change(db, username)

            db_span.set_attribute("account.id", account.id)

        logger.info("Account created", extra={
            "account_kind": kind.value,
            "account_id": account.id,
            "username": username
        })
        return account

    def signup(self, db: Session, username: str, password: str) -> UserAccount:
        return self.create_account(db, AccountKind.USER, username, password)

    def login(
        self,
        db: Session,
        kind: AccountKind,
        username: str,
        password: str,
        secret: str,
        ttl: timedelta = DEFAULT_TOKEN_TTL
    ) -> str:
        """
        Authenticate credentials and issue a bearer token.

        The issued token is cached on the account row.

        Raises:
            InvalidCredentialsError: If the username is unknown or the password is wrong
            HashingError: If the stored hash cannot be verified
            ConfigurationError: If no signing secret is configured
        """
        auth_attempts_counter.add(1, {"type": "login", "account_kind": kind.value})
        username = self._clean_username(username)

        model = ACCOUNT_MODELS[kind]
        account = db.query(model).filter(model.username == username).first()
        if account is None:
            auth_failures_counter.add(1, {"reason": "invalid_username", "account_kind": kind.value})
            logger.warning("Login failed: Invalid username", extra={
                "account_kind": kind.value,
                "username": username
            })
            raise InvalidCredentialsError()

        if not verify_password(account.hashed_password, password):
            auth_failures_counter.add(1, {"reason": "invalid_password", "account_kind": kind.value})
            logger.warning("Login failed: Invalid password", extra={
                "account_kind": kind.value,
                "username": username
            })
            raise InvalidCredentialsError()

        try:
            token = issue_token(account.id, account.username, secret, ttl, audience=kind.value)
        except TokenError as e:
            logger.error("Token issuing failed", extra={
                "account_kind": kind.value,
                "error": str(e)
            })
            raise ConfigurationError("Authentication is not configured") from e

        account.auth_token = token
        db.commit()

        logger.info("Account logged in", extra={
            "account_kind": kind.value,
            "account_id": account.id,
            "username": username
        })
        return token

    def update_username(
        self,
        db: Session,
        kind: AccountKind,
        account_id: int,
        username: str
    ) -> Account:
        """Rename an account. Tokens issued under the old name stop authorizing."""
        username = self._clean_username(username)
        account = self.get_account(db, kind, account_id)
        if account.username == username:
            return account

        self._ensure_username_free(db, kind, username)
        account.username = username
        self._commit_username_change(db, username)

        logger.info("Account username updated", extra={
            "account_kind": kind.value,
            "account_id": account_id,
            "username": username
        })
        return account

    def delete_account(self, db: Session, kind: AccountKind, account_id: int) -> None:
        """Delete an account. A user's cart goes with it; orders are kept."""
        account = self.get_account(db, kind, account_id)

        with self.tracer.start_as_current_span("db.transaction.delete_account") as db_span:
            db_span.set_attribute("db.operation", "DELETE")
            db_span.set_attribute("db.table", ACCOUNT_MODELS[kind].__tablename__)
            db_span.set_attribute("account.id", account_id)

            try:
                db.delete(account)
                db.commit()
            except Exception:
                db.rollback()
                raise

        logger.info("Account deleted", extra={
            "account_kind": kind.value,
            "account_id": account_id
        })

    def ensure_root_admin(self, db: Session, username: str, password: str) -> AdminAccount:
        """Create the bootstrap admin unless an admin with that username exists."""
        existing = db.query(AdminAccount).filter(AdminAccount.username == username).first()
        if existing is not None:
            return existing

        admin = self.create_account(db, AccountKind.ADMIN, username, password)
        logger.info("Seeded bootstrap admin account", extra={"account_id": admin.id})
        return admin

    @staticmethod
    def _clean_username(username: str) -> str:
        username = (username or "").strip()
        if not username:
            raise ValidationError("Username must not be empty")
        return username

    @staticmethod
    def _ensure_username_free(db: Session, kind: AccountKind, username: str) -> None:
        model = ACCOUNT_MODELS[kind]
        if db.query(model.id).filter(model.username == username).first() is not None:
            raise DuplicateUsernameError(username)

    @staticmethod
    def _commit_username_change(db: Session, username: str) -> None:
        # The unique index catches a concurrent insert of the same name
        try:
            db.commit()
        except IntegrityError as e:
            db.rollback()
            raise DuplicateUsernameError(username) from e
