"""Domain exceptions and their HTTP status mapping."""


class StoreError(Exception):
    """Base class for errors surfaced to API callers."""

    status_code = 400

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(StoreError):
    """Malformed request body, path parameter or field value."""


class AuthError(StoreError):
    """Authentication or authorization failure."""

    status_code = 401

    def __init__(self, message: str = "Unauthorized"):
        super().__init__(message)


class InvalidCredentialsError(AuthError):
    """Unknown username or wrong password at login."""

    def __init__(self):
        super().__init__("Invalid username or password")


class EmptyCartError(ValidationError):
    def __init__(self, user_id):
        super().__init__(f"Cart for account {user_id} is empty")


class NotFoundError(StoreError):
    """Referenced record does not exist."""


class AccountNotFoundError(NotFoundError):
    def __init__(self, account_id):
        super().__init__(f"Account {account_id} not found")


class ItemNotFoundError(NotFoundError):
    def __init__(self, item_id):
        super().__init__(f"Item {item_id} not found")


class OrderNotFoundError(NotFoundError):
    def __init__(self, order_id):
        super().__init__(f"Order {order_id} not found")


class DuplicateUsernameError(StoreError):
    def __init__(self, username: str):
        super().__init__(f"Username {username} already exists")


class StorageError(StoreError):
    """Constraint violation or backend failure."""


class CheckoutConflictError(StorageError):
    """Cart changed underneath a checkout; nothing was written."""

    def __init__(self, user_id):
        super().__init__(f"Cart for account {user_id} changed during checkout, try again")


class HashingError(StoreError):
    """Password hashing backend failed. Never downgraded to plaintext."""

    status_code = 500


class ConfigurationError(StoreError):
    """Server is missing required configuration, such as the signing secret."""

    status_code = 500


class TokenError(Exception):
    """Base class for token verification failures."""


class MalformedTokenError(TokenError):
    pass


class SignatureInvalidError(TokenError):
    pass


class TokenExpiredError(TokenError):
    pass
