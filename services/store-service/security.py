"""Password hashing with Argon2id."""
import logging

from argon2 import PasswordHasher
from argon2.exceptions import HashingError as Argon2HashingError
from argon2.exceptions import InvalidHashError, VerificationError, VerifyMismatchError

from exceptions import HashingError, ValidationError

logger = logging.getLogger(__name__)

# argon2-cffi defaults: Argon2id, RFC 9106 low-memory profile
password_hasher = PasswordHasher()


def hash_password(plaintext: str) -> str:
    """
    Hash a plaintext password.

    Args:
        plaintext: Password as submitted by the client

    Returns:
        Encoded Argon2id hash including salt and cost parameters

    Raises:
        ValidationError: If the password is empty
        HashingError: If the hashing backend fails
    """
    if not plaintext:
        raise ValidationError("Password must not be empty")

    try:
        return password_hasher.hash(plaintext)
    except Argon2HashingError as e:
        logger.error("Password hashing failed", extra={"error": str(e)})
        raise HashingError("Password hashing failed") from e


def verify_password(stored_hash: str, plaintext: str) -> bool:
    """
    Check a plaintext password against a stored hash.

    Returns:
        True if the password matches, False otherwise

    Raises:
        HashingError: If the stored hash is unreadable or verification errors out
    """
    if not plaintext:
        return False

    try:
        return password_hasher.verify(stored_hash, plaintext)
    except VerifyMismatchError:
        return False
    except (InvalidHashError, VerificationError) as e:
        logger.error("Password verification failed", extra={"error": str(e)})
        raise HashingError("Password verification failed") from e
