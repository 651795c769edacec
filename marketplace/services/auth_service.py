from __future__ import annotations

import logging

from argon2 import PasswordHasher
from argon2.exceptions import InvalidHash, VerificationError, VerifyMismatchError

from marketplace.models.user import User
from marketplace.repos.user_repo import UserRepo

logger = logging.getLogger(__name__)

# Argon2 hash strings encode parameters + salt
_ph = PasswordHasher()


class UnknownUserError(LookupError):
    pass


class InvalidCredentialsError(Exception):
    pass


def normalize_email(email: str) -> str:
    return email.strip().lower()


def hash_password(plain_password: str) -> str:
    if not plain_password:
        raise ValueError("password must be non-empty")
    return _ph.hash(plain_password)


def verify_password(plain_password: str, password_hash: str | None) -> bool:
    if not plain_password or not password_hash:
        return False
    try:
        return _ph.verify(password_hash, plain_password)
    except (VerifyMismatchError, VerificationError, InvalidHash):
        return False


async def authenticate_user(repo: UserRepo, email: str, password: str) -> User:
    """Return the user for valid local credentials.

    Raises UnknownUserError when no account has this email and
    InvalidCredentialsError for a wrong password or a banned account.
    """
    user = await repo.get_by_email(normalize_email(email))
    if user is None:
        raise UnknownUserError(email)
    if not user.is_active:
        logger.warning("Sign-in rejected for inactive user=%s", user.id)
        raise InvalidCredentialsError(email)
    if not verify_password(password, user.password_hash):
        raise InvalidCredentialsError(email)

    if user.password_hash is not None and _ph.check_needs_rehash(user.password_hash):
        await repo.update_password_hash(user.id, _ph.hash(password))
        logger.info("Rehashed password for user=%s", user.id)

    return user
