"""Password hashing for driver accounts."""

import bcrypt

from foodhub.core.config import get_settings


def hash_password(password: str) -> str:
    salt = bcrypt.gensalt(rounds=get_settings().bcrypt_rounds)
    return bcrypt.hashpw(password.encode("utf-8"), salt).decode("utf-8")


def verify_password(password: str, stored_hash: str) -> bool:
    if not stored_hash or not stored_hash.startswith("$2"):
        return False
    return bcrypt.checkpw(password.encode("utf-8"), stored_hash.encode("utf-8"))
