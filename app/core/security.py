import bcrypt

from app.core.errors import InputError

# bcrypt hard-limit: 72 bytes
BCRYPT_MAX_BYTES = 72


def ensure_password_length(password: str) -> None:
    if len(password.encode("utf-8")) > BCRYPT_MAX_BYTES:
        raise InputError("Password too long (bcrypt limit is 72 bytes)")


def hash_password(password: str) -> str:
    ensure_password_length(password)
    return bcrypt.hashpw(password.encode("utf-8"), bcrypt.gensalt()).decode("utf-8")


def verify_password(password: str, password_hash: str) -> bool:
    if len(password.encode("utf-8")) > BCRYPT_MAX_BYTES:
        return False
    try:
        return bcrypt.checkpw(password.encode("utf-8"), password_hash.encode("utf-8"))
    except ValueError:
        # hash absent ou malformé
        return False
