from passlib.context import CryptContext

from utils.errors import BadRequest

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")

# bcrypt silently truncates past this, so longer passwords are refused outright
MAX_BCRYPT_BYTES = 72


def hash_password(password: str) -> str:
    if len(password.encode("utf-8")) > MAX_BCRYPT_BYTES:
        raise BadRequest(f"Password too long (max {MAX_BCRYPT_BYTES} bytes)")
    return pwd_context.hash(password)


def verify_password(plain_password: str, hashed_password: str | None) -> bool:
    """
    Check a login attempt against a stored hash.

    Records created without a password, or holding a hash passlib cannot
    identify, simply fail verification.
    """
    if not hashed_password:
        return False
    if len(plain_password.encode("utf-8")) > MAX_BCRYPT_BYTES:
        return False
    try:
        return pwd_context.verify(plain_password, hashed_password)
    except ValueError:
        return False
