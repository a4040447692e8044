import hashlib
import secrets
from datetime import datetime, timedelta, timezone

from config.constants import RESET_TOKEN_LENGTH
from config.env import RESET_TOKEN_MINUTES

# ===============================
# GENERATE NUMERIC RESET CODE
# ===============================
def generate_reset_token(length: int = RESET_TOKEN_LENGTH) -> str:
    return "".join(secrets.choice("0123456789") for _ in range(length))


# ===============================
# RESET CODE EXPIRY
# ===============================
def reset_token_expiry(now: datetime | None = None) -> datetime:
    now = now or datetime.now(timezone.utc)
    return now + timedelta(minutes=RESET_TOKEN_MINUTES)


def is_reset_token_expired(expiry: datetime | None, now: datetime | None = None) -> bool:
    if expiry is None:
        return True
    # motor hands back naive UTC datetimes unless tz_aware is set
    if expiry.tzinfo is None:
        expiry = expiry.replace(tzinfo=timezone.utc)
    now = now or datetime.now(timezone.utc)
    return now >= expiry


# ===============================
# HASH RESET CODE
# ===============================
def hash_reset_token(token: str) -> str:
    return hashlib.sha256(token.encode()).hexdigest()
