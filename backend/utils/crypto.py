import base64
import hashlib

from cryptography.fernet import Fernet, InvalidToken

from config.env import STORE_DATA_ENCRYPTION_KEY, JWT_SECRET
from utils.errors import InternalError


def _build_fernet() -> Fernet:
    seed = (STORE_DATA_ENCRYPTION_KEY or JWT_SECRET or "").strip()
    if not seed:
        raise InternalError("Store data encryption key is not configured")
    key = base64.urlsafe_b64encode(hashlib.sha256(seed.encode("utf-8")).digest())
    return Fernet(key)


def encrypt_sensitive_value(value: str) -> str:
    if not value:
        return value
    token = _build_fernet().encrypt(value.encode("utf-8"))
    return token.decode("utf-8")


def decrypt_sensitive_value(token: str) -> str:
    if not token:
        return token
    try:
        raw = _build_fernet().decrypt(token.encode("utf-8"))
    except InvalidToken:
        raise InternalError("Stored sensitive value could not be decrypted")
    return raw.decode("utf-8")


def protect_store_info(updates: dict) -> dict:
    """Encrypt any national ID present in a user patch or new record."""
    updates = dict(updates)

    if isinstance(updates.get("store_info"), dict):
        store_info = dict(updates["store_info"])
        if store_info.get("nik"):
            store_info["nik"] = encrypt_sensitive_value(store_info["nik"])
        updates["store_info"] = store_info

    if updates.get("store_info.nik"):
        updates["store_info.nik"] = encrypt_sensitive_value(updates["store_info.nik"])

    return updates
