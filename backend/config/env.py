import os
from dataclasses import dataclass
from datetime import timedelta

from dotenv import load_dotenv

load_dotenv()

# =====================================================
# ENV
# =====================================================
ENV = os.getenv("ENV", "development")
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")

# =====================================================
# DATABASE
# =====================================================
MONGO_URI = os.getenv("MONGO_URI") or os.getenv("MONGODB_URI")

# =====================================================
# JWT
# =====================================================
JWT_SECRET = os.getenv("JWT_SECRET")
JWT_ALGORITHM = os.getenv("JWT_ALGORITHM", "HS256")
ACCESS_TOKEN_HOURS = int(os.getenv("ACCESS_TOKEN_HOURS", 24))

HMAC_ALGORITHMS = ("HS256", "HS384", "HS512")

# =====================================================
# PASSWORD RESET
# =====================================================
RESET_TOKEN_MINUTES = int(os.getenv("RESET_TOKEN_MINUTES", 10))

# =====================================================
# CORS
# =====================================================
CORS_ALLOWED_ORIGINS = os.getenv("CORS_ALLOWED_ORIGINS", "").split(",")

# --------------------------------------------------
# CLOUDINARY
# --------------------------------------------------

CLOUDINARY_CLOUD_NAME = os.getenv("CLOUDINARY_CLOUD_NAME")
CLOUDINARY_API_KEY = os.getenv("CLOUDINARY_API_KEY")
CLOUDINARY_API_SECRET = os.getenv("CLOUDINARY_API_SECRET")

# --------------------------------------------------
# EMAIL
# --------------------------------------------------
RESEND_API_KEY = os.getenv("RESEND_API_KEY")
MAIL_SENDER = os.getenv("MAIL_SENDER", "Shop <no-reply@example.com>")

# --------------------------------------------------
# DATA ENCRYPTION
# --------------------------------------------------
STORE_DATA_ENCRYPTION_KEY = os.getenv("STORE_DATA_ENCRYPTION_KEY")


@dataclass(frozen=True)
class TokenSettings:
    secret: str
    algorithm: str = "HS256"
    ttl: timedelta = timedelta(hours=24)


def load_token_settings() -> TokenSettings:
    secret = (JWT_SECRET or "").strip()
    if not secret:
        raise RuntimeError("JWT_SECRET is not configured")

    if JWT_ALGORITHM not in HMAC_ALGORITHMS:
        raise RuntimeError(f"JWT_ALGORITHM must be one of {', '.join(HMAC_ALGORITHMS)}")

    return TokenSettings(
        secret=secret,
        algorithm=JWT_ALGORITHM,
        ttl=timedelta(hours=ACCESS_TOKEN_HOURS),
    )


def validate_production_env() -> None:
    if (ENV or "").lower() != "production":
        return

    required = {
        "JWT_SECRET": JWT_SECRET,
        "MONGODB_URI": MONGO_URI,
        "RESEND_API_KEY": RESEND_API_KEY,
        "CLOUDINARY_CLOUD_NAME": CLOUDINARY_CLOUD_NAME,
        "CLOUDINARY_API_KEY": CLOUDINARY_API_KEY,
        "CLOUDINARY_API_SECRET": CLOUDINARY_API_SECRET,
        "STORE_DATA_ENCRYPTION_KEY": STORE_DATA_ENCRYPTION_KEY,
    }

    invalid = []
    for key, value in required.items():
        val = (value or "").strip()
        if not val or val.startswith("CHANGE_THIS"):
            invalid.append(key)

    if invalid:
        raise RuntimeError(f"Production env misconfigured. Invalid keys: {', '.join(sorted(invalid))}")
