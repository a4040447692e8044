import logging

from fastapi import APIRouter, Depends

from config.constants import RESET_ATTEMPT_LIMIT, RESET_RATE_WINDOW_SECONDS, RESET_REQUEST_LIMIT
from database import get_db
from models.user import (
    Role,
    LoginRequest,
    ProfileUpdate,
    ForgotPasswordRequest,
    VerifyOtpRequest,
    ResetPasswordRequest,
)
from utils.errors import BadRequest, Forbidden, InternalError, NotFound, Unauthenticated
from utils.hash import hash_password, verify_password
from utils.jwt import TokenCodec
from utils.mailer import send_password_reset_email, EmailDeliveryError
from utils.otp import (
    generate_reset_token,
    hash_reset_token,
    reset_token_expiry,
    is_reset_token_expired,
)
from utils.rate_limit import rate_limit
from utils.security import get_current_user, get_token_codec
from utils.serializers import serialize_user

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["Auth"])


# ======================
# Helpers
# ======================

async def _find_by_reset_token(db, email: str, reset_token: str) -> dict:
    await rate_limit(
        db=db,
        key=f"reset_attempt:{email.lower()}",
        max_requests=RESET_ATTEMPT_LIMIT,
        window_seconds=RESET_RATE_WINDOW_SECONDS,
    )

    user = await db.users.find_one({
        "email": email,
        "reset_token_hash": hash_reset_token(reset_token),
    })
    if not user:
        logger.info("Invalid reset code for %s", email)
        raise Unauthenticated("Invalid or expired reset token")

    if is_reset_token_expired(user.get("reset_token_expiry")):
        logger.info("Expired reset code for %s", email)
        raise Unauthenticated("Reset token expired")

    return user


# ======================
# Login
# ======================

@router.post("/login")
async def login(
    data: LoginRequest,
    db=Depends(get_db),
    codec: TokenCodec = Depends(get_token_codec),
):
    user = await db.users.find_one({"email": data.email})
    if not user or not verify_password(data.password, user.get("password")):
        raise Unauthenticated("Invalid email or password")

    if user.get("suspended"):
        raise Forbidden("Account suspended")

    try:
        role = Role.from_roles(user.get("roles"))
    except ValueError:
        raise Forbidden("Account has no assigned role")

    user_id = str(user["_id"])
    token = codec.issue(user_id, role, user_id if role.can_sell else None)

    return {
        "access_token": token,
        "token_type": "bearer",
        "role": role.value,
    }


# ======================
# Current User
# ======================

@router.get("/me")
async def me(user=Depends(get_current_user)):
    return {
        "message": "User profile fetched successfully",
        "data": serialize_user(user),
    }


@router.patch("/me")
async def edit_profile(
    data: ProfileUpdate,
    user=Depends(get_current_user),
    db=Depends(get_db),
):
    username = data.username.strip()
    if not username:
        raise BadRequest("Username cannot be empty")

    await db.users.update_one(
        {"_id": user["_id"]},
        {"$set": {"username": username}},
    )

    return {"message": "Profile updated successfully"}


# ======================
# Password Reset
# ======================

@router.post("/forgot-password")
async def forgot_password(data: ForgotPasswordRequest, db=Depends(get_db)):
    await rate_limit(
        db=db,
        key=f"reset_request:{data.email.lower()}",
        max_requests=RESET_REQUEST_LIMIT,
        window_seconds=RESET_RATE_WINDOW_SECONDS,
    )

    user = await db.users.find_one({"email": data.email})
    if not user:
        raise NotFound("Email not found")

    reset_token = generate_reset_token()

    await db.users.update_one(
        {"_id": user["_id"]},
        {"$set": {
            "reset_token_hash": hash_reset_token(reset_token),
            "reset_token_expiry": reset_token_expiry(),
        }},
    )

    try:
        await send_password_reset_email(data.email, reset_token)
    except EmailDeliveryError:
        logger.exception("Password reset email failed for %s", data.email)
        raise InternalError("Failed to send email")

    return {"message": "Password reset email sent successfully"}


@router.post("/verify-otp")
async def verify_otp(data: VerifyOtpRequest, db=Depends(get_db)):
    await _find_by_reset_token(db, data.email, data.reset_token)
    return {"message": "OTP verified successfully"}


@router.post("/reset-password")
async def reset_password(data: ResetPasswordRequest, db=Depends(get_db)):
    user = await _find_by_reset_token(db, data.email, data.reset_token)

    await db.users.update_one(
        {"_id": user["_id"]},
        {
            "$set": {"password": hash_password(data.new_password)},
            "$unset": {"reset_token_hash": "", "reset_token_expiry": ""},
        },
    )

    logger.info("Password reset for %s", data.email)
    return {"message": "Password reset successfully"}
