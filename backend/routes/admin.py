from fastapi import APIRouter, Depends

from database import get_db
from models.token import Claims
from models.user import Role
from utils.errors import NotFound
from utils.scopes import ANY_USER, set_suspended
from utils.security import require_role
from utils.serializers import serialize_user


router = APIRouter(prefix="/users", tags=["Admin"])


# =====================================================
# USER LOOKUP
# =====================================================

@router.get("/{user_id}")
async def get_user_by_id(
    user_id: str,
    admin: Claims = Depends(require_role(Role.ADMIN)),
    db=Depends(get_db),
):
    user = await db.users.find_one(ANY_USER.by_id(user_id))
    if not user:
        raise NotFound("User not found")

    return {"status": "success", "data": serialize_user(user)}


# =====================================================
# ACCOUNT SUSPENSION (ANY ROLE)
# =====================================================

@router.post("/{user_id}/suspend")
async def suspend_user(
    user_id: str,
    admin: Claims = Depends(require_role(Role.ADMIN)),
    db=Depends(get_db),
):
    await set_suspended(db, ANY_USER, user_id, True)
    return {"message": "User account suspended successfully"}


@router.post("/{user_id}/unsuspend")
async def unsuspend_user(
    user_id: str,
    admin: Claims = Depends(require_role(Role.ADMIN)),
    db=Depends(get_db),
):
    await set_suspended(db, ANY_USER, user_id, False)
    return {"message": "User account unsuspended successfully"}
