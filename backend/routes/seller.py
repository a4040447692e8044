import logging

from fastapi import Depends

from database import get_db
from models.token import Claims
from models.user import Role, StoreStatusUpdate
from routes.users import build_user_router
from utils.errors import NotFound
from utils.scopes import SELLERS, set_suspended
from utils.security import require_role

logger = logging.getLogger(__name__)

router = build_user_router(SELLERS)


# ======================================================
# SUSPENSION
# ======================================================

@router.post("/{user_id}/suspend")
async def suspend_seller(
    user_id: str,
    admin: Claims = Depends(require_role(Role.ADMIN)),
    db=Depends(get_db),
):
    await set_suspended(db, SELLERS, user_id, True)
    return {"message": "Seller suspended successfully"}


@router.post("/{user_id}/unsuspend")
async def unsuspend_seller(
    user_id: str,
    admin: Claims = Depends(require_role(Role.ADMIN)),
    db=Depends(get_db),
):
    await set_suspended(db, SELLERS, user_id, False)
    return {"message": "Seller unsuspended successfully"}


# ======================================================
# STORE REVIEW
# ======================================================

@router.patch("/{user_id}/store-status")
async def update_store_status(
    user_id: str,
    data: StoreStatusUpdate,
    admin: Claims = Depends(require_role(Role.ADMIN)),
    db=Depends(get_db),
):
    result = await db.users.update_one(
        SELLERS.by_id(user_id),
        {"$set": {"store_status": data.status.value}},
    )
    if result.matched_count == 0:
        raise NotFound("Seller not found")

    logger.info("Seller %s store_status=%s by %s", user_id, data.status.value, admin.user_id)
    return {"message": f"Store status set to {data.status.value}"}
