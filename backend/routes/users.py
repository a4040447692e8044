import logging
from datetime import datetime, timezone
from typing import Any

from fastapi import APIRouter, Body, Depends, status
from pymongo.errors import DuplicateKeyError

from database import get_db
from models.token import Claims
from models.user import Role, StoreStatus, UserCreate
from utils.crypto import protect_store_info
from utils.errors import BadRequest
from utils.hash import hash_password
from utils.scopes import (
    UserScope,
    list_scoped_users,
    find_scoped_user,
    update_scoped_user,
    delete_scoped_user,
)
from utils.security import get_active_claims, get_current_claims, require_role
from utils.serializers import serialize_user

logger = logging.getLogger(__name__)


def build_user_document(scope: UserScope, data: UserCreate) -> dict:
    sells = Role.SELLER.value in scope.roles

    user = {
        "username": data.username,
        "email": data.email,
        "password": hash_password(data.password),
        "roles": list(scope.roles),
        "suspended": False,
        "created_at": datetime.now(timezone.utc),
    }

    if sells:
        user["store_status"] = StoreStatus.PENDING.value
        if data.store_info:
            user["store_info"] = data.store_info.model_dump()

    return protect_store_info(user)


def build_user_router(scope: UserScope) -> APIRouter:
    """CRUD routes for one user scope, all sharing the same guard-then-filter flow."""
    router = APIRouter(prefix=f"/{scope.name}", tags=[scope.label])

    @router.get("")
    async def list_users(
        admin: Claims = Depends(require_role(Role.ADMIN)),
        db=Depends(get_db),
    ):
        users = await list_scoped_users(db, scope)
        return {
            "message": f"{scope.label}s fetched successfully",
            "data": [serialize_user(u) for u in users],
        }

    @router.post("", status_code=status.HTTP_201_CREATED)
    async def register_user(data: UserCreate, db=Depends(get_db)):
        try:
            result = await db.users.insert_one(build_user_document(scope, data))
        except DuplicateKeyError:
            raise BadRequest("Email already registered")

        logger.info("%s registered: %s", scope.label, result.inserted_id)
        return {
            "message": f"{scope.label} created successfully",
            "id": str(result.inserted_id),
        }

    @router.get("/{user_id}")
    async def get_user(
        user_id: str,
        claims: Claims = Depends(get_current_claims),
        db=Depends(get_db),
    ):
        user = await find_scoped_user(db, scope, user_id, claims)
        return {"data": serialize_user(user)}

    @router.patch("/{user_id}")
    async def update_user(
        user_id: str,
        updates: dict[str, Any] = Body(...),
        claims: Claims = Depends(get_active_claims),
        db=Depends(get_db),
    ):
        await update_scoped_user(db, scope, user_id, updates, claims)
        return {"message": f"{scope.label} updated successfully"}

    @router.delete("/{user_id}")
    async def delete_user(
        user_id: str,
        claims: Claims = Depends(get_active_claims),
        db=Depends(get_db),
    ):
        await delete_scoped_user(db, scope, user_id, claims)
        return {"message": f"{scope.label} deleted successfully"}

    return router
