import logging
from dataclasses import dataclass, field

from pymongo.errors import DuplicateKeyError

from models.token import Claims
from models.user import Role
from utils.errors import BadRequest, NotFound
from utils.guards import parse_object_id, assert_allowed_updates
from utils.crypto import protect_store_info
from utils.security import ensure_self_or_admin

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class UserScope:
    """
    A slice of the users collection selected by role membership.

    Every read or write made on behalf of a scope goes through `by_id`, so
    an operation on one scope can never match a record from another.
    """

    name: str
    label: str
    roles: tuple
    role_filter: dict = field(default_factory=dict)
    list_filter: dict | None = None

    def by_id(self, user_id) -> dict:
        return {"_id": parse_object_id(user_id, f"{self.label.lower()} ID"), **self.role_filter}

    def listing(self) -> dict:
        return self.list_filter if self.list_filter is not None else dict(self.role_filter)


CUSTOMERS = UserScope(
    name="customers",
    label="Customer",
    roles=(Role.CUSTOMER.value,),
    role_filter={"roles": Role.CUSTOMER.value},
)

SELLERS = UserScope(
    name="sellers",
    label="Seller",
    roles=(Role.SELLER.value,),
    role_filter={"roles": Role.SELLER.value},
    # rejected applicants stay visible to admins
    list_filter={"$or": [{"roles": Role.SELLER.value}, {"store_status": "rejected"}]},
)

CUSTOMER_SELLERS = UserScope(
    name="customer-sellers",
    label="Customer-seller",
    roles=(Role.CUSTOMER.value, Role.SELLER.value),
    role_filter={"roles": {"$all": [Role.CUSTOMER.value, Role.SELLER.value]}},
)

ANY_USER = UserScope(
    name="users",
    label="User",
    roles=(),
)


async def list_scoped_users(db, scope: UserScope) -> list[dict]:
    users = []
    async for user in db.users.find(scope.listing()):
        users.append(user)
    return users


async def find_scoped_user(db, scope: UserScope, user_id, claims: Claims) -> dict:
    ensure_self_or_admin(claims, user_id)

    user = await db.users.find_one(scope.by_id(user_id))
    if not user:
        raise NotFound(f"{scope.label} not found")
    return user


async def update_scoped_user(db, scope: UserScope, user_id, updates: dict, claims: Claims) -> None:
    ensure_self_or_admin(claims, user_id)
    query = scope.by_id(user_id)
    updates = assert_allowed_updates(updates, is_admin=claims.role == Role.ADMIN)

    try:
        result = await db.users.update_one(query, {"$set": protect_store_info(updates)})
    except DuplicateKeyError:
        raise BadRequest("Email already registered")
    if result.matched_count == 0:
        raise NotFound(f"{scope.label} not found")

    logger.info("%s %s updated by %s", scope.label, user_id, claims.user_id)


async def delete_scoped_user(db, scope: UserScope, user_id, claims: Claims) -> None:
    ensure_self_or_admin(claims, user_id)

    result = await db.users.delete_one(scope.by_id(user_id))
    if result.deleted_count == 0:
        raise NotFound(f"{scope.label} not found")

    logger.info("%s %s deleted by %s", scope.label, user_id, claims.user_id)


async def set_suspended(db, scope: UserScope, user_id, suspended: bool) -> None:
    result = await db.users.update_one(scope.by_id(user_id), {"$set": {"suspended": suspended}})
    if result.matched_count == 0:
        raise NotFound(f"{scope.label} not found")

    logger.info("%s %s suspended=%s", scope.label, user_id, suspended)