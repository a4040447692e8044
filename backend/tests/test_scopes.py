import pytest
from bson import ObjectId

from models.token import Claims
from models.user import Role
from utils.errors import BadRequest, Forbidden, NotFound
from utils.scopes import (
    CUSTOMERS,
    SELLERS,
    CUSTOMER_SELLERS,
    list_scoped_users,
    find_scoped_user,
    update_scoped_user,
    delete_scoped_user,
    set_suspended,
)

ADMIN = Claims(user_id=str(ObjectId()), role=Role.ADMIN, expires_at=4102444800)


def _seed(db, roles, **fields):
    return db.users.seed({"roles": roles, "username": "u", **fields})


class TestFilters:

    def test_by_id_carries_role_predicate(self):
        oid = ObjectId()

        assert CUSTOMERS.by_id(str(oid)) == {"_id": oid, "roles": "customer"}
        assert CUSTOMER_SELLERS.by_id(oid) == {"_id": oid, "roles": {"$all": ["customer", "seller"]}}

    def test_by_id_rejects_bad_id(self):
        with pytest.raises(BadRequest):
            SELLERS.by_id("123")

    def test_listing_defaults_to_role_filter(self):
        assert CUSTOMERS.listing() == {"roles": "customer"}
        assert "$or" in SELLERS.listing()


class TestScopedOperations:

    @pytest.mark.asyncio
    async def test_list(self, db):
        _seed(db, ["customer"])
        _seed(db, ["customer", "seller"])
        _seed(db, ["seller"])

        assert len(await list_scoped_users(db, CUSTOMERS)) == 2
        assert len(await list_scoped_users(db, CUSTOMER_SELLERS)) == 1

    @pytest.mark.asyncio
    async def test_find_outside_scope(self, db):
        customer = _seed(db, ["customer"])

        with pytest.raises(NotFound):
            await find_scoped_user(db, SELLERS, customer["_id"], ADMIN)

    @pytest.mark.asyncio
    async def test_update_rejected_before_store(self, db):
        customer = _seed(db, ["customer"])

        with pytest.raises(BadRequest):
            await update_scoped_user(db, CUSTOMERS, customer["_id"], {"password": "x"}, ADMIN)
        assert db.calls == []

    @pytest.mark.asyncio
    async def test_update_by_stranger(self, db):
        customer = _seed(db, ["customer"])
        stranger = Claims(user_id=str(ObjectId()), role=Role.CUSTOMER, expires_at=4102444800)

        with pytest.raises(Forbidden):
            await update_scoped_user(db, CUSTOMERS, customer["_id"], {"username": "x"}, stranger)
        assert db.calls == []

    @pytest.mark.asyncio
    async def test_update_duplicate_email(self, db):
        _seed(db, ["customer"], email="taken@example.com")
        customer = _seed(db, ["customer"], email="mine@example.com")

        with pytest.raises(BadRequest):
            await update_scoped_user(db, CUSTOMERS, customer["_id"], {"email": "taken@example.com"}, ADMIN)
        assert db.users.get(customer["_id"])["email"] == "mine@example.com"

    @pytest.mark.asyncio
    async def test_delete_zero_matched(self, db):
        with pytest.raises(NotFound):
            await delete_scoped_user(db, CUSTOMERS, ObjectId(), ADMIN)

    @pytest.mark.asyncio
    async def test_set_suspended(self, db):
        seller = _seed(db, ["seller"], suspended=False)

        await set_suspended(db, SELLERS, seller["_id"], True)
        assert db.users.get(seller["_id"])["suspended"] is True
