import pytest
from bson import ObjectId

from config.env import TokenSettings
from models.user import Role
from utils.errors import BadRequest, Forbidden, Unauthenticated
from utils.guards import parse_object_id, assert_allowed_updates
from utils.jwt import TokenCodec
from utils.security import (
    authorize,
    extract_bearer_token,
    ensure_owner,
    ensure_self_or_admin,
)

USER_ID = "507f1f77bcf86cd799439011"
OTHER_ID = "507f191e810c19729de860ea"


@pytest.fixture
def codec():
    return TokenCodec(TokenSettings(secret="guard-secret"))


class TestExtractBearerToken:

    def test_strips_prefix(self):
        assert extract_bearer_token("Bearer abc.def.ghi") == "abc.def.ghi"

    def test_tolerates_missing_prefix(self):
        assert extract_bearer_token("abc.def.ghi") == "abc.def.ghi"

    @pytest.mark.parametrize("header", [None, "", "Bearer ", "Bearer    "])
    def test_missing_token(self, header):
        with pytest.raises(Unauthenticated) as exc_info:
            extract_bearer_token(header)
        assert exc_info.value.status_code == 401
        assert exc_info.value.headers["WWW-Authenticate"] == "Bearer"


class TestAuthorize:

    def test_valid_token(self, codec):
        token = codec.issue(USER_ID, Role.CUSTOMER)
        claims = authorize(f"Bearer {token}", codec)

        assert claims.user_id == USER_ID
        assert claims.role == Role.CUSTOMER

    def test_missing_header(self, codec):
        with pytest.raises(Unauthenticated):
            authorize(None, codec)

    def test_verifier_errors_become_unauthenticated(self, codec):
        foreign = TokenCodec(TokenSettings(secret="someone-else")).issue(USER_ID, Role.ADMIN)

        with pytest.raises(Unauthenticated):
            authorize(f"Bearer {foreign}", codec)
        with pytest.raises(Unauthenticated):
            authorize("Bearer not-a-token", codec)

    def test_role_allowed(self, codec):
        token = codec.issue(USER_ID, Role.CUSTOMER_SELLER, USER_ID)
        claims = authorize(token, codec, [Role.SELLER, Role.CUSTOMER_SELLER])
        assert claims.role == Role.CUSTOMER_SELLER

    def test_role_denied(self, codec):
        token = codec.issue(USER_ID, Role.CUSTOMER)

        with pytest.raises(Forbidden) as exc_info:
            authorize(token, codec, [Role.ADMIN])
        assert exc_info.value.status_code == 403


class TestOwnership:

    def test_owner_passes(self, codec):
        claims = codec.verify(codec.issue(USER_ID, Role.SELLER, USER_ID))
        ensure_owner(claims, ObjectId(USER_ID))

    def test_owner_id_case_insensitive(self, codec):
        claims = codec.verify(codec.issue(USER_ID, Role.SELLER, USER_ID))
        ensure_owner(claims, USER_ID.upper())

    def test_non_owner_forbidden(self, codec):
        claims = codec.verify(codec.issue(USER_ID, Role.SELLER, USER_ID))
        with pytest.raises(Forbidden):
            ensure_owner(claims, OTHER_ID)

    def test_admin_bypasses_self_check(self, codec):
        claims = codec.verify(codec.issue(USER_ID, Role.ADMIN))
        ensure_self_or_admin(claims, OTHER_ID)

    def test_customer_limited_to_self(self, codec):
        claims = codec.verify(codec.issue(USER_ID, Role.CUSTOMER))
        ensure_self_or_admin(claims, USER_ID)
        with pytest.raises(Forbidden):
            ensure_self_or_admin(claims, OTHER_ID)


class TestGuards:

    def test_parse_object_id(self):
        assert parse_object_id(USER_ID) == ObjectId(USER_ID)

    @pytest.mark.parametrize("value", [None, "", "xyz", "123", 42])
    def test_parse_object_id_rejects(self, value):
        with pytest.raises(BadRequest):
            parse_object_id(value, "user ID")

    @pytest.mark.parametrize(
        "updates",
        [
            {"password": "x"},
            {"_id": USER_ID},
            {"roles": ["admin"]},
            {"reset_token_hash": "abc"},
            {"password.hash": "x"},
            {"$set": {"password": "x"}},
        ],
    )
    def test_protected_fields(self, updates):
        with pytest.raises(BadRequest):
            assert_allowed_updates(updates, is_admin=True)

    def test_empty_patch(self):
        with pytest.raises(BadRequest):
            assert_allowed_updates({}, is_admin=True)

    def test_admin_only_fields(self):
        with pytest.raises(Forbidden):
            assert_allowed_updates({"suspended": False}, is_admin=False)
        assert assert_allowed_updates({"suspended": False}, is_admin=True) == {"suspended": False}

    def test_plain_fields_pass(self):
        updates = {"username": "new", "store_info.store_name": "Shop"}
        assert assert_allowed_updates(updates, is_admin=False) == updates

    @pytest.mark.parametrize(
        "updates",
        [
            {"email": "not-an-email"},
            {"username": ""},
            {"is_admin": True},
            {"store_info.nik.raw": "1"},
            {"store_info.owner": "x"},
            {"store_status": "deleted"},
        ],
    )
    def test_invalid_values_rejected(self, updates):
        with pytest.raises(BadRequest):
            assert_allowed_updates(updates, is_admin=True)

    def test_store_status_normalised(self):
        assert assert_allowed_updates({"store_status": "approved"}, is_admin=True) == {"store_status": "approved"}


class TestRoleMapping:

    @pytest.mark.parametrize(
        "roles, expected",
        [
            (["customer"], Role.CUSTOMER),
            (["seller"], Role.SELLER),
            (["customer", "seller"], Role.CUSTOMER_SELLER),
            (["seller", "customer"], Role.CUSTOMER_SELLER),
            (["admin", "customer"], Role.ADMIN),
        ],
    )
    def test_from_roles(self, roles, expected):
        assert Role.from_roles(roles) == expected

    def test_no_roles(self):
        with pytest.raises(ValueError):
            Role.from_roles([])
