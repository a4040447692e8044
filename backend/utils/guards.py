from bson import ObjectId
from bson.errors import InvalidId
from pydantic import ValidationError

from config.constants import PROTECTED_USER_FIELDS, ADMIN_ONLY_USER_FIELDS
from models.user import StoreInfoPatch, UserPatch
from utils.errors import BadRequest, Forbidden

# -------------------------------
# ObjectId Guard
# -------------------------------

def parse_object_id(value, name: str = "id") -> ObjectId:
    if isinstance(value, ObjectId):
        return value
    if not value:
        raise BadRequest(f"Invalid {name}")
    try:
        return ObjectId(value)
    except (InvalidId, TypeError):
        raise BadRequest(f"Invalid {name}")


# -------------------------------
# Generic Update Guard
# -------------------------------

def _validated(model, values: dict, prefix: str = "") -> dict:
    try:
        return model.model_validate(values).model_dump(mode="json", exclude_unset=True, exclude_none=True)
    except ValidationError as e:
        error = e.errors()[0]
        field = prefix + ".".join(str(part) for part in error["loc"])
        raise BadRequest(f"Invalid value for '{field}': {error['msg']}")


def assert_allowed_updates(updates: dict, *, is_admin: bool) -> dict:
    """
    Validate a free-form patch for a user record.

    Dotted keys are checked by their root, so `password.x` counts as
    `password`. Only `store_info.<field>` may be dotted. Values go through
    the same rules as registration and the cleaned patch is returned.
    """
    if not updates:
        raise BadRequest("No updates provided")

    top, store_info = {}, {}
    for field, value in updates.items():
        if not isinstance(field, str) or not field or field.startswith("$"):
            raise BadRequest(f"Field '{field}' cannot be updated")

        root, _, sub = field.partition(".")
        if root in PROTECTED_USER_FIELDS:
            raise BadRequest(f"Field '{root}' cannot be updated")

        if root in ADMIN_ONLY_USER_FIELDS and not is_admin:
            raise Forbidden(f"Field '{root}' can only be updated by an admin")

        if not sub:
            top[field] = value
        elif root == "store_info" and "." not in sub:
            store_info[sub] = value
        else:
            raise BadRequest(f"Field '{field}' cannot be updated")

    if store_info and "store_info" in top:
        raise BadRequest("Field 'store_info' cannot be updated together with its sub-fields")

    cleaned = _validated(UserPatch, top)
    for key, value in _validated(StoreInfoPatch, store_info, "store_info.").items():
        cleaned[f"store_info.{key}"] = value

    if not cleaned:
        raise BadRequest("No updates provided")
    return cleaned
