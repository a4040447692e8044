from bson import ObjectId
from datetime import datetime

from utils.crypto import decrypt_sensitive_value


def serialize_object_id(value):
    return str(value) if isinstance(value, ObjectId) else value


def _isoformat(value):
    return value.isoformat() if isinstance(value, datetime) else None


def serialize_store_info(store_info: dict | None) -> dict | None:
    if not store_info:
        return None

    return {
        "store_name": store_info.get("store_name", ""),
        "full_address": store_info.get("full_address", ""),
        "nik": decrypt_sensitive_value(store_info.get("nik", "")),
        "photo_path": store_info.get("photo_path"),
    }


def serialize_user(user: dict) -> dict:
    # whitelist only: password and reset token fields never leave the service
    data = {
        "id": serialize_object_id(user["_id"]),
        "username": user.get("username"),
        "email": user.get("email"),
        "roles": list(user.get("roles") or []),
        "suspended": bool(user.get("suspended", False)),
    }

    if user.get("store_status") is not None:
        data["store_status"] = user["store_status"]

    store_info = serialize_store_info(user.get("store_info"))
    if store_info is not None:
        data["store_info"] = store_info

    return data


def serialize_product(product: dict) -> dict:
    return {
        "id": serialize_object_id(product["_id"]),
        "seller_id": serialize_object_id(product.get("seller_id")),
        "name": product.get("name"),
        "price": product.get("price"),
        "stock": product.get("stock", 0),
        "discount": product.get("discount", 0),
        "description": product.get("description"),
        "category_id": serialize_object_id(product.get("category_id")),
        "sub_category_id": serialize_object_id(product.get("sub_category_id")),
        "image": product.get("image"),
        "created_at": _isoformat(product.get("created_at")),
        "updated_at": _isoformat(product.get("updated_at")),
    }
