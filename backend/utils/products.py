from bson import ObjectId

from models.token import Claims
from utils.errors import Forbidden, NotFound
from utils.guards import parse_object_id


def owned_product_filter(product_id, claims: Claims) -> dict:
    """Store filter matching a product only when the caller owns it."""
    return {
        "_id": parse_object_id(product_id, "product ID"),
        "seller_id": parse_object_id(claims.user_id, "user ID"),
    }


async def raise_ownership_miss(db, product_id: ObjectId, action: str):
    """
    Explain why an ownership-scoped filter matched nothing.

    Called only after the owned filter missed, so an existing product here
    belongs to someone else.
    """
    if await db.products.find_one({"_id": product_id}, {"_id": 1}):
        raise Forbidden(f"You do not have permission to {action} this product")
    raise NotFound("Product not found")
