import logging
from datetime import datetime, timezone
from typing import Optional

from fastapi import APIRouter, Depends, File, Form, Query, UploadFile, status
from pydantic import ValidationError

from database import get_db
from models.product import ProductCreate, ProductUpdate
from models.token import Claims
from models.user import Role
from utils.cloudinary import upload_product_image
from utils.errors import BadRequest, InternalError, NotFound
from utils.guards import parse_object_id
from utils.products import owned_product_filter, raise_ownership_miss
from utils.security import require_active_role
from utils.serializers import serialize_product

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/products", tags=["Products"])

require_seller = require_active_role(Role.SELLER, Role.CUSTOMER_SELLER)


# =========================
# HELPERS
# =========================

def _store_image(image: UploadFile, seller_id: str) -> str:
    if not image.content_type or not image.content_type.startswith("image/"):
        raise BadRequest("Only image files are allowed")

    image_url = upload_product_image(image.file, seller_id)
    if not image_url:
        raise InternalError("Failed to save image")
    return image_url


def _to_document(fields: dict) -> dict:
    doc = dict(fields)
    for key in ("category_id", "sub_category_id"):
        if doc.get(key):
            doc[key] = parse_object_id(doc[key], key.replace("_", " "))
    return doc


# =========================
# LIST / DETAIL (PUBLIC)
# =========================

@router.get("")
async def list_products(
    seller_id: Optional[str] = Query(None),
    db=Depends(get_db),
):
    query = {}
    if seller_id:
        query["seller_id"] = parse_object_id(seller_id, "seller ID")

    products = []
    async for p in db.products.find(query):
        products.append(serialize_product(p))

    return products


@router.get("/{product_id}")
async def product_detail(product_id: str, db=Depends(get_db)):
    product = await db.products.find_one({"_id": parse_object_id(product_id, "product ID")})
    if not product:
        raise NotFound("Product not found")

    return serialize_product(product)


# =========================
# SELLER CREATE PRODUCT
# =========================

@router.post("", status_code=status.HTTP_201_CREATED)
async def create_product(
    name: str = Form(...),
    price: int = Form(...),
    stock: int = Form(...),
    discount: int = Form(0),
    description: Optional[str] = Form(None),
    category_id: Optional[str] = Form(None),
    sub_category_id: Optional[str] = Form(None),
    image: Optional[UploadFile] = File(None),
    seller: Claims = Depends(require_seller),
    db=Depends(get_db),
):
    try:
        data = ProductCreate(
            name=name,
            price=price,
            stock=stock,
            discount=discount,
            description=description,
            category_id=category_id,
            sub_category_id=sub_category_id,
        )
    except ValidationError as e:
        raise BadRequest(str(e))

    seller_oid = parse_object_id(seller.user_id, "user ID")

    now = datetime.now(timezone.utc)
    product_doc = _to_document(data.model_dump())
    product_doc.update({
        "seller_id": seller_oid,
        "image": _store_image(image, seller.user_id) if image else None,
        "created_at": now,
        "updated_at": now,
    })

    result = await db.products.insert_one(product_doc)

    return {
        "message": "Product created",
        "product_id": str(result.inserted_id),
    }


# =========================
# SELLER UPDATE PRODUCT
# =========================

@router.patch("/{product_id}")
async def update_product(
    product_id: str,
    name: Optional[str] = Form(None),
    price: Optional[int] = Form(None),
    stock: Optional[int] = Form(None),
    discount: Optional[int] = Form(None),
    description: Optional[str] = Form(None),
    category_id: Optional[str] = Form(None),
    sub_category_id: Optional[str] = Form(None),
    image: Optional[UploadFile] = File(None),
    seller: Claims = Depends(require_seller),
    db=Depends(get_db),
):
    query = owned_product_filter(product_id, seller)

    if not await db.products.find_one(query, {"_id": 1}):
        await raise_ownership_miss(db, query["_id"], "update")

    try:
        data = ProductUpdate(
            name=name,
            price=price,
            stock=stock,
            discount=discount,
            description=description,
            category_id=category_id,
            sub_category_id=sub_category_id,
        )
    except ValidationError as e:
        raise BadRequest(str(e))

    updates = _to_document(data.model_dump(exclude_none=True))
    if image:
        updates["image"] = _store_image(image, seller.user_id)

    if not updates:
        raise BadRequest("No updates provided")

    updates["updated_at"] = datetime.now(timezone.utc)

    result = await db.products.update_one(query, {"$set": updates})
    if result.matched_count == 0:
        raise NotFound("Product not found")

    return {
        "message": "Product updated successfully",
        "status": "success",
    }


# =========================
# SELLER DELETE PRODUCT
# =========================

@router.delete("/{product_id}")
async def delete_product(
    product_id: str,
    seller: Claims = Depends(require_seller),
    db=Depends(get_db),
):
    query = owned_product_filter(product_id, seller)

    result = await db.products.delete_one(query)
    if result.deleted_count == 0:
        await raise_ownership_miss(db, query["_id"], "delete")

    logger.info("Product %s deleted by %s", product_id, seller.user_id)
    return {
        "message": "Product deleted successfully",
        "status": "success",
    }
